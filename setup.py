"""Package bm: bookmark shell commands in an append-only log."""

from setuptools import find_packages, setup

setup(
    name="bm",
    version="0.1.0",
    description="Save shell commands, find them again by approximate match, and run them.",
    python_requires=">=3.11",
    package_dir={"": "src"},
    packages=find_packages("src"),
    install_requires=[
        "click>=8.1",
    ],
    extras_require={
        "test": ["pytest>=8.0"],
    },
    entry_points={
        "console_scripts": [
            "bm = bm.cli:main",
        ],
    },
)
