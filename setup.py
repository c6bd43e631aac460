from pathlib import Path

from setuptools import find_packages, setup

here = Path(__file__).parent

setup(
    name="bookshelf-cli",
    version="0.1.0",
    description="Inspect and edit Pocketshelf library backups from the terminal",
    long_description=(here / "README.md").read_text(encoding="utf-8"),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "typer>=0.9.0",    # commands and options
        "rich>=13.0.0",    # tables, prompts, logging handler
        "jmespath>=1.0.0",  # list books --where
        "pyyaml>=6.0",     # add book --from books.yaml
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
        ],
    },
    entry_points={
        "console_scripts": ["bookshelf=bookshelf.cli:app"],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Environment :: Console",
        "Intended Audience :: End Users/Desktop",
        "Operating System :: OS Independent",
        "Topic :: Utilities",
    ],
)
