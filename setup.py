"""
FlatFile setup.py — Package configuration and CLI entry point.
"""

from setuptools import find_packages, setup

setup(
    name="flatfile-api",
    version="1.0.0",
    description="FlatFile — HTTP CRUD API over raw, JSON and CSV files",
    packages=find_packages(include=["flatfile", "flatfile.*"]),
    python_requires=">=3.11",
    entry_points={
        "console_scripts": [
            "flatfile=flatfile.cli:main",
        ],
    },
    install_requires=[
        "fastapi>=0.110",
        "uvicorn>=0.29",
        "pydantic>=2.5",
        "pyyaml>=6.0",
        "httpx>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
        ],
    },
)
