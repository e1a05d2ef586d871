#!/usr/bin/env python
"""
Setup script for the Parlay Correlation Engine.
"""

from setuptools import setup, find_packages
from pathlib import Path

project_root = Path(__file__).parent
long_description = (project_root / "README.md").read_text()

setup(
    name="parlay-correlation-engine",
    version="1.0.0",
    description="Odds arithmetic, leg correlation and correlation-adjusted joint probability for sports parlays",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["parlay_engine", "parlay_engine.*"]),
    py_modules=["main"],
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24.0",
        "scipy>=1.10.0",
        "pydantic>=2.0.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "parlay-engine=main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Scientific/Engineering :: Information Analysis",
    ],
)
