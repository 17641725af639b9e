"""
vikos — Setup Script
=====================
Installs vikos as a local editable package so that all internal imports
(e.g. `from vikos.training.teacher import Nesterov`) work from any script
or notebook.

Usage:
    cd /path/to/vikos
    pip install -e ".[dev]"
"""

from setuptools import setup, find_packages

setup(
    name="vikos",
    version="0.1.0",
    description=(
        "vikos: supervised regression and classification with models, "
        "cost functions and training algorithms that compose freely"
    ),
    long_description=open("README.md", encoding="utf-8").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "numpy>=1.24.0",
        "safetensors>=0.4.0",
        "tqdm>=4.65.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        "dev": ["pytest>=7.0"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
)
