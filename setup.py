# Copyright (c) 2025 Alessandro Baretta
# All rights reserved.

# source path: setup.py

"""
Setup script for py-gpu-matvec Python package
"""

from pathlib import Path

from setuptools import setup, find_packages

# Package metadata
PACKAGE_NAME = "py-gpu-matvec"
VERSION = "0.1.0"
DESCRIPTION = "GPU matrix-vector products (naive, shared memory tiled and cuBLAS backends)"
AUTHOR = "Alessandro Baretta"
EMAIL = "alessandro@example.com"

# Get the long description from README
current_dir = Path(__file__).parent
long_description = (current_dir / "README.md").read_text(encoding="utf-8")

setup(
    name=PACKAGE_NAME,
    version=VERSION,
    author=AUTHOR,
    author_email=EMAIL,
    description=DESCRIPTION,
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["py_gpu_matvec", "py_gpu_matvec.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.20.0",
        "numba>=0.57.0",
    ],
    extras_require={
        "cublas": [
            "cupy-cuda12x>=12.0",
        ],
        "test": [
            "pytest>=6.0",
            "pytest-cov",
        ],
        "dev": [
            "pytest>=6.0",
            "pytest-cov",
            "black",
            "isort",
            "mypy",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: Other/Proprietary License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    keywords="gpu cuda cublas matrix vector numba",
    zip_safe=False,
)
