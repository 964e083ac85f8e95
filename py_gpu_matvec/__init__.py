# Copyright (c) 2025 Alessandro Baretta
# All rights reserved.

# source path: py_gpu_matvec/__init__.py

"""
py-gpu-matvec: GPU matrix-vector products

This package computes y = A @ x on a CUDA device with three interchangeable
backends (naive kernel, shared memory tiled kernel, cuBLAS), operating on
NumPy arrays.
"""

from .errors import *
from .launch_config import *
from .device_buffers import *
from .matvec_ops import *
from .vector_norm_ops import *

__version__ = "0.1.0"
