# Copyright (c) 2025 Alessandro Baretta
# All rights reserved.

# source path: py_gpu_matvec/launch_config.py

"""
Kernel launch configuration for py-gpu-matvec

Launch shapes are derived from the operand shapes on every call. Nothing here
is cached between calls.
"""

import numbers
from dataclasses import dataclass
from typing import Tuple

from .errors import InvalidTileWidthError

# Constants for GPU architecture
WARP_SIZE = 32
MAX_THREADS_PER_BLOCK = 1024

# Block width used by the naive kernel
DEFAULT_BLOCK_WIDTH = WARP_SIZE


@dataclass(frozen=True)
class LaunchConfig:
    block_dim: Tuple[int, int]
    grid_dim: Tuple[int, int]

    @property
    def threads_per_block(self) -> int:
        return self.block_dim[0] * self.block_dim[1]

    @property
    def total_threads(self) -> int:
        return self.threads_per_block * self.grid_dim[0] * self.grid_dim[1]


def ceil_div(n: int, d: int) -> int:
    return (n + d - 1) // d


def validate_tile_width(tile_width) -> int:
    """Return tile_width as an int, or raise InvalidTileWidthError."""
    if isinstance(tile_width, bool) or not isinstance(tile_width, numbers.Integral):
        raise InvalidTileWidthError(tile_width, MAX_THREADS_PER_BLOCK)
    if tile_width <= 0 or tile_width > MAX_THREADS_PER_BLOCK:
        raise InvalidTileWidthError(tile_width, MAX_THREADS_PER_BLOCK)
    return int(tile_width)


def launch_config_for(output_length: int, block_width: int = DEFAULT_BLOCK_WIDTH) -> LaunchConfig:
    """One thread per output row, block_width threads per block.

    The grid is rounded up, so the last block may hold threads past the end of
    the output; kernels guard against those.
    """
    block_width = validate_tile_width(block_width)
    if output_length <= 0:
        raise ValueError(f"Output length must be positive, got {output_length}")
    return LaunchConfig(
        block_dim=(block_width, 1),
        grid_dim=(ceil_div(output_length, block_width), 1),
    )


__all__ = [
    'WARP_SIZE',
    'MAX_THREADS_PER_BLOCK',
    'DEFAULT_BLOCK_WIDTH',
    'LaunchConfig',
    'ceil_div',
    'validate_tile_width',
    'launch_config_for',
]
