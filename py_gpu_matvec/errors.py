# Copyright (c) 2025 Alessandro Baretta
# All rights reserved.

# source path: py_gpu_matvec/errors.py

"""
Error taxonomy for py-gpu-matvec

Contract violations (shape, empty operand, tile width) are detected before the
accelerator is touched and derive from ValueError, like every other input
validation error in the package. Device failures derive from RuntimeError and
carry the diagnostic reported by the driver.
"""

from typing import Optional


class MatVecError(Exception):
    """Base class for all py-gpu-matvec errors."""


class ShapeMismatchError(MatVecError, ValueError):
    """Matrix column count differs from the vector length."""

    def __init__(self, operation_name: str, matrix_shape, vector_length: int):
        self.matrix_shape = tuple(matrix_shape)
        self.vector_length = vector_length
        super().__init__(
            f"{operation_name}: Matrix dimensions incompatible for multiplication: "
            f"({self.matrix_shape[0]}, {self.matrix_shape[1]}) @ ({vector_length},)"
        )


class EmptyOperandError(MatVecError, ValueError):
    """One or both operands have zero extent.

    ``kind`` is one of ``"matrix"``, ``"vector"`` or ``"both"``.
    """

    KINDS = ("matrix", "vector", "both")

    def __init__(self, operation_name: str, kind: str):
        if kind not in self.KINDS:
            raise ValueError(f"Unknown empty operand kind: {kind}")
        self.kind = kind
        if kind == "both":
            detail = "matrix and vector are both empty"
        else:
            detail = f"{kind} is empty"
        super().__init__(f"{operation_name}: Empty operand: {detail}")


class InvalidTileWidthError(MatVecError, ValueError):
    """Tile width is not a positive integer within the block size limit."""

    def __init__(self, tile_width, limit: int):
        self.tile_width = tile_width
        super().__init__(f"Invalid tile width {tile_width!r}: must be an integer in [1, {limit}]")


class DeviceError(MatVecError, RuntimeError):
    """A failure reported by the accelerator driver or vendor library."""

    def __init__(self, message: str, driver_message: Optional[str] = None):
        self.driver_message = driver_message
        if driver_message:
            message = f"{message} (driver: {driver_message})"
        super().__init__(message)


class OutOfDeviceMemoryError(DeviceError):
    pass


class TransferFailureError(DeviceError):
    pass


class KernelLaunchFailureError(DeviceError):
    pass


class BackendUnavailableError(DeviceError):
    """The requested backend cannot run in this process."""


__all__ = [
    'MatVecError',
    'ShapeMismatchError',
    'EmptyOperandError',
    'InvalidTileWidthError',
    'DeviceError',
    'OutOfDeviceMemoryError',
    'TransferFailureError',
    'KernelLaunchFailureError',
    'BackendUnavailableError',
]
