# Copyright (c) 2025 Alessandro Baretta
# All rights reserved.

# source path: py_gpu_matvec/device_buffers.py

"""
Device buffer management for py-gpu-matvec

Device memory is handed out as DeviceBuffer objects by a DeviceBufferManager.
A buffer belongs to the call that allocated it and is released exactly once,
either explicitly through DeviceBufferManager.free or by leaving the
BufferScope it was allocated from. Transfers are synchronous.
"""

import logging
import threading
from typing import List, Optional

import numpy as np
from numba import config as numba_config
from numba import cuda
from numba.cuda.cudadrv.driver import CudaAPIError

from .errors import DeviceError, OutOfDeviceMemoryError, TransferFailureError

logger = logging.getLogger(__name__)


def _driver_message(exc: BaseException) -> str:
    msg = getattr(exc, 'msg', None)
    return str(msg) if msg else str(exc)


def flush_deallocations() -> None:
    """Return memory of dropped device arrays to the driver now.

    numba queues deallocations and only frees them past a count or size
    threshold. The simulator has no such queue.
    """
    if numba_config.ENABLE_CUDASIM:
        return
    try:
        cuda.current_context().deallocations.clear()
    except CudaAPIError as e:
        raise DeviceError("Releasing device memory failed", _driver_message(e)) from e


class DeviceBuffer:
    """A contiguous, typed region of device memory."""

    def __init__(self, array, nbytes: int, dtype: np.dtype):
        self._array = array
        self.nbytes = nbytes
        self.dtype = np.dtype(dtype)
        self.size = nbytes // self.dtype.itemsize

    @property
    def released(self) -> bool:
        return self._array is None

    @property
    def array(self):
        """The numba device array backing this buffer."""
        if self._array is None:
            raise RuntimeError("Device buffer used after it was freed")
        return self._array

    @property
    def device_pointer(self) -> int:
        return self.array.__cuda_array_interface__['data'][0]

    def __repr__(self) -> str:
        state = "released" if self.released else "live"
        return f"DeviceBuffer(nbytes={self.nbytes}, dtype={self.dtype}, {state})"


class DeviceBufferManager:
    """Allocates, fills, drains and frees device buffers.

    The manager keeps allocation and free counters so callers (and tests) can
    check that every allocation was matched by exactly one free.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._allocations = 0
        self._frees = 0
        self._live_bytes = 0

    @property
    def allocations(self) -> int:
        return self._allocations

    @property
    def frees(self) -> int:
        return self._frees

    @property
    def live_buffers(self) -> int:
        with self._lock:
            return self._allocations - self._frees

    @property
    def live_bytes(self) -> int:
        return self._live_bytes

    def allocate(self, nbytes: int, dtype) -> DeviceBuffer:
        dtype = np.dtype(dtype)
        if nbytes <= 0 or nbytes % dtype.itemsize != 0:
            raise ValueError(f"Cannot allocate {nbytes} bytes as whole {dtype} elements")
        try:
            array = cuda.device_array(nbytes // dtype.itemsize, dtype=dtype)
        except CudaAPIError as e:
            raise OutOfDeviceMemoryError(
                f"Device allocation of {nbytes} bytes failed", _driver_message(e)) from e

        with self._lock:
            self._allocations += 1
            self._live_bytes += nbytes
        logger.debug("allocated %d bytes (%s)", nbytes, dtype)
        return DeviceBuffer(array, nbytes, dtype)

    def copy_in(self, buffer: DeviceBuffer, host: np.ndarray) -> None:
        """Copy a contiguous host array into the buffer."""
        if host.nbytes != buffer.nbytes:
            raise TransferFailureError(
                f"Host to device copy size mismatch: {host.nbytes} != {buffer.nbytes} bytes")
        try:
            buffer.array.copy_to_device(host.ravel(order='K'))
        except CudaAPIError as e:
            raise TransferFailureError(
                f"Host to device copy of {buffer.nbytes} bytes failed", _driver_message(e)) from e

    def copy_out(self, host: np.ndarray, buffer: DeviceBuffer) -> None:
        """Copy the buffer into a contiguous host array."""
        if not (host.flags.c_contiguous or host.flags.f_contiguous):
            raise TransferFailureError("Device to host copy needs a contiguous host array")
        if host.nbytes != buffer.nbytes:
            raise TransferFailureError(
                f"Device to host copy size mismatch: {buffer.nbytes} != {host.nbytes} bytes")
        try:
            buffer.array.copy_to_host(host.ravel(order='K'))
        except CudaAPIError as e:
            raise TransferFailureError(
                f"Device to host copy of {buffer.nbytes} bytes failed", _driver_message(e)) from e

    def free(self, buffer: DeviceBuffer, flush: bool = True) -> None:
        """Release the buffer. Freeing an already released buffer does nothing.

        With flush=False the device memory stays on numba's pending list until
        the next flush_deallocations().
        """
        with self._lock:
            if buffer.released:
                return
            buffer._array = None
            self._frees += 1
            self._live_bytes -= buffer.nbytes
        logger.debug("freed %d bytes (%s)", buffer.nbytes, buffer.dtype)
        if flush:
            flush_deallocations()

    def scope(self) -> "BufferScope":
        return BufferScope(self)


class BufferScope:
    """Frees every buffer allocated through it when the with-block exits.

    Usage:
        with manager.scope() as scope:
            d_a = scope.allocate(a.nbytes, a.dtype)
            ...
    """

    def __init__(self, manager: DeviceBufferManager):
        self.manager = manager
        self._buffers: List[DeviceBuffer] = []

    def allocate(self, nbytes: int, dtype) -> DeviceBuffer:
        buffer = self.manager.allocate(nbytes, dtype)
        self._buffers.append(buffer)
        return buffer

    def to_device(self, host: np.ndarray) -> DeviceBuffer:
        """Allocate a buffer sized for host and copy host into it."""
        buffer = self.allocate(host.nbytes, host.dtype)
        self.manager.copy_in(buffer, host)
        return buffer

    def release(self) -> None:
        freed = bool(self._buffers)
        while self._buffers:
            self.manager.free(self._buffers.pop(), flush=False)
        if freed:
            flush_deallocations()

    def __enter__(self) -> "BufferScope":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


_default_manager: Optional[DeviceBufferManager] = None
_default_manager_lock = threading.Lock()


def default_buffer_manager() -> DeviceBufferManager:
    """Process-wide manager used when a caller does not supply one."""
    global _default_manager
    with _default_manager_lock:
        if _default_manager is None:
            _default_manager = DeviceBufferManager()
        return _default_manager


__all__ = [
    'DeviceBuffer',
    'DeviceBufferManager',
    'BufferScope',
    'default_buffer_manager',
    'flush_deallocations',
]
