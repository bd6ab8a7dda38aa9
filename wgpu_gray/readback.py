"""Map the readback buffer and decode it into pixels."""

import numpy as np
import wgpu

from wgpu_gray.errors import DispatchFailure
from wgpu_gray.packing import unpack_words


def _copy_mapped(buffer):
    try:
        return np.frombuffer(buffer.read_mapped(), dtype=np.uint32).copy()
    finally:
        buffer.unmap()


def read_words(buffer):
    """Block until ``buffer`` is mappable, copy its contents out and unmap it."""
    try:
        buffer.map_sync(wgpu.MapMode.READ)
    except (RuntimeError, wgpu.GPUError) as e:
        raise DispatchFailure(f"Readback buffer could not be mapped: {e}") from e
    return _copy_mapped(buffer)


async def read_words_async(buffer):
    """Awaitable variant of :func:`read_words`."""
    try:
        await buffer.map_async(wgpu.MapMode.READ)
    except (RuntimeError, wgpu.GPUError) as e:
        raise DispatchFailure(f"Readback buffer could not be mapped: {e}") from e
    return _copy_mapped(buffer)


def decode_result(words, width, height):
    """PixelSurface from the readback words; only the payload is read."""
    return unpack_words(words, width, height)
