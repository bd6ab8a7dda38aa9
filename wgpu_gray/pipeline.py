"""GPU grayscale pipeline.

Stages run strictly in order, each validated before the next begins:

    validate -> pack -> acquire device -> compile -> allocate buffers
             -> bind -> dispatch + copy -> map readback -> decode -> release

The blocking entry point is :func:`grayscale`; :func:`grayscale_async`
awaits device acquisition and buffer mapping instead of blocking on them.
"""

import time
import logging

from wgpu_gray.buffers import BufferSet
from wgpu_gray.device import DeviceSession
from wgpu_gray.dispatch import dispatch_grid, submit_job
from wgpu_gray.errors import DeviceUnavailable, InvalidImage
from wgpu_gray.kernel import compile_kernel
from wgpu_gray.packing import pack_surface
from wgpu_gray.readback import decode_result, read_words, read_words_async
from wgpu_gray.surface import PixelSurface

logger = logging.getLogger(__name__)


def _validate(surface):
    if not isinstance(surface, PixelSurface):
        raise InvalidImage(f"Expected a PixelSurface, got {type(surface).__name__}")
    if surface.width <= 0 or surface.height <= 0:
        raise InvalidImage(f"Image must have positive dimensions, got {surface.width}x{surface.height}")


def _check_session(session):
    if session.released:
        raise DeviceUnavailable("Device session has already been released")


def _record(session, packed, buffers, kernel):
    width, height = int(packed[0]), int(packed[1])
    bind_group = kernel.bind(session.device, buffers.input, buffers.output)
    submit_job(session.device, kernel, bind_group, buffers, dispatch_grid(width, height))


# ============================================================================
# Device Stage
# ============================================================================

def run_job(session, packed):
    """Run the kernel over a packed buffer and return the full readback words.

    The returned array includes the two header words of the output buffer,
    which the kernel never writes.
    """
    _check_session(session)
    kernel = compile_kernel(session.device)
    with BufferSet.allocate(session.device, packed) as buffers:
        _record(session, packed, buffers, kernel)
        return read_words(buffers.readback)


async def run_job_async(session, packed):
    """Awaitable variant of :func:`run_job`."""
    _check_session(session)
    kernel = compile_kernel(session.device)
    with BufferSet.allocate(session.device, packed) as buffers:
        _record(session, packed, buffers, kernel)
        return await read_words_async(buffers.readback)


# ============================================================================
# Public API
# ============================================================================

def grayscale(surface, session=None, config=None, gpu=None):
    """Convert a PixelSurface to grayscale on the GPU.

    Args:
        surface: input PixelSurface
        session: open DeviceSession to use; when None a session is acquired
            for this call and released before returning
        config: GrayscaleConfig used when acquiring a session
        gpu: backend object passed to DeviceSession.acquire

    Returns:
        New PixelSurface of the same size

    Raises:
        InvalidImage: before any device work
        DeviceUnavailable, KernelCompileFailure, AllocationFailure,
        DispatchFailure
    """
    _validate(surface)
    t0 = time.perf_counter()
    packed = pack_surface(surface)

    owned = session is None
    if owned:
        session = DeviceSession.acquire(config, gpu=gpu)
    try:
        words = run_job(session, packed)
    finally:
        if owned:
            session.release()

    result = decode_result(words, surface.width, surface.height)
    logger.info(
        f"Grayscale {surface.width}x{surface.height} done in {(time.perf_counter() - t0) * 1000:.1f} ms"
    )
    return result


async def grayscale_async(surface, session=None, config=None, gpu=None):
    """Awaitable variant of :func:`grayscale`."""
    _validate(surface)
    t0 = time.perf_counter()
    packed = pack_surface(surface)

    owned = session is None
    if owned:
        session = await DeviceSession.acquire_async(config, gpu=gpu)
    try:
        words = await run_job_async(session, packed)
    finally:
        if owned:
            session.release()

    result = decode_result(words, surface.width, surface.height)
    logger.info(
        f"Grayscale {surface.width}x{surface.height} done in {(time.perf_counter() - t0) * 1000:.1f} ms"
    )
    return result
