"""
wgpu_gray: GPU grayscale conversion via wgpu-py compute shaders.

Packs RGBA pixels into a header-prefixed u32 buffer, runs a WGSL kernel
over a 16x16-workgroup grid, and reads the result back into host pixels.

Modules:
    surface   - PixelSurface, the host-side RGBA image
    packing   - pack/unpack between surfaces and u32 buffers
    device    - caller-owned DeviceSession
    buffers   - per-job input/output/readback buffers
    kernel    - WGSL grayscale kernel and host reference
    dispatch  - grid sizing and command submission
    readback  - buffer mapping and result decoding
    pipeline  - grayscale() / grayscale_async()
    imaging   - Pillow loading, scaling and encoding
"""

from wgpu_gray.errors import (
    GrayscaleError, DeviceUnavailable, AllocationFailure,
    KernelCompileFailure, InvalidImage, DispatchFailure,
)

from wgpu_gray.surface import PixelSurface
from wgpu_gray.packing import pack_surface, unpack_words, packed_nbytes
from wgpu_gray.config import GrayscaleConfig
from wgpu_gray.device import DeviceSession, list_adapters
from wgpu_gray.buffers import BufferSet
from wgpu_gray.kernel import GRAYSCALE_WGSL, GrayscaleKernel, compile_kernel, grayscale_reference
from wgpu_gray.dispatch import dispatch_grid, submit_job
from wgpu_gray.readback import read_words, read_words_async, decode_result
from wgpu_gray.pipeline import grayscale, grayscale_async, run_job, run_job_async

__version__ = "0.1.0"

__all__ = [
    # Errors
    "GrayscaleError", "DeviceUnavailable", "AllocationFailure",
    "KernelCompileFailure", "InvalidImage", "DispatchFailure",
    # Data
    "PixelSurface", "pack_surface", "unpack_words", "packed_nbytes",
    # Device
    "GrayscaleConfig", "DeviceSession", "list_adapters", "BufferSet",
    # Kernel
    "GRAYSCALE_WGSL", "GrayscaleKernel", "compile_kernel", "grayscale_reference",
    "dispatch_grid", "submit_job",
    "read_words", "read_words_async", "decode_result",
    # Pipeline
    "grayscale", "grayscale_async", "run_job", "run_job_async",
]
