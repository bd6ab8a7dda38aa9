"""Per-job device buffers: input, output and readback.

All three buffers have the packed-buffer byte length. They are created for
one job and destroyed when it ends; nothing is pooled.
"""

import logging

import wgpu

from wgpu_gray.errors import AllocationFailure

logger = logging.getLogger(__name__)

INPUT_USAGE = wgpu.BufferUsage.STORAGE | wgpu.BufferUsage.COPY_DST
OUTPUT_USAGE = wgpu.BufferUsage.STORAGE | wgpu.BufferUsage.COPY_SRC
READBACK_USAGE = wgpu.BufferUsage.COPY_DST | wgpu.BufferUsage.MAP_READ


def check_limits(device, nbytes):
    """Raise AllocationFailure if nbytes exceeds what one storage binding can hold."""
    limits = device.limits
    limit = min(
        limits["max-buffer-size"],
        limits["max-storage-buffer-binding-size"],
    )
    if nbytes > limit:
        raise AllocationFailure(
            f"Packed image needs {nbytes} bytes, device storage binding limit is {limit}"
        )


class BufferSet:
    """Owns the input/output/readback buffers of a single job."""

    def __init__(self, device, nbytes):
        self.device = device
        self.nbytes = nbytes
        self.input = None
        self.output = None
        self.readback = None
        self._released = False

    @classmethod
    def allocate(cls, device, packed):
        """Create all three buffers for a packed uint32 array.

        A size above the device's buffer or storage-binding limit is rejected
        before anything is created. If any creation fails, buffers already
        created are destroyed before AllocationFailure propagates.
        """
        check_limits(device, packed.nbytes)
        buffers = cls(device, packed.nbytes)
        try:
            buffers.create_input(packed)
            buffers.create_output(packed.nbytes)
            buffers.create_readback(packed.nbytes)
        except Exception:
            buffers.release()
            raise
        logger.debug(f"Allocated 3 buffers of {packed.nbytes} bytes")
        return buffers

    def _create(self, label, **kwargs):
        try:
            return self.device.create_buffer(label=label, **kwargs)
        except (RuntimeError, wgpu.GPUError) as e:
            raise AllocationFailure(f"Could not create {label} buffer ({kwargs.get('size')} bytes): {e}") from e

    # ---- Creation ----
    def create_input(self, data):
        """Create the input buffer, writing ``data`` through a mapped range."""
        buffer = self._create(
            "gray-input",
            size=data.nbytes,
            usage=INPUT_USAGE,
            mapped_at_creation=True,
        )
        self.input = buffer
        try:
            buffer.write_mapped(data)
        finally:
            buffer.unmap()
        return buffer

    def create_output(self, size):
        """Create the storage buffer the kernel writes into."""
        self.output = self._create("gray-output", size=size, usage=OUTPUT_USAGE)
        return self.output

    def create_readback(self, size):
        """Create the copy destination the host maps for reading."""
        self.readback = self._create("gray-readback", size=size, usage=READBACK_USAGE)
        return self.readback

    # ---- Release ----
    def buffers(self):
        """Buffers created so far, in creation order."""
        return [b for b in (self.input, self.output, self.readback) if b is not None]

    def release(self):
        """Destroy every created buffer. Safe to call more than once.

        Each buffer is destroyed even if an earlier one fails; the first
        failure is then raised as AllocationFailure.
        """
        if self._released:
            return
        self._released = True
        pending = self.buffers()
        self.input = self.output = self.readback = None
        errors = []
        for buf in pending:
            try:
                buf.destroy()
            except (RuntimeError, wgpu.GPUError) as e:
                errors.append(e)
        if errors:
            raise AllocationFailure(
                f"{len(errors)} of {len(pending)} buffers failed to destroy: {errors[0]}"
            ) from errors[0]

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
