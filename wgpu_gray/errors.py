"""Error taxonomy for the GPU grayscale pipeline.

Every failure surfaced by the pipeline is a ``GrayscaleError`` subclass so
callers can tell a missing GPU apart from everything else.
"""


class GrayscaleError(Exception):
    """Base class for all pipeline failures."""


class DeviceUnavailable(GrayscaleError):
    """No compute-capable adapter or device could be acquired."""


class AllocationFailure(GrayscaleError):
    """A device buffer could not be created."""


class KernelCompileFailure(GrayscaleError):
    """The WGSL kernel failed to compile or link into a pipeline."""


class InvalidImage(GrayscaleError, ValueError):
    """Image has zero dimensions or pixel data of the wrong size."""


class DispatchFailure(GrayscaleError):
    """Recording, submitting or reading back the job's commands failed."""
