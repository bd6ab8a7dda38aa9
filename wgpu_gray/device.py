"""Caller-owned wgpu device session.

Replaces a module-level device singleton: the caller acquires a session,
passes it to the pipeline and releases it when done.

Usage:
    with DeviceSession.acquire() as session:
        out = grayscale(surface, session=session)
"""

import logging

import wgpu

from wgpu_gray.config import GrayscaleConfig
from wgpu_gray.errors import DeviceUnavailable

logger = logging.getLogger(__name__)


def _default_gpu():
    """Return ``wgpu.gpu`` backed by wgpu-native, or raise DeviceUnavailable."""
    try:
        import wgpu.backends.wgpu_native  # noqa: F401
    except (ImportError, OSError) as e:
        raise DeviceUnavailable(f"wgpu native backend could not be loaded: {e}") from e
    return wgpu.gpu


def _summarize(adapter):
    summary = getattr(adapter, "summary", None)
    if summary:
        return summary
    info = getattr(adapter, "info", None) or {}
    return f"{info.get('device', '?')} ({info.get('adapter_type', '?')}, {info.get('backend_type', '?')})"


class DeviceSession:
    """An adapter, its device and the device queue."""

    def __init__(self, adapter, device):
        self.adapter = adapter
        self.device = device
        self.queue = device.queue
        self.adapter_summary = _summarize(adapter)
        self._released = False

    # ---- Acquisition ----
    @classmethod
    def acquire(cls, config=None, gpu=None):
        """Request an adapter and device, blocking until both are ready.

        Args:
            config: GrayscaleConfig (defaults are used when None)
            gpu: object exposing ``request_adapter_sync``; defaults to wgpu.gpu

        Raises:
            DeviceUnavailable: no backend, no adapter, or device request failed
        """
        config = config or GrayscaleConfig()
        gpu = gpu if gpu is not None else _default_gpu()
        logger.debug(f"Requesting adapter ({config.power_preference})...")
        try:
            adapter = gpu.request_adapter_sync(**config.adapter_kwargs())
        except (RuntimeError, wgpu.GPUError) as e:
            raise DeviceUnavailable(f"No compute-capable adapter: {e}") from e
        if adapter is None:
            raise DeviceUnavailable("No compute-capable adapter available")
        try:
            device = adapter.request_device_sync()
        except (RuntimeError, wgpu.GPUError) as e:
            raise DeviceUnavailable(f"Device request failed on {_summarize(adapter)}: {e}") from e
        session = cls(adapter, device)
        logger.info(f"Acquired GPU device: {session.adapter_summary}")
        return session

    @classmethod
    async def acquire_async(cls, config=None, gpu=None):
        """Awaitable variant of :meth:`acquire`."""
        config = config or GrayscaleConfig()
        gpu = gpu if gpu is not None else _default_gpu()
        logger.debug(f"Requesting adapter ({config.power_preference}) asynchronously...")
        try:
            adapter = await gpu.request_adapter_async(**config.adapter_kwargs())
        except (RuntimeError, wgpu.GPUError) as e:
            raise DeviceUnavailable(f"No compute-capable adapter: {e}") from e
        if adapter is None:
            raise DeviceUnavailable("No compute-capable adapter available")
        try:
            device = await adapter.request_device_async()
        except (RuntimeError, wgpu.GPUError) as e:
            raise DeviceUnavailable(f"Device request failed on {_summarize(adapter)}: {e}") from e
        session = cls(adapter, device)
        logger.info(f"Acquired GPU device: {session.adapter_summary}")
        return session

    # ---- Release ----
    @property
    def released(self):
        return self._released

    def release(self):
        """Destroy the device. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        self.device.destroy()
        logger.debug(f"Released GPU device: {self.adapter_summary}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def __repr__(self):
        state = "released" if self._released else "open"
        return f"DeviceSession({self.adapter_summary!r}, {state})"


def list_adapters(gpu=None):
    """Return (index, summary) for every adapter the backend can see."""
    gpu = gpu if gpu is not None else _default_gpu()
    adapters = gpu.enumerate_adapters_sync()
    return [(i, _summarize(adapter)) for i, adapter in enumerate(adapters)]
