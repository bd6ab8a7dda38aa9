"""Shared fixtures: a real GPU session (skipped when absent) and a fake device."""

import pytest

from wgpu_gray.device import DeviceSession
from wgpu_gray.errors import DeviceUnavailable

from fakes import FakeDevice


@pytest.fixture(scope="module")
def gpu_session():
    """DeviceSession on the default adapter; skips the module's GPU tests without one."""
    try:
        session = DeviceSession.acquire()
    except DeviceUnavailable as e:
        pytest.skip(f"no GPU adapter: {e}")
    yield session
    session.release()


@pytest.fixture
def fake_device():
    return FakeDevice()
