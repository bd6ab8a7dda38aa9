"""Failure paths: missing device, allocation, compile, bind and dispatch failures, bad input."""

import asyncio

import numpy as np
import pytest

from wgpu_gray.buffers import BufferSet, INPUT_USAGE, OUTPUT_USAGE, READBACK_USAGE
from wgpu_gray.device import DeviceSession, list_adapters
from wgpu_gray.errors import (
    AllocationFailure, DeviceUnavailable, DispatchFailure, GrayscaleError, InvalidImage,
    KernelCompileFailure,
)
from wgpu_gray.dispatch import dispatch_grid, submit_job
from wgpu_gray.kernel import compile_kernel
from wgpu_gray.packing import pack_surface
from wgpu_gray.pipeline import grayscale, grayscale_async, run_job
from wgpu_gray.surface import PixelSurface

from fakes import FakeAdapter, FakeDevice, FakeGPU


def _surface():
    return PixelSurface.from_pixels(2, 1, [(100, 150, 200, 255), (0, 0, 0, 128)])


def test_error_hierarchy():
    for cls in (DeviceUnavailable, AllocationFailure, KernelCompileFailure, InvalidImage,
                DispatchFailure):
        assert issubclass(cls, GrayscaleError)
    assert issubclass(InvalidImage, ValueError)


def test_no_adapter_raises_device_unavailable_and_allocates_nothing():
    gpu = FakeGPU(adapter=None)
    with pytest.raises(DeviceUnavailable):
        grayscale(_surface(), gpu=gpu)
    assert len(gpu.requests) == 1


def test_adapter_request_error_is_device_unavailable():
    with pytest.raises(DeviceUnavailable):
        DeviceSession.acquire(gpu=FakeGPU(raise_on_request=True))


def test_device_request_failure_allocates_nothing():
    device = FakeDevice()
    gpu = FakeGPU(adapter=FakeAdapter(device=device, fail_device=True))
    with pytest.raises(DeviceUnavailable):
        grayscale(_surface(), gpu=gpu)
    assert device.buffers == []


def test_async_no_adapter():
    with pytest.raises(DeviceUnavailable):
        asyncio.run(grayscale_async(_surface(), gpu=FakeGPU(adapter=None)))


def test_power_preference_forwarded():
    from wgpu_gray.config import GrayscaleConfig

    gpu = FakeGPU(adapter=FakeAdapter())
    session = DeviceSession.acquire(GrayscaleConfig(power_preference="low-power"), gpu=gpu)
    assert gpu.requests == [{"power_preference": "low-power"}]
    assert session.adapter_summary == "Fake adapter (test)"
    session.release()
    session.release()
    assert session.device.destroyed


def test_released_session_is_rejected():
    session = DeviceSession.acquire(gpu=FakeGPU(adapter=FakeAdapter()))
    session.release()
    with pytest.raises(DeviceUnavailable):
        run_job(session, pack_surface(_surface()))


def test_list_adapters_with_fake_backend():
    assert list_adapters(gpu=FakeGPU(adapter=None)) == []
    assert list_adapters(gpu=FakeGPU(adapter=FakeAdapter())) == [(0, "Fake adapter (test)")]


def test_invalid_image_rejected_before_device_work():
    gpu = FakeGPU(adapter=FakeAdapter())
    with pytest.raises(InvalidImage):
        grayscale("not a surface", gpu=gpu)
    assert gpu.requests == []


@pytest.mark.parametrize("fail_at", [0, 1, 2])
def test_allocation_failure_releases_created_buffers(fail_at):
    device = FakeDevice(fail_buffer_at=fail_at)
    with pytest.raises(AllocationFailure):
        BufferSet.allocate(device, pack_surface(_surface()))
    assert len(device.buffers) == fail_at
    assert all(buf.destroyed for buf in device.buffers)


def test_buffer_set_layout(fake_device):
    packed = pack_surface(_surface())
    with BufferSet.allocate(fake_device, packed) as buffers:
        assert [b.size for b in buffers.buffers()] == [packed.nbytes] * 3
        assert buffers.input.usage == INPUT_USAGE
        assert buffers.output.usage == OUTPUT_USAGE
        assert buffers.readback.usage == READBACK_USAGE
        assert buffers.input.written == packed.tobytes()
        assert not buffers.input.mapped
        created = buffers.buffers()
    assert all(b.destroyed for b in created)


def test_compile_failure():
    with pytest.raises(KernelCompileFailure):
        compile_kernel(FakeDevice(fail_compile=True))


def test_compile_failure_in_job_allocates_nothing():
    device = FakeDevice(fail_compile=True)
    session = DeviceSession.acquire(gpu=FakeGPU(adapter=FakeAdapter(device=device)))
    with pytest.raises(KernelCompileFailure):
        grayscale(_surface(), session=session)
    assert device.buffers == []
    assert not session.released


def test_owned_session_released_after_failure():
    device = FakeDevice(fail_buffer_at=1)
    with pytest.raises(AllocationFailure):
        grayscale(_surface(), gpu=FakeGPU(adapter=FakeAdapter(device=device)))
    assert device.destroyed
    assert device.buffers[0].destroyed


def test_surface_rejects_bad_shape():
    with pytest.raises(InvalidImage):
        PixelSurface(np.zeros((3, 3), dtype=np.uint8))


def test_async_acquire_with_fake_backend():
    gpu = FakeGPU(adapter=FakeAdapter())
    session = asyncio.run(DeviceSession.acquire_async(gpu=gpu))
    with session:
        assert session.adapter_summary == "Fake adapter (test)"
    assert session.released


def test_oversize_image_rejected_before_any_buffer():
    device = FakeDevice(max_binding=64)
    packed = pack_surface(PixelSurface(np.zeros((4, 4, 4), dtype=np.uint8)))
    assert packed.nbytes > 64
    with pytest.raises(AllocationFailure, match="binding limit is 64"):
        BufferSet.allocate(device, packed)
    assert device.buffers == []


def test_oversize_image_through_grayscale_is_grayscale_error():
    device = FakeDevice(max_binding=64)
    gpu = FakeGPU(adapter=FakeAdapter(device=device))
    with pytest.raises(GrayscaleError):
        grayscale(PixelSurface(np.zeros((8, 8, 4), dtype=np.uint8)), gpu=gpu)
    assert device.buffers == []
    assert device.destroyed


def test_image_at_binding_limit_allocates():
    packed = pack_surface(_surface())
    device = FakeDevice(max_binding=packed.nbytes)
    with BufferSet.allocate(device, packed) as buffers:
        assert len(buffers.buffers()) == 3


def test_bind_failure_is_allocation_failure_and_releases_buffers():
    device = FakeDevice(fail_bind=True)
    session = DeviceSession.acquire(gpu=FakeGPU(adapter=FakeAdapter(device=device)))
    with pytest.raises(AllocationFailure):
        run_job(session, pack_surface(_surface()))
    assert len(device.buffers) == 3
    assert all(buf.destroyed for buf in device.buffers)


def test_submit_failure_is_dispatch_failure():
    device = FakeDevice(fail_submit=True)
    kernel = compile_kernel(device)
    with BufferSet.allocate(device, pack_surface(_surface())) as buffers:
        bind_group = kernel.bind(device, buffers.input, buffers.output)
        with pytest.raises(DispatchFailure, match="1x1 workgroups"):
            submit_job(device, kernel, bind_group, buffers, dispatch_grid(2, 1))


def test_submit_failure_in_job_releases_owned_session():
    device = FakeDevice(fail_submit=True)
    with pytest.raises(DispatchFailure):
        grayscale(_surface(), gpu=FakeGPU(adapter=FakeAdapter(device=device)))
    assert all(buf.destroyed for buf in device.buffers)
    assert device.destroyed


def test_release_destroys_remaining_buffers_after_a_failure():
    device = FakeDevice(fail_destroy_at=0)
    buffers = BufferSet.allocate(device, pack_surface(_surface()))
    with pytest.raises(AllocationFailure, match="1 of 3 buffers"):
        buffers.release()
    assert not device.buffers[0].destroyed
    assert device.buffers[1].destroyed
    assert device.buffers[2].destroyed
    buffers.release()
