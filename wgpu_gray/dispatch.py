"""Dispatch grid sizing and command submission."""

import logging

import wgpu

from wgpu_gray.errors import DispatchFailure
from wgpu_gray.kernel import WORKGROUP_SIZE

logger = logging.getLogger(__name__)


def dispatch_grid(width, height, workgroup_size=WORKGROUP_SIZE):
    """Number of workgroups covering a width x height image: (ceil(W/n), ceil(H/n))."""
    return (
        (width + workgroup_size - 1) // workgroup_size,
        (height + workgroup_size - 1) // workgroup_size,
    )


def submit_job(device, kernel, bind_group, buffers, grid):
    """Record one dispatch plus the output -> readback copy and submit them.

    Both commands go into a single command buffer, so the copy observes the
    kernel's complete output.

    Args:
        device: wgpu device
        kernel: GrayscaleKernel
        bind_group: bind group from ``kernel.bind``
        buffers: BufferSet with output and readback created
        grid: (x, y) workgroup counts

    Raises:
        DispatchFailure: recording or submission was rejected by the device
    """
    try:
        command_encoder = device.create_command_encoder()
        compute_pass = command_encoder.begin_compute_pass()
        compute_pass.set_pipeline(kernel.pipeline)
        compute_pass.set_bind_group(0, bind_group)
        compute_pass.dispatch_workgroups(grid[0], grid[1], 1)
        compute_pass.end()

        command_encoder.copy_buffer_to_buffer(
            buffers.output, 0, buffers.readback, 0, buffers.nbytes
        )
        device.queue.submit([command_encoder.finish()])
    except (RuntimeError, wgpu.GPUError) as e:
        raise DispatchFailure(f"Dispatch of {grid[0]}x{grid[1]} workgroups failed: {e}") from e
    logger.debug(f"Submitted dispatch {grid[0]}x{grid[1]} workgroups, copy of {buffers.nbytes} bytes")
