"""Grayscale WGSL compute kernel and its host-side reference.

The kernel reads packed pixels (see wgpu_gray.packing), averages R, G and B
in f32, truncates to u32 and writes (a, gray, gray, gray). Alpha passes
through. Invocations outside the image return without touching memory,
since the dispatch grid is rounded up to whole 16x16 workgroups.
"""

import logging

import numpy as np
import wgpu

from wgpu_gray.errors import AllocationFailure, KernelCompileFailure

logger = logging.getLogger(__name__)

WORKGROUP_SIZE = 16

# ============================================================================
# WGSL Compute Shader Source
# ============================================================================

GRAYSCALE_WGSL = """
@group(0) @binding(0)
var<storage, read> input_pixels: array<u32>;
@group(0) @binding(1)
var<storage, read_write> output_pixels: array<u32>;

@compute @workgroup_size(16, 16)
fn main(@builtin(global_invocation_id) gid: vec3<u32>) {
    let width = input_pixels[0];
    let height = input_pixels[1];
    let x = gid.x;
    let y = gid.y;

    if (x >= width || y >= height) {
        return;
    }

    let idx = y * width + x + 2u;
    let pixel = input_pixels[idx];

    let r: f32 = f32(pixel & 0xFFu);
    let g: f32 = f32((pixel >> 8u) & 0xFFu);
    let b: f32 = f32((pixel >> 16u) & 0xFFu);
    let a: u32 = (pixel >> 24u) & 0xFFu;

    let gray = u32((r + g + b) / 3.0);

    output_pixels[idx] = (a << 24u) | (gray << 16u) | (gray << 8u) | gray;
}
"""


# ============================================================================
# Pipeline Construction
# ============================================================================

class GrayscaleKernel:
    """Compiled shader module, bind group layout and compute pipeline."""

    def __init__(self, shader_module, bind_group_layout, pipeline):
        self.shader_module = shader_module
        self.bind_group_layout = bind_group_layout
        self.pipeline = pipeline

    def bind(self, device, input_buffer, output_buffer):
        """Bind group with binding 0 = input, binding 1 = output."""
        try:
            return device.create_bind_group(
                layout=self.bind_group_layout,
                entries=[
                    {
                        "binding": 0,
                        "resource": {"buffer": input_buffer, "offset": 0, "size": input_buffer.size},
                    },
                    {
                        "binding": 1,
                        "resource": {"buffer": output_buffer, "offset": 0, "size": output_buffer.size},
                    },
                ],
            )
        except (RuntimeError, wgpu.GPUError) as e:
            raise AllocationFailure(f"Could not bind job buffers: {e}") from e


def compile_kernel(device, wgsl_code=GRAYSCALE_WGSL):
    """Compile the grayscale kernel into a compute pipeline.

    Raises:
        KernelCompileFailure: shader or pipeline creation was rejected
    """
    try:
        shader_module = device.create_shader_module(label="grayscale", code=wgsl_code)

        bind_group_layout = device.create_bind_group_layout(entries=[
            {
                "binding": 0,
                "visibility": wgpu.ShaderStage.COMPUTE,
                "buffer": {"type": wgpu.BufferBindingType.read_only_storage},
            },
            {
                "binding": 1,
                "visibility": wgpu.ShaderStage.COMPUTE,
                "buffer": {"type": wgpu.BufferBindingType.storage},
            },
        ])
        pipeline_layout = device.create_pipeline_layout(
            bind_group_layouts=[bind_group_layout]
        )
        pipeline = device.create_compute_pipeline(
            layout=pipeline_layout,
            compute={"module": shader_module, "entry_point": "main"},
        )
    except (RuntimeError, wgpu.GPUError) as e:
        raise KernelCompileFailure(f"Grayscale kernel failed to compile: {e}") from e
    logger.debug("Grayscale kernel compiled")
    return GrayscaleKernel(shader_module, bind_group_layout, pipeline)


# ============================================================================
# Host Reference
# ============================================================================

def grayscale_reference(pixels):
    """Apply the kernel's arithmetic on the host.

    Args:
        pixels: uint8 array (..., 4) of RGBA values

    Returns:
        uint8 array of the same shape with R = G = B = trunc((r+g+b)/3.0)
        computed in float32, alpha unchanged
    """
    pixels = np.asarray(pixels, dtype=np.uint8)
    rgb = pixels[..., :3].astype(np.float32)
    total = rgb[..., 0] + rgb[..., 1] + rgb[..., 2]
    gray = (total / np.float32(3.0)).astype(np.uint32).astype(np.uint8)

    out = np.empty_like(pixels)
    out[..., 0] = gray
    out[..., 1] = gray
    out[..., 2] = gray
    out[..., 3] = pixels[..., 3]
    return out
