"""Pillow loading/scaling/encoding collaborators and configuration."""

import io
import base64

import numpy as np
import pytest
from PIL import Image

from wgpu_gray.config import GrayscaleConfig
from wgpu_gray.errors import InvalidImage
from wgpu_gray.imaging import encode_png, fit_size, load_surface, save_surface, to_data_url
from wgpu_gray.surface import PixelSurface


def _png_bytes(width, height, mode="RGB"):
    image = Image.new(mode, (width, height), color=(200, 100, 50) if mode == "RGB" else None)
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    buf.seek(0)
    return buf


def test_fit_size_unchanged_within_limit():
    assert fit_size(500, 500) == (500, 500)
    assert fit_size(120, 40) == (120, 40)


def test_fit_size_scales_longest_side():
    assert fit_size(1000, 500) == (500, 250)
    assert fit_size(600, 1200) == (250, 500)
    assert fit_size(1001, 333, max_size=500) == (500, 166)


def test_fit_size_rounds_to_nearest():
    # 301 * 0.5 = 150.5 rounds up to 151
    assert fit_size(1000, 301) == (500, 151)


def test_fit_size_never_zero():
    assert fit_size(10000, 1, max_size=10) == (10, 1)


def test_load_surface_converts_to_rgba():
    surface = load_surface(_png_bytes(4, 3))
    assert surface.size == (4, 3)
    assert surface.to_pixels()[0] == (200, 100, 50, 255)


def test_load_surface_scales_down():
    surface = load_surface(_png_bytes(800, 200), max_size=400)
    assert surface.size == (400, 100)


def test_load_surface_rejects_garbage():
    with pytest.raises(InvalidImage):
        load_surface(io.BytesIO(b"definitely not an image"))


def test_encode_png_and_data_url():
    surface = PixelSurface.from_pixels(2, 1, [(1, 2, 3, 4), (5, 6, 7, 8)])
    png = encode_png(surface)
    decoded = np.asarray(Image.open(io.BytesIO(png)).convert("RGBA"))
    assert np.array_equal(decoded, surface.pixels)

    url = to_data_url(surface)
    assert url.startswith("data:image/png;base64,")
    assert base64.b64decode(url.split(",", 1)[1]) == png


def test_save_surface_round_trip(tmp_path):
    surface = PixelSurface.from_pixels(1, 2, [(10, 20, 30, 255), (40, 50, 60, 128)])
    path = tmp_path / "out.png"
    save_surface(surface, str(path))
    assert load_surface(str(path)) == surface


# ============================================================================
# Configuration
# ============================================================================

def test_config_defaults():
    config = GrayscaleConfig()
    assert config.power_preference == "high-performance"
    assert config.max_size == 500
    assert config.adapter_kwargs() == {"power_preference": "high-performance"}


def test_config_from_env_and_overrides():
    env = {
        "WGPU_GRAY_POWER_PREFERENCE": "low-power",
        "WGPU_GRAY_MAX_SIZE": "256",
        "WGPU_GRAY_LOG_LEVEL": "info",
    }
    config = GrayscaleConfig.from_env(env)
    assert config.power_preference == "low-power"
    assert config.max_size == 256
    assert config.log_level == "INFO"

    config = GrayscaleConfig.from_env(env, max_size=64, power_preference=None)
    assert config.max_size == 64
    assert config.power_preference == "low-power"


def test_config_rejects_bad_values():
    with pytest.raises(ValueError):
        GrayscaleConfig(power_preference="fastest")
    with pytest.raises(ValueError):
        GrayscaleConfig(max_size=0)
    with pytest.raises(ValueError):
        GrayscaleConfig(log_level="LOUD")
    with pytest.raises(ValueError):
        GrayscaleConfig.from_env({"WGPU_GRAY_MAX_SIZE": "big"})
