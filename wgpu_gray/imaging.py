"""Image loading, display-size scaling and encoding with Pillow."""

import io
import base64
import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

from wgpu_gray.config import DEFAULT_MAX_SIZE
from wgpu_gray.errors import InvalidImage
from wgpu_gray.surface import PixelSurface

logger = logging.getLogger(__name__)


def fit_size(width, height, max_size=DEFAULT_MAX_SIZE):
    """Scale (width, height) so neither side exceeds max_size, keeping aspect.

    Dimensions within the limit are returned unchanged; otherwise both are
    multiplied by min(max/w, max/h) and rounded to the nearest integer.
    """
    if width <= 0 or height <= 0:
        raise InvalidImage(f"Image must have positive dimensions, got {width}x{height}")
    if width <= max_size and height <= max_size:
        return width, height
    ratio = min(max_size / width, max_size / height)
    # halves round up
    new_w = max(1, int(np.floor(width * ratio + 0.5)))
    new_h = max(1, int(np.floor(height * ratio + 0.5)))
    return new_w, new_h


def image_to_surface(image, max_size=DEFAULT_MAX_SIZE):
    """Convert a PIL image to RGBA and scale it down to fit max_size."""
    rgba = image.convert("RGBA")
    size = fit_size(rgba.width, rgba.height, max_size)
    if size != rgba.size:
        logger.debug(f"Scaling {rgba.width}x{rgba.height} -> {size[0]}x{size[1]}")
        rgba = rgba.resize(size, Image.BILINEAR)
    return PixelSurface(np.asarray(rgba, dtype=np.uint8))


def load_surface(source, max_size=DEFAULT_MAX_SIZE):
    """Decode an image file (path or file object) into a PixelSurface.

    Raises:
        InvalidImage: the file cannot be decoded as an image
    """
    try:
        with Image.open(source) as image:
            image.load()
            return image_to_surface(image, max_size)
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImage(f"Cannot decode image {source!r}: {e}") from e


def surface_to_image(surface):
    return Image.fromarray(surface.pixels)


def save_surface(surface, path, format=None):
    """Write a surface to disk; format follows the file extension by default."""
    surface_to_image(surface).save(path, format=format)
    logger.debug(f"Saved {surface.width}x{surface.height} image to {path}")


def encode_png(surface):
    buf = io.BytesIO()
    surface_to_image(surface).save(buf, format="PNG")
    return buf.getvalue()


def to_data_url(surface):
    """PNG data URL suitable for embedding in HTML."""
    return "data:image/png;base64," + base64.b64encode(encode_png(surface)).decode("ascii")
