"""Pixel packing between RGBA surfaces and header-prefixed u32 buffers.

Layout of a packed buffer (all words little-endian u32):

    word 0              width
    word 1              height
    word 2 + y*w + x    (a << 24) | (b << 16) | (g << 8) | r
"""

import numpy as np

from wgpu_gray.surface import PixelSurface

HEADER_WORDS = 2
WORD_BYTES = 4


def packed_nbytes(width, height):
    """Byte length of the packed buffer for a width x height image."""
    return (width * height + HEADER_WORDS) * WORD_BYTES


def pack_surface(surface):
    """Pack a PixelSurface into a uint32 array with a (width, height) header."""
    n = surface.numel()
    flat = surface.pixels.reshape(n, 4).astype(np.uint32)

    words = np.empty(n + HEADER_WORDS, dtype=np.uint32)
    words[0] = surface.width
    words[1] = surface.height
    words[HEADER_WORDS:] = (
        (flat[:, 3] << 24) | (flat[:, 2] << 16) | (flat[:, 1] << 8) | flat[:, 0]
    )
    return words


def unpack_words(words, width, height):
    """Unpack payload words back into a PixelSurface.

    Only words [2, 2 + width*height) are read; the header and anything past
    the payload are ignored.
    """
    n = width * height
    words = np.asarray(words, dtype=np.uint32)
    if words.size < n + HEADER_WORDS:
        raise ValueError(
            f"Packed buffer too short: need {n + HEADER_WORDS} words for {width}x{height}, got {words.size}"
        )
    payload = words[HEADER_WORDS:HEADER_WORDS + n]

    pixels = np.empty((n, 4), dtype=np.uint8)
    pixels[:, 0] = payload & 0xFF
    pixels[:, 1] = (payload >> 8) & 0xFF
    pixels[:, 2] = (payload >> 16) & 0xFF
    pixels[:, 3] = (payload >> 24) & 0xFF
    return PixelSurface(pixels.reshape(height, width, 4))
