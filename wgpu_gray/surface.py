"""RGBA8 pixel surface owned by the host."""

import numpy as np

from wgpu_gray.errors import InvalidImage


def _as_channels(arr):
    """uint8 view of an integer array whose values all lie in 0..255."""
    if arr.dtype == np.uint8:
        return arr
    if arr.dtype.kind not in "iu":
        raise InvalidImage(f"Channels must be 8-bit unsigned integers, got dtype {arr.dtype}")
    if arr.size and (arr.min() < 0 or arr.max() > 255):
        raise InvalidImage(
            f"Channel values must lie in 0..255, got range {arr.min()}..{arr.max()}"
        )
    return arr.astype(np.uint8)


class PixelSurface:
    """Host-side RGBA image.

    Pixels are stored as a contiguous ``uint8`` array of shape
    ``(height, width, 4)``; channel order is R, G, B, A.
    """

    def __init__(self, pixels):
        """Wrap an RGBA array.

        Args:
            pixels: array-like of shape (height, width, 4) with values 0..255

        Raises:
            InvalidImage: if the array is not (H, W, 4), either side is zero,
                or a channel is not an integer in 0..255
        """
        arr = np.asarray(pixels)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise InvalidImage(f"Expected (height, width, 4) RGBA pixels, got shape {arr.shape}")
        height, width = arr.shape[0], arr.shape[1]
        if width <= 0 or height <= 0:
            raise InvalidImage(f"Image must have positive dimensions, got {width}x{height}")
        self.pixels = np.ascontiguousarray(_as_channels(arr))

    # ---- Properties ----
    @property
    def width(self):
        return self.pixels.shape[1]

    @property
    def height(self):
        return self.pixels.shape[0]

    @property
    def size(self):
        """(width, height) tuple."""
        return self.width, self.height

    def numel(self):
        """Number of pixels."""
        return self.width * self.height

    # ---- Factory Methods ----
    @staticmethod
    def from_bytes(width, height, data):
        """Build a surface from raw row-major RGBA bytes."""
        if width <= 0 or height <= 0:
            raise InvalidImage(f"Image must have positive dimensions, got {width}x{height}")
        expected = width * height * 4
        if len(data) != expected:
            raise InvalidImage(
                f"Expected {expected} bytes for {width}x{height} RGBA, got {len(data)}"
            )
        arr = np.frombuffer(bytes(data), dtype=np.uint8).reshape(height, width, 4)
        return PixelSurface(arr.copy())

    @staticmethod
    def from_pixels(width, height, pixels):
        """Build a surface from a flat sequence of (r, g, b, a) tuples."""
        if width <= 0 or height <= 0:
            raise InvalidImage(f"Image must have positive dimensions, got {width}x{height}")
        if len(pixels) != width * height:
            raise InvalidImage(
                f"Expected {width * height} pixels for {width}x{height}, got {len(pixels)}"
            )
        try:
            arr = np.asarray(pixels)
        except ValueError as e:
            raise InvalidImage(f"Pixels must be (r, g, b, a) tuples: {e}") from e
        if arr.shape != (width * height, 4):
            raise InvalidImage(f"Expected (r, g, b, a) tuples, got array of shape {arr.shape}")
        return PixelSurface(arr.reshape(height, width, 4))

    # ---- Data Transfer ----
    def tobytes(self):
        """Raw row-major RGBA bytes."""
        return self.pixels.tobytes()

    def to_pixels(self):
        """Flat list of (r, g, b, a) tuples in row-major order."""
        return [tuple(int(c) for c in px) for px in self.pixels.reshape(-1, 4)]

    def copy(self):
        return PixelSurface(self.pixels.copy())

    def __eq__(self, other):
        if not isinstance(other, PixelSurface):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    def __repr__(self):
        return f"PixelSurface({self.width}x{self.height})"
