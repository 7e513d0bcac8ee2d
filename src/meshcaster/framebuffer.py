"""
Float pixel storage and its conversion to 8-bit channels.

The float grid uses a top-left origin (row 0 is the top of the image). Bytes
are derived on demand, so there is only one stored representation.
"""
import numpy as np
from meshcaster import constants


def to_bytes(pixels):
    """
    Convert float channels to 8-bit.

    Channels are clamped to [0, 1], scaled by 255 and truncated toward zero.

    Args:
        pixels: float array of any shape

    Returns:
        uint8 array of the same shape
    """
    scaled = np.clip(pixels, 0.0, 1.0) * constants.MAX_CHANNEL
    return np.nan_to_num(scaled, nan=0.0).astype(np.uint8)


class Framebuffer:
    """
    ``yres x xres`` grid of RGB floats.

    Attributes:
        pixels: (yres, xres, 3) float64 colors, top row first
    """

    def __init__(self, xres, yres):
        self.pixels = np.zeros((yres, xres, 3))

    @property
    def xres(self):
        return self.pixels.shape[1]

    @property
    def yres(self):
        return self.pixels.shape[0]

    @property
    def shape(self):
        """(yres, xres)"""
        return self.pixels.shape[:2]

    def clear(self):
        self.pixels.fill(0.0)

    def write(self, colors):
        """Replace every pixel; ``colors`` may be flat (yres*xres, 3)."""
        self.pixels[...] = np.asarray(colors, dtype=np.float64).reshape(self.pixels.shape)

    def bytes(self):
        """(yres, xres, 3) uint8 image, top row first."""
        return to_bytes(self.pixels)

    @property
    def data(self):
        """
        Flat RGB bytes with the bottom image row first.

        This is the layout expected by bottom-left-origin consumers such as
        texture uploads for a live display.
        """
        return np.ascontiguousarray(self.bytes()[::-1]).ravel()

    @property
    def max_value(self):
        """Largest channel value currently stored."""
        if self.pixels.size == 0:
            return 0.0
        return float(self.pixels.max())

    def normalize(self, max_value=None):
        """
        Divide every channel by ``max_value`` (default: the current maximum).

        A non-positive maximum leaves the buffer untouched.
        """
        if max_value is None:
            max_value = self.max_value
        if max_value <= 0.0:
            return
        self.pixels /= max_value
