"""
Image serializers for a rendered framebuffer.

Both writers consume ``Framebuffer.bytes()`` (top row first), so text and
binary output always agree on orientation.
"""
import logging
import sys
import PIL.Image
from meshcaster import constants

logger = logging.getLogger(__name__)

_PIL_FORMATS = {fmt: "JPEG" for fmt in constants.LOSSY_FORMATS}


def write_ppm(framebuffer, stream=None):
    """
    Write a plain-text PPM (P3) image.

    Layout: ``P3``, ``<xres> <yres> `` and ``255`` header lines, then one line
    per image row, top row first, every channel value followed by a space.
    """
    if stream is None:
        stream = sys.stdout
    image = framebuffer.bytes()

    stream.write(f"{constants.PPM_MAGIC}\n")
    stream.write(f"{framebuffer.xres} {framebuffer.yres} \n{constants.MAX_CHANNEL}\n")
    for row in image:
        stream.write("".join(f"{v} " for v in row.ravel().tolist()))
        stream.write("\n")


def pil_format(fmt):
    """Pillow codec for a format token: JPEG for "jpg"/"jpeg", PNG otherwise."""
    return _PIL_FORMATS.get(str(fmt).lower(), "PNG")


def export_image(framebuffer, filename, fmt=constants.DEFAULT_FORMAT):
    """
    Save the framebuffer as a 24-bit image file.

    Failures are logged and reported through the return value; nothing is
    raised to the caller.

    Args:
        framebuffer: Framebuffer to save
        filename: Target path
        fmt: Format token, case-insensitive ("jpg"/"jpeg" or anything else for PNG)

    Returns:
        bool: True if the file was written
    """
    codec = pil_format(fmt)
    try:
        image = PIL.Image.fromarray(framebuffer.bytes())
    except (ValueError, TypeError, MemoryError) as exc:
        logger.error("Image export failed: could not allocate %dx%d bitmap (%s)",
                     framebuffer.xres, framebuffer.yres, exc)
        return False

    try:
        image.save(filename, format=codec)
    except (OSError, ValueError, KeyError) as exc:
        logger.error("Image export failed: %s", exc)
        return False

    logger.info("Render successfully saved to file %s", filename)
    return True
