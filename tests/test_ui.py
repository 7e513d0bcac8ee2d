import numpy as np
import pytest
from meshcaster.framebuffer import Framebuffer

pytest.importorskip("gradio")

from meshcaster.ui import DEFAULTS, create_ui, frame_from_buffer  # noqa: E402


def test_frame_from_buffer_restores_top_row():
    fb = Framebuffer(2, 2)
    fb.pixels[0] = [1.0, 0.0, 0.0]
    image = frame_from_buffer(fb.data, 2, 2)
    assert image.size == (2, 2)
    assert image.getpixel((0, 0)) == (255, 0, 0)
    assert image.getpixel((1, 1)) == (0, 0, 0)
    np.testing.assert_array_equal(np.asarray(image), fb.bytes())


def test_create_ui_builds_blocks():
    demo = create_ui()
    assert demo is not None
    assert len(DEFAULTS) == 8
