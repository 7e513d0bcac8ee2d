"""
Camera basis construction and primary ray generation.

The screen is a plane one unit in front of the eye in view space. Its corner
and per-pixel steps are rotated into world space once per render, then every
pixel's ray direction is the pixel center on that plane.
"""
from dataclasses import dataclass
import numpy as np
from meshcaster import constants


def normalize(v):
    return v / np.linalg.norm(v)


def look_at(eye, center, up=constants.WORLD_UP):
    """
    Right-handed 4x4 view matrix (same convention as glm::lookAt).

    Rows of the rotation part are the camera's right, up and backward axes.
    """
    eye = np.asarray(eye, dtype=np.float64)
    center = np.asarray(center, dtype=np.float64)
    up = np.asarray(up, dtype=np.float64)

    f = normalize(center - eye)
    s = normalize(np.cross(f, up))
    u = np.cross(s, f)

    view = np.eye(4)
    view[0, :3] = s
    view[1, :3] = u
    view[2, :3] = -f
    view[0, 3] = -np.dot(s, eye)
    view[1, 3] = -np.dot(u, eye)
    view[2, 3] = np.dot(f, eye)
    return view


@dataclass(frozen=True, eq=False)
class CameraBasis:
    """
    World-space screen geometry for one render.

    Attributes:
        eye: (3,) ray origin for every primary ray
        rotation: (3, 3) view-to-world rotation
        top_left: (3,) direction to the top-left screen corner
        dx: (3,) step between horizontally adjacent pixels
        dy: (3,) step between vertically adjacent pixels (downwards)
        first: (3,) direction through the center of pixel (0, 0)
    """
    eye: np.ndarray
    rotation: np.ndarray
    top_left: np.ndarray
    dx: np.ndarray
    dy: np.ndarray
    first: np.ndarray


def build_camera_basis(eye, center, xres, yres, up=constants.WORLD_UP,
                       yview=constants.DEFAULT_YVIEW):
    """
    Compute the screen plane for an eye looking at ``center``.

    Args:
        eye: (3,) eye position
        center: (3,) look-at target, must differ from ``eye``
        xres, yres: Image resolution, ``yres`` must be non-zero
        up: World up vector
        yview: Vertical extent of the screen at unit distance

    Returns:
        CameraBasis
    """
    z = constants.SCREEN_DISTANCE
    y = z * 0.5 * yview
    x = y * (float(xres) / float(yres))

    top_left = np.array([-x, y, -z])
    dy = np.array([0.0, -2.0 * y, 0.0])
    dx = np.array([2.0 * x, 0.0, 0.0])

    # Inverse of an orthonormal rotation is its transpose
    rotation = look_at(eye, center, up)[:3, :3].T
    top_left = rotation @ top_left
    dy = (rotation @ dy) / yres
    dx = (rotation @ dx) / xres

    return CameraBasis(
        eye=np.asarray(eye, dtype=np.float64),
        rotation=rotation,
        top_left=top_left,
        dx=dx,
        dy=dy,
        first=top_left + 0.5 * (dx + dy),
    )


def primary_directions(basis, xres, yres):
    """
    Un-normalized ray directions through every pixel center.

    Returns:
        (yres, xres, 3) array; row 0 is the top of the image
    """
    rows = np.arange(yres, dtype=np.float64)
    cols = np.arange(xres, dtype=np.float64)
    return (basis.first[None, None, :]
            + rows[:, None, None] * basis.dy[None, None, :]
            + cols[None, :, None] * basis.dx[None, None, :])
