"""
Pytest fixtures and helpers shared by the ray caster tests.
"""

import numpy as np
import pytest
from meshcaster.scene import Color, Light, Mesh, Scene


RED = np.array([0.9, 0.2, 0.2])
GREEN = np.array([0.2, 0.8, 0.3])
BLUE = np.array([0.2, 0.3, 0.9])
GREY = np.array([0.7, 0.7, 0.7])


def backdrop(depth, diffuse, name=""):
    """A single triangle at constant z that fills any view from the origin down -z."""
    triangle = [[-50.0, -50.0, depth], [50.0, -50.0, depth], [0.0, 50.0, depth]]
    return Mesh.from_triangles([triangle], color=Color(diffuse=diffuse), name=name)


def make_scene(meshes=(), lights=(), xres=8, yres=6, shadows=False):
    return Scene(meshes=meshes, lights=[Light(p) for p in lights], xres=xres, yres=yres, shadows=shadows)


def assert_color_close(actual, expected, rtol=1e-6, atol=1e-6, err_msg=""):
    """Assert that two colors are close, with helpful error messages."""
    np.testing.assert_allclose(
        actual, expected, rtol=rtol, atol=atol,
        err_msg=f"Color mismatch: {err_msg}"
    )


@pytest.fixture
def origin():
    """Eye position used by most scenes."""
    return np.array([0.0, 0.0, 0.0])


@pytest.fixture
def forward():
    """Look-at target straight down -z from the origin."""
    return np.array([0.0, 0.0, -1.0])


@pytest.fixture
def unit_triangle():
    """Right triangle in the z = 0 plane."""
    return np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])


@pytest.fixture
def random_soup_meshes():
    """Reproducible cloud of small triangles spread over several meshes."""
    rng = np.random.default_rng(1234)
    meshes = []
    for i in range(5):
        centers = rng.uniform(-4.0, 4.0, size=(40, 1, 3)) + np.array([0.0, 0.0, -8.0])
        corners = centers + rng.uniform(-0.8, 0.8, size=(40, 3, 3))
        meshes.append(Mesh.from_triangles(corners, color=Color(diffuse=rng.uniform(0.0, 1.0, 3)),
                                          name=f"cloud{i}"))
    return meshes


@pytest.fixture
def random_rays():
    """Rays from around the origin toward the triangle cloud."""
    rng = np.random.default_rng(99)
    origins = rng.uniform(-1.0, 1.0, size=(300, 3))
    targets = rng.uniform(-5.0, 5.0, size=(300, 3)) + np.array([0.0, 0.0, -8.0])
    return origins, targets - origins
