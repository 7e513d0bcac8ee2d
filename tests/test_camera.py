import numpy as np
import pytest
from meshcaster.camera import build_camera_basis, look_at, primary_directions


def test_look_at_identity_down_negative_z(origin, forward):
    view = look_at(origin, forward)
    np.testing.assert_allclose(view, np.eye(4), atol=1e-12)


def test_look_at_translation():
    eye = np.array([1.0, 2.0, 3.0])
    view = look_at(eye, eye + np.array([0.0, 0.0, -1.0]))
    # The eye maps to the view-space origin
    np.testing.assert_allclose(view @ np.append(eye, 1.0), [0.0, 0.0, 0.0, 1.0], atol=1e-12)


def test_basis_screen_geometry(origin, forward):
    basis = build_camera_basis(origin, forward, xres=8, yres=4)
    # Half height 0.5, half width scaled by the 2:1 aspect ratio
    np.testing.assert_allclose(basis.top_left, [-1.0, 0.5, -1.0])
    np.testing.assert_allclose(basis.dx, [2.0 / 8, 0.0, 0.0])
    np.testing.assert_allclose(basis.dy, [0.0, -1.0 / 4, 0.0])
    np.testing.assert_allclose(basis.first, basis.top_left + 0.5 * (basis.dx + basis.dy))


def test_yview_scales_screen_height(origin, forward):
    basis = build_camera_basis(origin, forward, xres=4, yres=4, yview=2.0)
    np.testing.assert_allclose(basis.top_left, [-1.0, 1.0, -1.0])


def test_center_pixel_looks_at_target(origin, forward):
    directions = primary_directions(build_camera_basis(origin, forward, 3, 3), 3, 3)
    assert directions.shape == (3, 3, 3)
    np.testing.assert_allclose(directions[1, 1], [0.0, 0.0, -1.0], atol=1e-12)


def test_rows_go_down_and_columns_go_right(origin, forward):
    directions = primary_directions(build_camera_basis(origin, forward, 5, 5), 5, 5)
    assert directions[0, 2, 1] > directions[4, 2, 1]
    assert directions[2, 0, 0] < directions[2, 4, 0]


def test_pixel_centers_are_symmetric(origin, forward):
    directions = primary_directions(build_camera_basis(origin, forward, 4, 2), 4, 2)
    np.testing.assert_allclose(directions[0, 0, :2], -directions[1, 3, :2], atol=1e-12)


@pytest.mark.parametrize("target,expected_right", [
    ([1.0, 0.0, 0.0], [0.0, 0.0, 1.0]),
    ([0.0, 0.0, 1.0], [-1.0, 0.0, 0.0]),
])
def test_rotated_basis(origin, target, expected_right):
    target = np.array(target)
    basis = build_camera_basis(origin, target, 3, 3)
    directions = primary_directions(basis, 3, 3)
    np.testing.assert_allclose(directions[1, 1], target, atol=1e-12)
    # Right-handed: the screen's x axis points to the camera's right
    right = basis.dx / np.linalg.norm(basis.dx)
    np.testing.assert_allclose(right, expected_right, atol=1e-12)


def test_basis_is_orthonormal():
    basis = build_camera_basis([3.0, 2.0, 1.0], [0.0, 0.5, -2.0], 10, 10)
    np.testing.assert_allclose(basis.rotation @ basis.rotation.T, np.eye(3), atol=1e-12)
