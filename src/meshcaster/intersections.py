"""
Ray-geometry intersection kernels.

All kernels are vectorized with numpy and return ray parameters ``t`` (hit
point = origin + t * direction), using ``inf`` where there is no hit.
Directions do not need to be normalized.
"""
import numpy as np
from meshcaster import constants


def _dot(a, b):
    """Row-wise dot product over the last axis, evaluated the same way for any batch shape."""
    return a[..., 0] * b[..., 0] + a[..., 1] * b[..., 1] + a[..., 2] * b[..., 2]


def ray_triangle(origin, direction, v0, v1, v2, eps=constants.EPSILON):
    """
    Möller-Trumbore test of a single ray against a single triangle.

    Args:
        origin, direction: (3,) ray
        v0, v1, v2: (3,) triangle corners

    Returns:
        tuple: (hit, t, (u, v)) with barycentric coordinates of the hit
    """
    v0 = np.asarray(v0, dtype=np.float64)
    direction = np.asarray(direction, dtype=np.float64)
    edge1 = np.asarray(v1, dtype=np.float64) - v0
    edge2 = np.asarray(v2, dtype=np.float64) - v0

    pvec = np.cross(direction, edge2)
    det = _dot(edge1, pvec)
    if abs(det) < eps:
        return False, np.inf, (0.0, 0.0)
    inv_det = 1.0 / det

    tvec = np.asarray(origin, dtype=np.float64) - v0
    u = _dot(tvec, pvec) * inv_det
    if u < 0.0 or u > 1.0:
        return False, np.inf, (0.0, 0.0)

    qvec = np.cross(tvec, edge1)
    v = _dot(direction, qvec) * inv_det
    if v < 0.0 or u + v > 1.0:
        return False, np.inf, (0.0, 0.0)

    t = _dot(edge2, qvec) * inv_det
    if t <= 0.0:
        return False, np.inf, (u, v)
    return True, t, (u, v)


def intersect_triangles(ray_origins, ray_directions, v0, edge1, edge2, eps=constants.EPSILON):
    """
    Vectorized Möller-Trumbore for every ray against every triangle.

    Triangles are two-sided. A hit needs a non-degenerate determinant,
    barycentric coordinates inside the triangle and ``t > 0``.

    Args:
        ray_origins: (N, 3) or (3,) shared origin
        ray_directions: (N, 3) ray directions
        v0: (M, 3) first corners
        edge1: (M, 3) v1 - v0
        edge2: (M, 3) v2 - v0

    Returns:
        (N, M) array of ray parameters (inf where the ray misses)
    """
    ray_origins = np.asarray(ray_origins, dtype=np.float64)
    if ray_origins.ndim == 1:
        ray_origins = np.broadcast_to(ray_origins, ray_directions.shape)

    d = ray_directions[:, None, :]                        # (N, 1, 3)
    pvec = np.cross(d, edge2[None, :, :])                 # (N, M, 3)
    det = _dot(edge1[None, :, :], pvec)                   # (N, M)

    with np.errstate(divide='ignore', invalid='ignore'):
        inv_det = 1.0 / det
        tvec = ray_origins[:, None, :] - v0[None, :, :]    # (N, M, 3)
        u = _dot(tvec, pvec) * inv_det
        qvec = np.cross(tvec, edge1[None, :, :])
        v = _dot(d, qvec) * inv_det
        t = _dot(edge2[None, :, :], qvec) * inv_det

        valid = ((np.abs(det) >= eps) & (u >= 0.0) & (u <= 1.0)
                 & (v >= 0.0) & (u + v <= 1.0) & (t > 0.0))

    return np.where(valid, t, np.inf)


def ray_aabb(ray_origin, inv_direction, bbox_min, bbox_max, t_max=np.inf):
    """
    Slab test of one ray against a batch of axis-aligned boxes.

    Args:
        ray_origin: (3,) origin
        inv_direction: (3,) 1 / direction, inf on zero components
        bbox_min, bbox_max: (K, 3) box corners
        t_max: Boxes entered beyond this parameter are rejected

    Returns:
        tuple: (hit (K,) bool, t_enter (K,))
    """
    with np.errstate(invalid='ignore'):
        t1 = (bbox_min - ray_origin) * inv_direction
        t2 = (bbox_max - ray_origin) * inv_direction
        # 0 * inf on a parallel axis gives nan; such an origin lies on the slab
        t1 = np.where(np.isnan(t1), -np.inf, t1)
        t2 = np.where(np.isnan(t2), np.inf, t2)

    t_near = np.minimum(t1, t2).max(axis=-1)
    t_far = np.maximum(t1, t2).min(axis=-1)
    t_enter = np.maximum(t_near, 0.0)
    hit = (t_enter <= t_far) & (t_enter <= t_max)
    return hit, t_enter


def inverse_direction(direction):
    """Per-axis reciprocal with IEEE infinities for zero components."""
    with np.errstate(divide='ignore'):
        return 1.0 / np.asarray(direction, dtype=np.float64)
