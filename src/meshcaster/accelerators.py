"""
Intersection engines: nearest-hit and occlusion queries over a triangle soup.

Two interchangeable implementations share one contract:

- ``LinearScan`` tests every triangle (the reference behavior).
- ``BVHIntersector`` walks a bounding volume hierarchy over the same
  triangles and returns the same nearest hits.

Nearest hits pick the smallest ray parameter ``t``; equal ``t`` resolves to
the lowest triangle index, i.e. the triangle that comes first in mesh/index
order. Shadow queries stop at the first triangle found.
"""
from dataclasses import dataclass
import logging
import numpy as np
from meshcaster import constants
from meshcaster.intersections import intersect_triangles, ray_aabb, inverse_direction

logger = logging.getLogger(__name__)

# Upper bound on rays x triangles evaluated in one vectorized block
_PAIR_BUDGET = 1 << 20


@dataclass
class HitResult:
    """
    Result of intersecting N rays with the scene.

    Attributes:
        hit: (N,) whether anything was hit
        distance: (N,) ray parameter of the hit, inf on miss
        triangle: (N,) index of the hit triangle in the soup, -1 on miss
        color: (N, 3) diffuse color of the owning mesh, black on miss
        point: (N, 3) hit position, nan on miss
    """
    hit: np.ndarray
    distance: np.ndarray
    triangle: np.ndarray
    color: np.ndarray
    point: np.ndarray

    def __post_init__(self):
        """Validate array shapes."""
        if self.hit.ndim != 1:
            raise ValueError(f"hit must be 1D array, got shape {self.hit.shape}")
        n_rays = self.hit.shape[0]
        if self.distance.shape != (n_rays,):
            raise ValueError(f"distance shape {self.distance.shape} doesn't match hit shape {self.hit.shape}")
        if self.triangle.shape != (n_rays,):
            raise ValueError(f"triangle shape {self.triangle.shape} doesn't match hit shape {self.hit.shape}")
        if self.color.shape != (n_rays, 3):
            raise ValueError(f"color must be (N,3) array, got shape {self.color.shape}")
        if self.point.shape != (n_rays, 3):
            raise ValueError(f"point must be (N,3) array, got shape {self.point.shape}")

    def __len__(self):
        return self.hit.shape[0]


class Intersector:
    """
    Base class for intersection engines.

    Subclasses implement ``_query`` on batched rays and return
    ``(distance, triangle)`` arrays; this class handles single-ray inputs and
    assembles the ``HitResult``.
    """

    name = "base"

    def __init__(self, soup):
        self.soup = soup

    def intersect(self, ray_origins, ray_directions, shadow=False):
        """
        Intersect rays with every triangle.

        Args:
            ray_origins: (3,) shared origin or (N, 3) per-ray origins
            ray_directions: (3,) single ray or (N, 3) batch
            shadow: Stop at the first triangle found instead of the nearest

        Returns:
            HitResult with N entries (N = 1 for a single ray)
        """
        ray_directions = np.asarray(ray_directions, dtype=np.float64)
        ray_origins = np.asarray(ray_origins, dtype=np.float64)
        if ray_directions.ndim == 1:
            ray_directions = ray_directions[None, :]
            if ray_origins.ndim == 2:
                ray_origins = ray_origins[:1]
        if ray_origins.ndim == 1:
            ray_origins = np.broadcast_to(ray_origins, ray_directions.shape)

        n_rays = ray_directions.shape[0]
        if len(self.soup) == 0 or n_rays == 0:
            distance = np.full(n_rays, np.inf)
            triangle = np.full(n_rays, -1, dtype=np.int64)
        else:
            distance, triangle = self._query(ray_origins, ray_directions, shadow)

        hit = triangle >= 0
        color = np.zeros((n_rays, 3))
        point = np.full((n_rays, 3), np.nan)
        if np.any(hit):
            color[hit] = self.soup.triangle_colors(triangle[hit])
            point[hit] = ray_origins[hit] + distance[hit, None] * ray_directions[hit]

        return HitResult(hit=hit, distance=distance, triangle=triangle, color=color, point=point)

    def _query(self, ray_origins, ray_directions, shadow):
        raise NotImplementedError


class LinearScan(Intersector):
    """Brute force: every ray against every triangle."""

    name = "linear"

    def __init__(self, soup, chunk_size=constants.DEFAULT_CHUNK_SIZE):
        super().__init__(soup)
        self.chunk_size = chunk_size

    def _query(self, ray_origins, ray_directions, shadow):
        n_rays = ray_directions.shape[0]
        n_tris = len(self.soup)
        step = max(1, min(self.chunk_size, _PAIR_BUDGET // n_tris))

        distance = np.full(n_rays, np.inf)
        triangle = np.full(n_rays, -1, dtype=np.int64)

        for start in range(0, n_rays, step):
            stop = min(start + step, n_rays)
            t = intersect_triangles(ray_origins[start:stop], ray_directions[start:stop],
                                    self.soup.v0, self.soup.edge1, self.soup.edge2)
            rows = np.arange(stop - start)

            if shadow:
                # First triangle in iteration order that is hit at all
                hits = np.isfinite(t)
                idx = np.argmax(hits, axis=1)
                found = hits[rows, idx]
            else:
                # argmin keeps the first index among equal minima
                idx = np.argmin(t, axis=1)
                found = np.isfinite(t[rows, idx])

            distance[start:stop] = np.where(found, t[rows, idx], np.inf)
            triangle[start:stop] = np.where(found, idx, -1)

        return distance, triangle


# Node layout of the flattened hierarchy
_CHILD_OR_START = 0
_COUNT_OR_RIGHT = 1


class BVHIntersector(Intersector):
    """
    Bounding volume hierarchy over the triangle soup.

    Nodes are stored in flat arrays. ``links[i, _COUNT_OR_RIGHT] < 0`` marks
    a leaf holding ``-count`` triangles of ``order`` starting at
    ``links[i, _CHILD_OR_START]``; otherwise the two entries are the left and
    right child node indices.
    """

    name = "bvh"

    def __init__(self, soup, leaf_size=constants.DEFAULT_LEAF_SIZE):
        super().__init__(soup)
        self.leaf_size = max(1, int(leaf_size))
        self._build()

    def _build(self):
        n_tris = len(self.soup)
        corners = self.soup.corners
        tri_min = corners.min(axis=1)
        tri_max = corners.max(axis=1)
        # Pad boxes so hits on a box face survive rounding in the slab test
        pad = 1e-9 * (1.0 + np.maximum(np.abs(tri_min), np.abs(tri_max)))
        tri_min = tri_min - pad
        tri_max = tri_max + pad
        centroids = corners.mean(axis=1)

        order = np.arange(n_tris, dtype=np.int64)
        max_nodes = max(1, 2 * n_tris)
        bbox_min = np.zeros((max_nodes, 3))
        bbox_max = np.zeros((max_nodes, 3))
        links = np.zeros((max_nodes, 2), dtype=np.int64)
        node_count = 0

        def allocate():
            nonlocal node_count
            node_count += 1
            return node_count - 1

        def build(start, end):
            node = allocate()
            subset = order[start:end]
            bbox_min[node] = tri_min[subset].min(axis=0)
            bbox_max[node] = tri_max[subset].max(axis=0)
            count = end - start

            if count <= self.leaf_size:
                links[node] = (start, -count)
                return node

            # Median split along the widest centroid axis
            c = centroids[subset]
            axis = int(np.argmax(c.max(axis=0) - c.min(axis=0)))
            order[start:end] = subset[np.argsort(c[:, axis], kind='stable')]
            mid = (start + end) // 2

            left = build(start, mid)
            right = build(mid, end)
            links[node] = (left, right)
            return node

        if n_tris:
            build(0, n_tris)

        self.order = order
        self.bbox_min = bbox_min[:node_count].copy()
        self.bbox_max = bbox_max[:node_count].copy()
        self.links = links[:node_count].copy()
        logger.debug("BVH built: %d nodes over %d triangles (leaf size %d)",
                     node_count, n_tris, self.leaf_size)

    def _query(self, ray_origins, ray_directions, shadow):
        n_rays = ray_directions.shape[0]
        distance = np.full(n_rays, np.inf)
        triangle = np.full(n_rays, -1, dtype=np.int64)
        for i in range(n_rays):
            distance[i], triangle[i] = self._trace(ray_origins[i], ray_directions[i], shadow)
        return distance, triangle

    def _trace(self, origin, direction, shadow):
        soup = self.soup
        inv_dir = inverse_direction(direction)
        best_t = np.inf
        best_id = -1

        hit, t_enter = ray_aabb(origin, inv_dir, self.bbox_min[:1], self.bbox_max[:1])
        if not hit[0]:
            return best_t, best_id
        stack = [(0, t_enter[0])]

        while stack:
            node, entry = stack.pop()
            # Boxes entered exactly at best_t may still hold an earlier triangle
            if entry > best_t:
                continue

            first, second = self.links[node]
            if second < 0:
                ids = self.order[first:first - second]
                t = intersect_triangles(origin, direction[None, :], soup.v0[ids],
                                        soup.edge1[ids], soup.edge2[ids])[0]
                finite = np.isfinite(t)
                if not np.any(finite):
                    continue
                if shadow:
                    k = int(np.argmax(finite))
                    return t[k], int(ids[k])
                t_leaf = t.min()
                id_leaf = int(ids[t == t_leaf].min())
                if t_leaf < best_t or (t_leaf == best_t and id_leaf < best_id):
                    best_t, best_id = t_leaf, id_leaf
                continue

            children = np.array([first, second])
            hit, t_enter = ray_aabb(origin, inv_dir, self.bbox_min[children],
                                    self.bbox_max[children], best_t)
            # Push the farther child first so the nearer one is visited next
            for k in np.argsort(-t_enter, kind='stable'):
                if hit[k]:
                    stack.append((int(children[k]), t_enter[k]))

        return best_t, best_id


INTERSECTORS = {
    LinearScan.name: LinearScan,
    BVHIntersector.name: BVHIntersector,
}


def create_intersector(soup, kind=constants.DEFAULT_ACCELERATOR,
                       leaf_size=constants.DEFAULT_LEAF_SIZE,
                       chunk_size=constants.DEFAULT_CHUNK_SIZE):
    """
    Build the intersection engine named ``kind`` ("linear" or "bvh").
    """
    if kind == LinearScan.name:
        return LinearScan(soup, chunk_size=chunk_size)
    if kind == BVHIntersector.name:
        return BVHIntersector(soup, leaf_size=leaf_size)
    raise ValueError(f"Unknown accelerator {kind!r}. Valid accelerators: {sorted(INTERSECTORS)}")
