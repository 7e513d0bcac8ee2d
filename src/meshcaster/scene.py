"""
Scene model consumed by the ray caster.

Meshes keep the layout produced by mesh importers (a vertex array plus a flat
index list read in groups of three). Before rendering, the scene is resolved
into a ``TriangleSoup``: one flat array of triangles where every triangle
refers back to its owning mesh by index.
"""
from dataclasses import dataclass, field
import numpy as np


def _as_rgb(value, name):
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != (3,):
        raise ValueError(f"{name} must be an RGB triple, got shape {arr.shape}")
    return arr


@dataclass(frozen=True, eq=False)
class Color:
    """
    Flat material of a mesh.

    Only ``diffuse`` takes part in shading; the other terms are carried so
    that importers can hand over complete materials.
    """
    diffuse: np.ndarray = field(default_factory=lambda: np.zeros(3))
    ambient: np.ndarray = field(default_factory=lambda: np.zeros(3))
    specular: np.ndarray = field(default_factory=lambda: np.zeros(3))
    emissive: np.ndarray = field(default_factory=lambda: np.zeros(3))
    shininess: float = 0.0

    def __post_init__(self):
        for name in ("diffuse", "ambient", "specular", "emissive"):
            object.__setattr__(self, name, _as_rgb(getattr(self, name), name))


@dataclass(frozen=True, eq=False)
class Light:
    """Point light. Only its position is used."""
    position: np.ndarray

    def __post_init__(self):
        position = np.asarray(self.position, dtype=np.float64)
        if position.shape != (3,):
            raise ValueError(f"position must be a 3-vector, got shape {position.shape}")
        object.__setattr__(self, "position", position)


@dataclass(frozen=True, eq=False)
class Mesh:
    """
    Indexed triangle mesh with a single flat color.

    Attributes:
        vertices: (V, 3) vertex positions
        indices: (3T,) flat index list, consumed three at a time
        color: Mesh material
        normals: Optional (V, 3) vertex normals (unused by the caster)
        texcoords: Optional (V, 2) texture coordinates (unused by the caster)
        name: Label used in logs
    """
    vertices: np.ndarray
    indices: np.ndarray
    color: Color = field(default_factory=Color)
    normals: np.ndarray | None = None
    texcoords: np.ndarray | None = None
    name: str = ""

    def __post_init__(self):
        vertices = np.asarray(self.vertices, dtype=np.float64).reshape(-1, 3)
        indices = np.asarray(self.indices, dtype=np.int64).ravel()
        object.__setattr__(self, "vertices", vertices)
        object.__setattr__(self, "indices", indices)

        if self.normals is not None:
            normals = np.asarray(self.normals, dtype=np.float64)
            if normals.shape != vertices.shape:
                raise ValueError(f"normals shape {normals.shape} doesn't match vertices shape {vertices.shape}")
            object.__setattr__(self, "normals", normals)
        if self.texcoords is not None:
            texcoords = np.asarray(self.texcoords, dtype=np.float64)
            if texcoords.shape != (vertices.shape[0], 2):
                raise ValueError(f"texcoords must be ({vertices.shape[0]}, 2), got shape {texcoords.shape}")
            object.__setattr__(self, "texcoords", texcoords)

    @classmethod
    def from_triangles(cls, triangles, color=None, name=""):
        """
        Build a mesh from an explicit (T, 3, 3) list of triangle corners.

        Every corner becomes its own vertex; indices are simply 0..3T-1.
        """
        corners = np.asarray(triangles, dtype=np.float64).reshape(-1, 3)
        return cls(
            vertices=corners,
            indices=np.arange(corners.shape[0]),
            color=color if color is not None else Color(),
            name=name,
        )

    @property
    def triangle_count(self):
        return self.indices.shape[0] // 3

    def triangles(self):
        """(T, 3, 3) array of triangle corners in index order."""
        usable = self.triangle_count * 3
        return self.vertices[self.indices[:usable]].reshape(-1, 3, 3)


@dataclass(frozen=True, eq=False)
class Scene:
    """
    Everything a render needs besides the camera.

    Attributes:
        meshes: Ordered meshes; order decides ties between equal-depth hits
        lights: Ordered point lights
        xres: Image width in pixels
        yres: Image height in pixels
        shadows: Whether shadow rays are cast for primary hits
    """
    meshes: tuple = ()
    lights: tuple = ()
    xres: int = 640
    yres: int = 480
    shadows: bool = True

    def __post_init__(self):
        object.__setattr__(self, "meshes", tuple(self.meshes))
        object.__setattr__(self, "lights", tuple(self.lights))

    @property
    def resolution(self):
        """(height, width), matching the framebuffer shape."""
        return self.yres, self.xres

    def with_resolution(self, xres, yres):
        return Scene(self.meshes, self.lights, xres, yres, self.shadows)

    def with_shadows(self, shadows):
        return Scene(self.meshes, self.lights, self.xres, self.yres, shadows)


@dataclass(frozen=True, eq=False)
class TriangleSoup:
    """
    Flat, read-only triangle arena built from a scene.

    Triangle ``i`` belongs to mesh ``mesh_index[i]``; triangles are stored in
    mesh order and then index order, which is the tie-break order of the
    intersection engine.

    Attributes:
        v0: (T, 3) first corner of each triangle
        edge1: (T, 3) v1 - v0
        edge2: (T, 3) v2 - v0
        mesh_index: (T,) owning mesh of each triangle
        colors: (M, 3) diffuse color per mesh
    """
    v0: np.ndarray
    edge1: np.ndarray
    edge2: np.ndarray
    mesh_index: np.ndarray
    colors: np.ndarray

    def __post_init__(self):
        n = self.v0.shape[0]
        for name in ("edge1", "edge2"):
            arr = getattr(self, name)
            if arr.shape != (n, 3):
                raise ValueError(f"{name} must be ({n}, 3), got shape {arr.shape}")
        if self.mesh_index.shape != (n,):
            raise ValueError(f"mesh_index shape {self.mesh_index.shape} doesn't match {n} triangles")

    @classmethod
    def from_scene(cls, scene):
        return cls.from_meshes(scene.meshes)

    @classmethod
    def from_meshes(cls, meshes):
        corners = [mesh.triangles() for mesh in meshes]
        owners = [np.full(c.shape[0], i, dtype=np.int64) for i, c in enumerate(corners)]

        if corners:
            tris = np.concatenate(corners, axis=0)
            mesh_index = np.concatenate(owners)
            colors = np.array([mesh.color.diffuse for mesh in meshes])
        else:
            tris = np.zeros((0, 3, 3))
            mesh_index = np.zeros(0, dtype=np.int64)
            colors = np.zeros((0, 3))

        return cls(
            v0=tris[:, 0, :].copy(),
            edge1=tris[:, 1, :] - tris[:, 0, :],
            edge2=tris[:, 2, :] - tris[:, 0, :],
            mesh_index=mesh_index,
            colors=colors,
        )

    def __len__(self):
        return self.v0.shape[0]

    @property
    def corners(self):
        """(T, 3, 3) reconstructed triangle corners."""
        return np.stack([self.v0, self.v0 + self.edge1, self.v0 + self.edge2], axis=1)

    def triangle_colors(self, triangle_ids):
        """Diffuse color of the mesh owning each triangle id."""
        return self.colors[self.mesh_index[triangle_ids]]
