"""
Built-in demo scenes.

Scene files are loaded by external importers; these scenes are built in code
so the caster can be exercised from the command line and the UI.
"""
from dataclasses import dataclass
import numpy as np
from meshcaster.scene import Color, Light, Mesh, Scene

RED = Color(diffuse=[0.9, 0.2, 0.2])
GREEN = Color(diffuse=[0.2, 0.8, 0.3])
BLUE = Color(diffuse=[0.2, 0.3, 0.9])
GREY = Color(diffuse=[0.7, 0.7, 0.7])
YELLOW = Color(diffuse=[0.9, 0.8, 0.2])


@dataclass(frozen=True, eq=False)
class DemoScene:
    """A scene together with a camera that frames it."""
    scene: Scene
    eye: np.ndarray
    center: np.ndarray
    yview: float = 1.0


def quad_mesh(corners, color, name=""):
    """Two triangles over four corners given counter-clockwise."""
    a, b, c, d = np.asarray(corners, dtype=np.float64)
    return Mesh.from_triangles([[a, b, c], [a, c, d]], color=color, name=name)


def box_mesh(center, size, color, name=""):
    """Axis-aligned cube made of 12 triangles sharing 8 vertices."""
    h = 0.5 * size
    offsets = np.array([[x, y, z] for x in (-h, h) for y in (-h, h) for z in (-h, h)])
    vertices = np.asarray(center, dtype=np.float64) + offsets
    faces = [
        (0, 1, 3), (0, 3, 2),  # -x
        (4, 6, 7), (4, 7, 5),  # +x
        (0, 4, 5), (0, 5, 1),  # -y
        (2, 3, 7), (2, 7, 6),  # +y
        (0, 2, 6), (0, 6, 4),  # -z
        (1, 5, 7), (1, 7, 3),  # +z
    ]
    return Mesh(vertices=vertices, indices=np.array(faces).ravel(), color=color, name=name)


def floor_mesh(size, height, color, name="floor"):
    h = 0.5 * size
    return quad_mesh([[-h, height, -h], [-h, height, h], [h, height, h], [h, height, -h]],
                     color, name=name)


def quad_scene(xres=64, yres=48, shadows=False, depth=-5.0, color=GREY):
    """One triangle covering the whole view at a fixed depth, eye at the origin."""
    triangle = [[-50.0, -50.0, depth], [50.0, -50.0, depth], [0.0, 50.0, depth]]
    mesh = Mesh.from_triangles([triangle], color=color, name="backdrop")
    scene = Scene(meshes=[mesh], lights=[], xres=xres, yres=yres, shadows=shadows)
    return DemoScene(scene, eye=np.zeros(3), center=np.array([0.0, 0.0, -1.0]))


def box_scene(xres=320, yres=240, shadows=True):
    """A cube floating above a floor with one light above it."""
    meshes = [
        box_mesh([0.0, 1.0, 0.0], 1.0, RED, name="cube"),
        floor_mesh(10.0, 0.0, GREY),
    ]
    lights = [Light([0.5, 4.0, 0.5])]
    scene = Scene(meshes=meshes, lights=lights, xres=xres, yres=yres, shadows=shadows)
    return DemoScene(scene, eye=np.array([0.0, 3.0, 6.0]), center=np.array([0.0, 0.5, 0.0]))


def showcase_scene(xres=320, yres=240, shadows=True):
    """Three colored cubes, a floor and two lights, one of them in view."""
    meshes = [
        box_mesh([-1.5, 0.5, 0.0], 1.0, RED, name="red"),
        box_mesh([0.0, 0.75, -1.0], 1.5, GREEN, name="green"),
        box_mesh([1.5, 0.4, 0.5], 0.8, BLUE, name="blue"),
        floor_mesh(12.0, 0.0, GREY),
    ]
    lights = [Light([-2.0, 5.0, 2.0]), Light([2.5, 2.5, -3.0])]
    scene = Scene(meshes=meshes, lights=lights, xres=xres, yres=yres, shadows=shadows)
    return DemoScene(scene, eye=np.array([0.0, 2.5, 7.0]), center=np.array([0.0, 0.75, 0.0]),
                     yview=1.2)


SCENES = {
    "quad": quad_scene,
    "box": box_scene,
    "showcase": showcase_scene,
}


def load_demo(name, xres, yres, shadows=True):
    """Build the demo scene ``name`` at the given resolution."""
    try:
        factory = SCENES[name]
    except KeyError:
        raise ValueError(f"Unknown scene {name!r}. Valid scenes: {sorted(SCENES)}") from None
    return factory(xres=xres, yres=yres, shadows=shadows)
