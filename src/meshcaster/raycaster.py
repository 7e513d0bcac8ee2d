import logging
import sys
import time
import numpy as np
from meshcaster import constants
from meshcaster import export
from meshcaster.accelerators import create_intersector
from meshcaster.camera import build_camera_basis, primary_directions
from meshcaster.config import RenderConfig
from meshcaster.framebuffer import Framebuffer
from meshcaster.scene import TriangleSoup
from meshcaster.shading import ShadowResolver

logger = logging.getLogger(__name__)


class RayCaster:
    def __init__(self, scene, config=None):
        """
        Prepare a scene for rendering.

        The scene is flattened into a triangle soup and the intersection
        engine is built once; every ``ray_trace`` call reuses them until
        ``scene`` is assigned again.

        Args:
            scene: Scene to render, treated as read-only
            config: RenderConfig, defaults to a linear scan with darkest-wins shadows
        """
        self.config = config if config is not None else RenderConfig()
        self.scene = scene

    @property
    def scene(self):
        return self._scene

    @scene.setter
    def scene(self, scene):
        """Replace the scene; geometry, engine and framebuffer are rebuilt for it."""
        self._scene = scene
        self.soup = TriangleSoup.from_scene(scene)
        self.intersector = create_intersector(
            self.soup, self.config.accelerator,
            leaf_size=self.config.bvh_leaf_size,
            chunk_size=self.config.chunk_size,
        )
        self.resolver = ShadowResolver(self.intersector, self.config.shadow_policy)
        self.framebuffer = Framebuffer(scene.xres, scene.yres)

    @property
    def pixels(self):
        """(yres, xres, 3) float colors of the last render, top row first."""
        return self.framebuffer.pixels

    @property
    def data(self):
        """Flat RGB bytes of the last render, bottom image row first."""
        return self.framebuffer.data

    def ray_trace(self, eye, center, up=constants.WORLD_UP, yview=constants.DEFAULT_YVIEW):
        """
        Render the scene from ``eye`` looking at ``center`` into the framebuffer.

        Args:
            eye: (3,) eye position
            center: (3,) look-at target (must differ from eye)
            up: World up vector
            yview: Vertical screen extent at unit distance (field of view scale)
        """
        scene = self.scene
        t0 = time.perf_counter()
        eye = np.asarray(eye, dtype=np.float64)
        basis = build_camera_basis(eye, center, scene.xres, scene.yres, up=up, yview=yview)
        directions = primary_directions(basis, scene.xres, scene.yres).reshape(-1, 3)

        colors = np.zeros_like(directions)
        step = self.config.chunk_size
        for start in range(0, directions.shape[0], step):
            batch = directions[start:start + step]
            primary = self.intersector.intersect(eye, batch)
            colors[start:start + step] = self.resolver.resolve(
                eye, batch, primary, scene.lights, shadows=scene.shadows)

        self.framebuffer.write(colors)
        logger.info("Rendered %dx%d (%d triangles, %d lights, %s) in %.2fs",
                    scene.xres, scene.yres, len(self.soup), len(scene.lights),
                    self.intersector.name, time.perf_counter() - t0)

    def render(self, eye, center, up=constants.WORLD_UP, yview=constants.DEFAULT_YVIEW):
        """Ray trace and return the (yres, xres, 3) uint8 image, top row first."""
        self.ray_trace(eye, center, up=up, yview=yview)
        return self.framebuffer.bytes()

    def normalize_image(self, max_value=None):
        """Scale the last render so its brightest channel (or ``max_value``) maps to 1."""
        self.framebuffer.normalize(max_value)

    def print_ppm(self, stream=None):
        """Write the last render as text PPM (default: standard output)."""
        export.write_ppm(self.framebuffer, stream if stream is not None else sys.stdout)

    def export_image(self, filename, fmt=constants.DEFAULT_FORMAT):
        """Save the last render to ``filename``; returns False on failure."""
        return export.export_image(self.framebuffer, filename, fmt)
