"""
Pixel color resolution: flat diffuse color, shadow rays and visible lights.
"""
from enum import Enum
import numpy as np
from meshcaster import constants


class ShadowPolicy(Enum):
    """How a pixel occluded from several lights picks its final color."""
    DARKEST = "darkest"  # darkest occluder color (by luma) wins, ties to the earlier light
    LAST = "last"        # the last occluded light in scene order wins

    @classmethod
    def parse(cls, value):
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            valid = [p.value for p in cls]
            raise ValueError(f"Unknown shadow policy {value!r}. Valid policies: {valid}") from None


def luma(colors):
    """Rec. 709 luma of (N, 3) colors."""
    return colors @ np.asarray(constants.LUMA_WEIGHTS)


def light_mask(eye, ray_directions, light_position, tolerance=constants.COLLINEAR_TOLERANCE):
    """
    Rays collinear with the eye->light vector.

    A ray counts when the cross product of its unit direction and the unit
    eye->light vector is shorter than ``tolerance``. Rays pointing directly
    away from the light count as well.

    Args:
        eye: (3,) common ray origin
        ray_directions: (N, 3) primary directions
        light_position: (3,) light position

    Returns:
        (N,) bool mask
    """
    to_light = np.asarray(light_position, dtype=np.float64) - eye
    with np.errstate(divide='ignore', invalid='ignore'):
        d = ray_directions / np.linalg.norm(ray_directions, axis=1, keepdims=True)
        l = to_light / np.linalg.norm(to_light)
        sine = np.linalg.norm(np.cross(d, l), axis=1)
        return sine < tolerance


class ShadowResolver:
    """
    Turns primary hits into pixel colors.

    For every primary hit, one shadow ray per light is cast from just above
    the hit point toward the light. An occluded pixel takes half of the
    nearest occluder's diffuse color. Rays collinear with a light are drawn
    white whatever they hit.
    """

    def __init__(self, intersector, policy=ShadowPolicy.DARKEST):
        self.intersector = intersector
        self.policy = ShadowPolicy.parse(policy)

    def shadow_colors(self, hit_points, lights):
        """
        Occlusion of each hit point.

        Args:
            hit_points: (N, 3) surface points
            lights: Sequence of Light

        Returns:
            tuple: (occluded (N,) bool, colors (N, 3) dimmed occluder colors)
        """
        n = hit_points.shape[0]
        occluded = np.zeros(n, dtype=bool)
        colors = np.zeros((n, 3))
        best_luma = np.full(n, np.inf)

        for light in lights:
            to_light = light.position[None, :] - hit_points
            origins = hit_points + constants.SHADOW_OFFSET * to_light
            blocked = self.intersector.intersect(origins, to_light, shadow=True).hit
            if not np.any(blocked):
                continue

            # The nearest occluder along the shadow ray gives the color
            nearest = self.intersector.intersect(origins[blocked], to_light[blocked])
            dimmed = np.zeros((n, 3))
            dimmed[blocked] = constants.OCCLUDER_DIM * nearest.color

            if self.policy is ShadowPolicy.LAST:
                update = blocked
            else:
                candidate = luma(dimmed)
                update = blocked & (candidate < best_luma)
                best_luma[update] = candidate[update]

            colors[update] = dimmed[update]
            occluded |= blocked

        return occluded, colors

    def resolve(self, eye, ray_directions, primary, lights, shadows=True):
        """
        Final colors for a batch of primary rays.

        Args:
            eye: (3,) primary ray origin
            ray_directions: (N, 3) primary directions
            primary: HitResult of the primary rays
            lights: Sequence of Light
            shadows: Whether to cast shadow rays

        Returns:
            (N, 3) float colors, not clamped
        """
        colors = primary.color.copy()

        if shadows and lights and np.any(primary.hit):
            hit_idx = np.flatnonzero(primary.hit)
            occluded, dimmed = self.shadow_colors(primary.point[hit_idx], lights)
            colors[hit_idx[occluded]] = dimmed[occluded]

        for light in lights:
            colors[light_mask(eye, ray_directions, light.position)] = constants.LIGHT_COLOR

        return colors
