"""
Render configuration.
"""
from dataclasses import dataclass
from meshcaster import constants
from meshcaster.accelerators import INTERSECTORS
from meshcaster.shading import ShadowPolicy


@dataclass
class RenderConfig:
    """
    Options that change how a render is computed, not what it shows.

    Attributes:
        accelerator: Intersection engine, "linear" or "bvh"
        shadow_policy: Color choice for pixels occluded from several lights
        bvh_leaf_size: Maximum triangles per BVH leaf
        chunk_size: Rays per vectorized batch
    """
    accelerator: str = constants.DEFAULT_ACCELERATOR
    shadow_policy: ShadowPolicy = ShadowPolicy.DARKEST
    bvh_leaf_size: int = constants.DEFAULT_LEAF_SIZE
    chunk_size: int = constants.DEFAULT_CHUNK_SIZE

    def __post_init__(self):
        self.accelerator = str(self.accelerator).lower()
        if self.accelerator not in INTERSECTORS:
            raise ValueError(f"Unknown accelerator {self.accelerator!r}. "
                             f"Valid accelerators: {sorted(INTERSECTORS)}")
        self.shadow_policy = ShadowPolicy.parse(self.shadow_policy)
        if self.bvh_leaf_size < 1:
            raise ValueError(f"bvh_leaf_size must be positive, got {self.bvh_leaf_size}")
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
