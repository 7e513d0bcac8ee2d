"""
Numeric constants and defaults for the mesh ray caster.
"""

# Camera
WORLD_UP = (0.0, 1.0, 0.0)
DEFAULT_YVIEW = 1.0
SCREEN_DISTANCE = 1.0

# Intersection
EPSILON = 1e-12  # determinant threshold for parallel rays

# Shadows
SHADOW_OFFSET = 1e-4  # fraction of the hit->light vector
OCCLUDER_DIM = 0.5

# Light visualization
COLLINEAR_TOLERANCE = 0.005
LIGHT_COLOR = (1.0, 1.0, 1.0)

# Rec. 709 luma weights, used to rank shadow candidates
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)

# Image output
MAX_CHANNEL = 255
PPM_MAGIC = "P3"
DEFAULT_FORMAT = "png"
LOSSY_FORMATS = ("jpg", "jpeg")

# Acceleration
DEFAULT_ACCELERATOR = "linear"
DEFAULT_LEAF_SIZE = 4
DEFAULT_CHUNK_SIZE = 256
