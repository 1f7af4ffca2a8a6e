"""
Centralized configuration constants for the border-flood background remover.

Every derived threshold interpolates linearly between a conservative bound
(aggressiveness 0: only near-pure white is removed) and a permissive bound
(aggressiveness 1).
"""

# Aggressiveness slider as exposed to users (0-100), mapped to 0..1 internally.
SLIDER_MIN = 0
SLIDER_MAX = 100
DEFAULT_AGGRESSIVENESS = 50

# (base, span) pairs: threshold = base + aggressiveness * span
BRIGHTNESS_RANGE = (200, 55)
DISTANCE_RANGE = (20, 235)
VALUE_RANGE = (200, 55)
SATURATION_RANGE = (0.05, 0.95)
UNIFORM_RANGE = (5, 95)
UNIFORM_BRIGHTNESS_RANGE = (180, 75)
MORPHOLOGICAL_RADIUS_RANGE = (1, 5)

# Extreme mode kicks in strictly above this aggressiveness.
EXTREME_MODE_START = 0.8
EXTREME_BRIGHTNESS_RANGE = (30, 225)
EXTREME_SATURATION_RANGE = (0.05, 0.95)
EXTREME_VALUE_RANGE = (20, 235)

# NOTE: some variants of the heuristic used 50 here; 20 keeps more dark
# saturated detail removable at high aggressiveness.
EXTREME_DARK_CUTOFF = 20

DEFAULT_FEATHER_RADIUS = 0
MAX_RADIUS = 32

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tif", ".tiff"}
