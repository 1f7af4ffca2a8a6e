import colorsys
import math
from typing import Tuple

import numpy as np

from .config import EXTREME_BRIGHTNESS_RANGE, EXTREME_SATURATION_RANGE, EXTREME_VALUE_RANGE
from .parameters import ClassificationParameters


def rgb_to_hsv(r: int, g: int, b: int) -> Tuple[float, float, float]:
    """Convert 0-255 RGB to HSV with h in [0, 1), s and v in [0, 1]."""
    return colorsys.rgb_to_hsv(r / 255.0, g / 255.0, b / 255.0)


def _extreme_floors(params: ClassificationParameters) -> Tuple[float, float, float]:
    f = params.extreme_factor
    brightness_floor = EXTREME_BRIGHTNESS_RANGE[0] + f * EXTREME_BRIGHTNESS_RANGE[1]
    saturation_floor = EXTREME_SATURATION_RANGE[0] + f * EXTREME_SATURATION_RANGE[1]
    value_floor = EXTREME_VALUE_RANGE[0] + f * EXTREME_VALUE_RANGE[1]
    return brightness_floor, saturation_floor, value_floor


def is_background(r: int, g: int, b: int, params: ClassificationParameters) -> bool:
    """
    Decide whether a single pixel looks like background.

    Any one of the heuristics below is enough:
      1) bright and unsaturated in HSV
      2) bright and close to white in RGB
      3) near-gray (uniform channels) and bright
      4) extreme mode (aggressiveness > 0.8): anything that is not very dark
    """
    _, s, v = rgb_to_hsv(r, g, b)
    value = round(v * 255)
    brightness = (r + g + b) / 3.0

    if value >= params.value_threshold and s <= params.saturation_threshold:
        return True

    if brightness >= params.brightness_threshold:
        dist_to_white = math.sqrt((255 - r) ** 2 + (255 - g) ** 2 + (255 - b) ** 2)
        if dist_to_white <= params.distance_threshold:
            return True

    max_diff = max(abs(r - g), abs(g - b), abs(b - r))
    if max_diff <= params.uniform_threshold and brightness >= params.uniform_brightness:
        return True

    if params.extreme_mode:
        brightness_floor, saturation_floor, value_floor = _extreme_floors(params)
        if brightness >= brightness_floor:
            return True
        if s >= saturation_floor and brightness > params.dark_cutoff:
            return True
        if value >= value_floor and brightness > params.dark_cutoff:
            return True

    return False


def classify_pixels(rgb: np.ndarray, params: ClassificationParameters) -> np.ndarray:
    """
    Vectorized `is_background` over a whole image.

    Args:
        rgb: uint8 array (H, W, 3) or (H, W, 4); alpha is ignored

    Returns:
        bool array (H, W)
    """
    if rgb.ndim != 3 or rgb.shape[2] not in (3, 4):
        raise ValueError(f"Expected (H,W,3) or (H,W,4) image, got shape={rgb.shape}")

    channels = rgb[..., :3].astype(np.int32)
    r, g, b = channels[..., 0], channels[..., 1], channels[..., 2]

    # Same float operations as colorsys so both paths agree at the boundaries.
    scaled = channels / 255.0
    maxc = scaled.max(axis=-1)
    minc = scaled.min(axis=-1)
    with np.errstate(divide="ignore", invalid="ignore"):
        s = np.where(maxc > 0, (maxc - minc) / maxc, 0.0)
    value = channels.max(axis=-1)
    brightness = (r + g + b) / 3.0

    background = (value >= params.value_threshold) & (s <= params.saturation_threshold)

    dist_to_white = np.sqrt((255 - r) ** 2 + (255 - g) ** 2 + (255 - b) ** 2)
    background |= (brightness >= params.brightness_threshold) & (dist_to_white <= params.distance_threshold)

    max_diff = np.maximum(np.maximum(np.abs(r - g), np.abs(g - b)), np.abs(b - r))
    background |= (max_diff <= params.uniform_threshold) & (brightness >= params.uniform_brightness)

    if params.extreme_mode:
        brightness_floor, saturation_floor, value_floor = _extreme_floors(params)
        not_dark = brightness > params.dark_cutoff
        background |= brightness >= brightness_floor
        background |= (s >= saturation_floor) & not_dark
        background |= (value >= value_floor) & not_dark

    return background
