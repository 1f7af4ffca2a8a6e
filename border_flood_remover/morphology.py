from __future__ import annotations

import cv2
import numpy as np

from .errors import InvalidParameterError
from .pixel_buffer import validate_mask


def _square_kernel(radius: int) -> np.ndarray:
    k = 2 * radius + 1
    return cv2.getStructuringElement(cv2.MORPH_RECT, (k, k))


def _check_radius(radius) -> int:
    if isinstance(radius, bool) or not isinstance(radius, (int, np.integer)) or radius < 0:
        raise InvalidParameterError(f"radius must be a non-negative integer, got {radius!r}")
    return int(radius)


def dilate(mask: np.ndarray, radius: int) -> np.ndarray:
    """
    Mark every pixel that has a masked pixel within `radius` (Chebyshev).

    Pixels outside the image never contribute.
    """
    m8 = mask.astype(np.uint8)
    # OpenCV's default border value leaves dilation unaffected by the outside.
    return cv2.dilate(m8, _square_kernel(radius), iterations=1).astype(bool)


def erode(mask: np.ndarray, radius: int) -> np.ndarray:
    """
    Unmark every pixel that has an unmasked pixel within `radius`.

    Pixels outside the image never erode the mask.
    """
    m8 = mask.astype(np.uint8)
    return cv2.erode(m8, _square_kernel(radius), iterations=1).astype(bool)


def close_mask(mask: np.ndarray, width: int, height: int, radius: int) -> np.ndarray:
    """
    Binary closing (dilate, then erode) over a (2r+1)x(2r+1) square.

    Fills holes and gaps narrower than the window inside the background
    region while keeping its outer extent. Radius 0 returns an unchanged copy.
    """
    radius = _check_radius(radius)
    mask = validate_mask(mask, width, height)
    if radius == 0:
        return mask.copy()
    return erode(dilate(mask, radius), radius)


def feather_mask(mask: np.ndarray, width: int, height: int, radius: int) -> np.ndarray:
    """
    Grow the background mask by `radius` pixels along its boundary.

    A single dilation pass (no erosion afterwards). Radius 0 returns an
    unchanged copy.
    """
    radius = _check_radius(radius)
    mask = validate_mask(mask, width, height)
    if radius == 0:
        return mask.copy()
    return dilate(mask, radius)
