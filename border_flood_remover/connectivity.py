from __future__ import annotations

import logging

import cv2
import numpy as np

from .classifier import classify_pixels
from .parameters import ClassificationParameters
from .pixel_buffer import as_pixel_array

logger = logging.getLogger(__name__)


def border_connected(candidates: np.ndarray) -> np.ndarray:
    """
    Keep only the candidate pixels reachable from the image border.

    Equivalent to a breadth-first flood fill seeded with every candidate on
    the four borders and expanding through 8-connected candidates; the
    traversal itself runs inside OpenCV's connected-component labelling.
    """
    if candidates.ndim != 2:
        raise ValueError(f"Expected 2D candidate map, got shape={candidates.shape}")

    binary = candidates.astype(np.uint8)
    if not binary.any():
        return np.zeros(candidates.shape, dtype=bool)

    _num_labels, labels = cv2.connectedComponents(binary, connectivity=8)

    edge_labels = np.concatenate([labels[0, :], labels[-1, :], labels[:, 0], labels[:, -1]])
    # label 0 is the non-candidate region
    seeds = np.unique(edge_labels[edge_labels != 0])
    if seeds.size == 0:
        return np.zeros(candidates.shape, dtype=bool)
    return np.isin(labels, seeds)


def flood_fill_background(buffer, width: int, height: int, params: ClassificationParameters) -> np.ndarray:
    """
    Edge-seeded flood fill over background-classified pixels.

    Returns:
        bool mask (height, width); True where the pixel is background and
        connected to the border through background pixels
    """
    pixels = as_pixel_array(buffer, width, height)
    candidates = classify_pixels(pixels, params)
    mask = border_connected(candidates)
    logger.debug(
        "Flood fill: %d background-classified, %d border-connected of %d pixels",
        int(candidates.sum()),
        int(mask.sum()),
        mask.size,
    )
    return mask
