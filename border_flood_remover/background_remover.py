from __future__ import annotations

import logging
import time
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

from .cancellation import GenerationController
from .compositor import composite
from .config import DEFAULT_AGGRESSIVENESS
from .connectivity import flood_fill_background
from .errors import InvalidDimensionsError, RunSupersededError
from .morphology import close_mask, feather_mask
from .parameters import ClassificationParameters
from .pixel_buffer import as_pixel_array, rgb_to_rgba

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageTimings:
    flood_fill_s: float
    close_s: float
    feather_s: float
    composite_s: float
    total_s: float


@dataclass(frozen=True)
class RemovalResult:
    mask: np.ndarray
    rgba: np.ndarray
    token: Optional[int]
    timings: StageTimings

    @property
    def removed_pixels(self) -> int:
        return int(self.mask.sum())

    @property
    def removed_fraction(self) -> float:
        return self.removed_pixels / self.mask.size


class BorderFloodProcessor:
    """
    Background removal by flooding background-colored pixels in from the
    image border.

    Deterministic, linear pipeline:
      1) classify pixels + flood fill from the border
      2) morphological closing
      3) feathering
      4) composite (alpha = 0 on masked pixels)
    """

    def __init__(self, params: Optional[ClassificationParameters] = None,
                 controller: Optional[GenerationController] = None):
        """
        Args:
            params: classification parameters; defaults to the default slider position
            controller: optional generation controller; when given, each run
                takes a token and aborts once a newer run has begun
        """
        self.params = params if params is not None else ClassificationParameters.from_slider(DEFAULT_AGGRESSIVENESS)
        self.controller = controller

    def _check_current(self, token: Optional[int]) -> None:
        if self.controller is None or token is None:
            return
        if not self.controller.is_current(token):
            raise RunSupersededError(token, self.controller.latest)

    def compute_mask(self, buffer, width: int, height: int,
                     token: Optional[int] = None) -> Tuple[np.ndarray, Tuple[float, float, float]]:
        """
        Run the mask stages without touching `buffer`.

        Returns:
            (mask, (flood_fill_s, close_s, feather_s))
        """
        params = self.params

        t0 = time.perf_counter()
        mask = flood_fill_background(buffer, width, height, params)
        t1 = time.perf_counter()
        self._check_current(token)

        mask = close_mask(mask, width, height, params.morphological_radius)
        t2 = time.perf_counter()
        self._check_current(token)

        mask = feather_mask(mask, width, height, params.feather_radius)
        t3 = time.perf_counter()
        self._check_current(token)

        return mask, (t1 - t0, t2 - t1, t3 - t2)

    def remove_background(self, buffer, width: int, height: int,
                          token: Optional[int] = None) -> RemovalResult:
        """
        Make the background of an RGBA pixel buffer transparent, in place.

        Everything is validated before the first pixel is read, and the
        buffer is only written once every mask stage has finished, so a
        rejected or superseded run leaves it untouched.

        Args:
            buffer: (H, W, 4) uint8 array or flat writable RGBA bytes
            width, height: image size in pixels
            token: generation token; taken from the controller when omitted

        Returns:
            RemovalResult with the final mask and an (H, W, 4) view of buffer
        """
        t0 = time.perf_counter()
        as_pixel_array(buffer, width, height, writable=True)

        if token is None and self.controller is not None:
            token = self.controller.begin()

        mask, (fill_s, close_s, feather_s) = self.compute_mask(buffer, width, height, token)

        t_comp0 = time.perf_counter()
        # a newer run cannot begin while the alpha write is in progress
        guard = self.controller.hold(token) if self.controller is not None and token is not None else nullcontext()
        with guard:
            rgba = composite(buffer, mask, width, height)
        t_comp1 = time.perf_counter()

        result = RemovalResult(
            mask=mask,
            rgba=rgba,
            token=token,
            timings=StageTimings(
                flood_fill_s=fill_s,
                close_s=close_s,
                feather_s=feather_s,
                composite_s=t_comp1 - t_comp0,
                total_s=t_comp1 - t0,
            ),
        )
        logger.debug(
            "Applied mask to %d pixels with aggressiveness %.2f%s",
            result.removed_pixels,
            self.params.aggressiveness,
            " (EXTREME)" if self.params.extreme_mode else "",
        )
        return result

    def process_image(self, image: np.ndarray, token: Optional[int] = None) -> RemovalResult:
        """
        Convenience wrapper for decoded images; the input is never modified.

        Args:
            image: uint8 array (H, W), (H, W, 3) or (H, W, 4)
        """
        if image.ndim == 2:
            image = np.dstack([image, image, image])
        if image.ndim != 3 or image.shape[2] not in (3, 4):
            raise InvalidDimensionsError(f"Expected (H,W), (H,W,3) or (H,W,4) image, got {image.shape}")
        if image.dtype != np.uint8:
            raise InvalidDimensionsError(f"Expected uint8 image, got {image.dtype}")

        if image.shape[2] == 3:
            rgba = rgb_to_rgba(image)
        else:
            rgba = image.copy()
        height, width = rgba.shape[:2]
        return self.remove_background(rgba, width, height, token=token)


def remove_background(buffer, width: int, height: int,
                      params: Optional[ClassificationParameters] = None) -> np.ndarray:
    """
    One-shot helper: flood, close, feather and composite `buffer` in place.

    Returns:
        the final background mask
    """
    return BorderFloodProcessor(params).remove_background(buffer, width, height).mask
