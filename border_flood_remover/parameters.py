from __future__ import annotations

import math
import numbers
from dataclasses import asdict, dataclass, fields
from typing import Dict, Optional

import numpy as np

from .config import (
    BRIGHTNESS_RANGE,
    DISTANCE_RANGE,
    EXTREME_DARK_CUTOFF,
    EXTREME_MODE_START,
    MORPHOLOGICAL_RADIUS_RANGE,
    SATURATION_RANGE,
    SLIDER_MAX,
    SLIDER_MIN,
    UNIFORM_BRIGHTNESS_RANGE,
    UNIFORM_RANGE,
    VALUE_RANGE,
)
from .errors import InvalidParameterError

# field name -> (min, max, integer-only); max None means unbounded
_BYTE = (0, 255, True)
_LIMITS = {
    "brightness_threshold": _BYTE,
    "distance_threshold": _BYTE,
    "value_threshold": _BYTE,
    "saturation_threshold": (0.0, 1.0, False),
    "uniform_threshold": _BYTE,
    "uniform_brightness": _BYTE,
    "morphological_radius": (0, None, True),
    "feather_radius": (0, None, True),
    "aggressiveness": (0.0, 1.0, False),
    "dark_cutoff": _BYTE,
}

# Thresholds a caller may pin instead of deriving them from aggressiveness.
OVERRIDABLE = (
    "brightness_threshold",
    "distance_threshold",
    "value_threshold",
    "saturation_threshold",
    "uniform_threshold",
    "uniform_brightness",
)


def round_half_up(x: float) -> int:
    """Round like a browser's Math.round (ties go up, not to even)."""
    return int(math.floor(x + 0.5))


def _lerp(bounds, a: float) -> float:
    base, span = bounds
    return base + a * span


def _is_bool(value) -> bool:
    return isinstance(value, (bool, np.bool_))


def _check(name: str, value):
    """Validate one field and return it as a plain int or float."""
    lo, hi, integer = _LIMITS[name]
    if _is_bool(value):
        raise InvalidParameterError(f"{name} must be a number, got {value!r}")
    if integer:
        if not isinstance(value, numbers.Integral):
            raise InvalidParameterError(f"{name} must be an integer, got {value!r}")
        value = int(value)
    else:
        if not isinstance(value, numbers.Real) or math.isnan(value):
            raise InvalidParameterError(f"{name} must be a real number, got {value!r}")
        value = float(value)
    if value < lo or (hi is not None and value > hi):
        upper = "inf" if hi is None else hi
        raise InvalidParameterError(f"{name}={value!r} outside [{lo}, {upper}]")
    return value


@dataclass(frozen=True)
class ClassificationParameters:
    """
    Immutable parameter set for one background-removal run.

    Normally built with `from_aggressiveness` / `from_slider`; direct
    construction is allowed and validated the same way.
    """

    brightness_threshold: int
    distance_threshold: int
    value_threshold: int
    saturation_threshold: float
    uniform_threshold: int
    uniform_brightness: int
    morphological_radius: int
    feather_radius: int = 0
    aggressiveness: float = 0.0
    dark_cutoff: int = EXTREME_DARK_CUTOFF

    def __post_init__(self):
        for f in fields(self):
            object.__setattr__(self, f.name, _check(f.name, getattr(self, f.name)))

    @classmethod
    def from_aggressiveness(
        cls,
        aggressiveness: float,
        morphological_radius: Optional[int] = None,
        feather_radius: int = 0,
        dark_cutoff: int = EXTREME_DARK_CUTOFF,
        **overrides,
    ) -> "ClassificationParameters":
        """
        Derive every threshold from a single aggressiveness scalar in [0, 1].

        Args:
            aggressiveness: 0 removes only near-pure white, 1 removes nearly
                everything that is not very dark
            morphological_radius: closing radius; derived when None
            feather_radius: boundary growth radius, 0 disables feathering
            dark_cutoff: brightness guard of the extreme-mode rules
            **overrides: explicit values for any name in OVERRIDABLE
        """
        a = _check("aggressiveness", aggressiveness)
        unknown = set(overrides) - set(OVERRIDABLE)
        if unknown:
            raise InvalidParameterError(f"Unknown threshold override(s): {sorted(unknown)}")

        values = {
            "brightness_threshold": round_half_up(_lerp(BRIGHTNESS_RANGE, a)),
            "distance_threshold": round_half_up(_lerp(DISTANCE_RANGE, a)),
            "value_threshold": round_half_up(_lerp(VALUE_RANGE, a)),
            "saturation_threshold": min(1.0, _lerp(SATURATION_RANGE, a)),
            "uniform_threshold": round_half_up(_lerp(UNIFORM_RANGE, a)),
            "uniform_brightness": round_half_up(_lerp(UNIFORM_BRIGHTNESS_RANGE, a)),
            "morphological_radius": round_half_up(_lerp(MORPHOLOGICAL_RADIUS_RANGE, a)),
        }
        if morphological_radius is not None:
            values["morphological_radius"] = morphological_radius
        values.update(overrides)
        return cls(
            feather_radius=feather_radius,
            aggressiveness=a,
            dark_cutoff=dark_cutoff,
            **values,
        )

    @classmethod
    def from_slider(cls, value: int, **kwargs) -> "ClassificationParameters":
        """Same as `from_aggressiveness` for a 0-100 integer slider."""
        if _is_bool(value) or not isinstance(value, numbers.Integral):
            raise InvalidParameterError(f"Slider value must be an integer, got {value!r}")
        if not SLIDER_MIN <= value <= SLIDER_MAX:
            raise InvalidParameterError(f"Slider value {value} outside [{SLIDER_MIN}, {SLIDER_MAX}]")
        return cls.from_aggressiveness(int(value) / SLIDER_MAX, **kwargs)

    @property
    def extreme_mode(self) -> bool:
        return self.aggressiveness > EXTREME_MODE_START

    @property
    def extreme_factor(self) -> float:
        """0 at the start of extreme mode, 1 at full aggressiveness."""
        if not self.extreme_mode:
            return 0.0
        return (self.aggressiveness - EXTREME_MODE_START) / (1.0 - EXTREME_MODE_START)

    def describe(self) -> Dict[str, object]:
        """Effective thresholds, e.g. for a readout next to the slider."""
        summary = asdict(self)
        summary["saturation_threshold"] = round(self.saturation_threshold, 2)
        summary["extreme_mode"] = self.extreme_mode
        return summary
