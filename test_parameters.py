#!/usr/bin/env python3
"""
Tests for aggressiveness -> threshold derivation and parameter validation.
"""
import dataclasses
import os
import sys

import numpy as np

# Add current directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from border_flood_remover.errors import InvalidParameterError
from border_flood_remover.parameters import ClassificationParameters, round_half_up

THRESHOLD_FIELDS = [
    "brightness_threshold",
    "distance_threshold",
    "value_threshold",
    "saturation_threshold",
    "uniform_threshold",
    "uniform_brightness",
    "morphological_radius",
]


def expect_invalid(fn, *args, **kwargs):
    try:
        fn(*args, **kwargs)
    except InvalidParameterError:
        return
    raise AssertionError(f"{fn.__name__} accepted invalid input {args} {kwargs}")


def test_conservative_bounds():
    p = ClassificationParameters.from_aggressiveness(0.0)
    assert p.brightness_threshold == 200
    assert p.distance_threshold == 20
    assert p.value_threshold == 200
    assert abs(p.saturation_threshold - 0.05) < 1e-12
    assert p.uniform_threshold == 5
    assert p.uniform_brightness == 180
    assert p.morphological_radius == 1
    assert p.feather_radius == 0


def test_permissive_bounds():
    p = ClassificationParameters.from_aggressiveness(1.0)
    assert p.brightness_threshold == 255
    assert p.distance_threshold == 255
    assert p.value_threshold == 255
    assert abs(p.saturation_threshold - 1.0) < 1e-12
    assert p.uniform_threshold == 100
    assert p.uniform_brightness == 255
    assert p.morphological_radius == 6


def test_midpoint_rounds_half_up():
    p = ClassificationParameters.from_slider(50)
    assert p.brightness_threshold == 228
    assert p.distance_threshold == 138
    # 52.5 -> 53; banker's rounding would give 52
    assert p.uniform_threshold == 53
    assert p.uniform_brightness == 218
    assert p.morphological_radius == 4
    assert abs(p.saturation_threshold - 0.525) < 1e-12


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4999) == 2
    assert round_half_up(227.5) == 228


def test_thresholds_non_decreasing():
    previous = ClassificationParameters.from_slider(0)
    for value in range(1, 101):
        current = ClassificationParameters.from_slider(value)
        for name in THRESHOLD_FIELDS:
            assert getattr(current, name) >= getattr(previous, name), (name, value)
        previous = current


def test_extreme_mode_boundary():
    assert not ClassificationParameters.from_slider(80).extreme_mode
    assert ClassificationParameters.from_slider(80).extreme_factor == 0.0
    assert ClassificationParameters.from_slider(81).extreme_mode
    assert ClassificationParameters.from_slider(100).extreme_factor == 1.0
    assert abs(ClassificationParameters.from_slider(90).extreme_factor - 0.5) < 1e-9


def test_radius_and_threshold_overrides():
    p = ClassificationParameters.from_aggressiveness(
        0.5, morphological_radius=0, feather_radius=3, brightness_threshold=240, saturation_threshold=0.2
    )
    assert p.morphological_radius == 0
    assert p.feather_radius == 3
    assert p.brightness_threshold == 240
    assert p.saturation_threshold == 0.2
    # untouched fields still derived
    assert p.distance_threshold == 138


def test_invalid_parameters_rejected():
    expect_invalid(ClassificationParameters.from_aggressiveness, 1.2)
    expect_invalid(ClassificationParameters.from_aggressiveness, -0.1)
    expect_invalid(ClassificationParameters.from_aggressiveness, float("nan"))
    expect_invalid(ClassificationParameters.from_slider, 101)
    expect_invalid(ClassificationParameters.from_slider, 50.5)
    expect_invalid(ClassificationParameters.from_aggressiveness, 0.5, feather_radius=-1)
    expect_invalid(ClassificationParameters.from_aggressiveness, 0.5, morphological_radius=1.5)
    expect_invalid(ClassificationParameters.from_aggressiveness, 0.5, brightness_threshold=300)
    expect_invalid(ClassificationParameters.from_aggressiveness, 0.5, saturation_threshold=1.5)
    expect_invalid(ClassificationParameters.from_aggressiveness, 0.5, dark_cutoff=256)
    expect_invalid(ClassificationParameters.from_aggressiveness, 0.5, aggressiveness_boost=1)
    expect_invalid(
        ClassificationParameters,
        brightness_threshold=200,
        distance_threshold=20,
        value_threshold=200,
        saturation_threshold=-0.01,
        uniform_threshold=5,
        uniform_brightness=180,
        morphological_radius=1,
    )


def test_numpy_scalars_accepted():
    p = ClassificationParameters.from_aggressiveness(np.float32(0.5), morphological_radius=np.int64(2))
    assert p.morphological_radius == 2
    assert type(p.morphological_radius) is int
    assert type(p.aggressiveness) is float
    assert p.distance_threshold == 138

    p = ClassificationParameters.from_slider(np.int32(100), feather_radius=np.uint8(3), dark_cutoff=np.int16(50))
    assert p.extreme_mode
    assert type(p.feather_radius) is int and p.feather_radius == 3
    assert type(p.dark_cutoff) is int and p.dark_cutoff == 50

    p = ClassificationParameters.from_aggressiveness(0.0, brightness_threshold=np.uint8(240))
    assert type(p.brightness_threshold) is int and p.brightness_threshold == 240

    expect_invalid(ClassificationParameters.from_aggressiveness, np.bool_(True))
    expect_invalid(ClassificationParameters.from_aggressiveness, 0.5, feather_radius=np.float64(2.0))
    expect_invalid(ClassificationParameters.from_slider, np.int64(101))


def test_invalid_parameter_is_value_error():
    assert issubclass(InvalidParameterError, ValueError)


def test_parameters_are_immutable():
    p = ClassificationParameters.from_slider(10)
    try:
        p.brightness_threshold = 0
    except dataclasses.FrozenInstanceError:
        return
    raise AssertionError("ClassificationParameters should be frozen")


def test_describe_reports_effective_values():
    summary = ClassificationParameters.from_slider(100).describe()
    assert summary["extreme_mode"] is True
    assert summary["brightness_threshold"] == 255
    assert summary["saturation_threshold"] == 1.0
    assert ClassificationParameters.from_slider(80).describe()["extreme_mode"] is False
    assert "feather_radius" in summary


def main():
    """Run all parameter tests"""
    print("🧪 Running Parameter Tests")
    print("=" * 50)

    tests = [
        test_conservative_bounds,
        test_permissive_bounds,
        test_midpoint_rounds_half_up,
        test_round_half_up,
        test_thresholds_non_decreasing,
        test_extreme_mode_boundary,
        test_radius_and_threshold_overrides,
        test_invalid_parameters_rejected,
        test_numpy_scalars_accepted,
        test_invalid_parameter_is_value_error,
        test_parameters_are_immutable,
        test_describe_reports_effective_values,
    ]

    passed = 0
    for test in tests:
        try:
            test()
            print(f"✅ {test.__name__}")
            passed += 1
        except AssertionError as e:
            print(f"❌ {test.__name__}: {e}")

    print("=" * 50)
    print(f"Results: {passed}/{len(tests)} tests passed")
    return passed == len(tests)


if __name__ == "__main__":
    success = main()
    sys.exit(0 if success else 1)
