from __future__ import annotations

import numpy as np

from .errors import InvalidDimensionsError


def validate_dimensions(width, height) -> None:
    for name, value in (("width", width), ("height", height)):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise InvalidDimensionsError(f"{name} must be an integer, got {value!r}")
        if value <= 0:
            raise InvalidDimensionsError(f"Invalid image size: {width}x{height}")


def as_pixel_array(buffer, width: int, height: int, writable: bool = False) -> np.ndarray:
    """
    View an RGBA pixel buffer as a uint8 array of shape (height, width, 4).

    Accepts an (H, W, 4) uint8 ndarray or any flat byte sequence of length
    width*height*4 (bytearray, bytes, memoryview, flat ndarray). The result
    shares memory with `buffer`, so alpha writes land in the caller's data.
    """
    validate_dimensions(width, height)
    expected = int(width) * int(height) * 4

    if isinstance(buffer, np.ndarray):
        arr = buffer
    else:
        try:
            arr = np.frombuffer(buffer, dtype=np.uint8)
        except TypeError as e:
            raise InvalidDimensionsError(f"Unsupported pixel buffer type: {type(buffer).__name__}") from e

    if arr.dtype != np.uint8:
        raise InvalidDimensionsError(f"Pixel buffer must be uint8, got {arr.dtype}")
    if arr.size != expected:
        raise InvalidDimensionsError(
            f"Pixel buffer has {arr.size} bytes, expected {expected} for {width}x{height} RGBA"
        )
    if arr.ndim == 3:
        if arr.shape != (height, width, 4):
            raise InvalidDimensionsError(f"Expected shape {(height, width, 4)}, got {arr.shape}")
        view = arr
    elif arr.ndim == 1:
        view = arr.reshape(height, width, 4)
    else:
        raise InvalidDimensionsError(f"Expected flat or (H,W,4) buffer, got shape={arr.shape}")

    if writable and not view.flags.writeable:
        raise InvalidDimensionsError("Pixel buffer is read-only; alpha cannot be written")
    return view


def validate_mask(mask: np.ndarray, width: int, height: int) -> np.ndarray:
    validate_dimensions(width, height)
    if not isinstance(mask, np.ndarray):
        raise InvalidDimensionsError(f"Mask must be a numpy array, got {type(mask).__name__}")
    if mask.shape == (width * height,):
        mask = mask.reshape(height, width)
    if mask.shape != (height, width):
        raise InvalidDimensionsError(f"Mask shape {mask.shape} does not match {width}x{height}")
    return mask.astype(bool, copy=False)


def rgb_to_rgba(rgb: np.ndarray) -> np.ndarray:
    """Add an opaque alpha channel to an (H, W, 3) uint8 image."""
    if rgb.ndim != 3 or rgb.shape[2] != 3:
        raise InvalidDimensionsError(f"Expected RGB image (H,W,3), got {rgb.shape}")
    alpha = np.full(rgb.shape[:2], 255, dtype=np.uint8)
    return np.dstack([rgb.astype(np.uint8, copy=False), alpha])
