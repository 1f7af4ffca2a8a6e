from __future__ import annotations

import os

import numpy as np
from PIL import Image

from .pixel_buffer import as_pixel_array, validate_mask


def composite(buffer, mask: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Zero the alpha channel of `buffer` wherever `mask` is True.

    RGB bytes and unmasked pixels are left untouched. The write happens in
    place; the returned (H, W, 4) array is a view of `buffer`.
    """
    pixels = as_pixel_array(buffer, width, height, writable=True)
    mask = validate_mask(mask, width, height)
    pixels[..., 3][mask] = 0
    return pixels


def to_pil_image(rgba: np.ndarray) -> Image.Image:
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"Expected RGBA image (H,W,4), got {rgba.shape}")
    # (H, W, 4) uint8 is always decoded as RGBA
    return Image.fromarray(np.ascontiguousarray(rgba, dtype=np.uint8))


def save_rgba_png(img: Image.Image, out_path: str) -> None:
    """
    Save as lossless RGBA PNG.
    """
    if img.mode != "RGBA":
        img = img.convert("RGBA")
    out_dir = os.path.dirname(out_path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    img.save(out_path, format="PNG", optimize=False)
