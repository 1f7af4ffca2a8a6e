#!/usr/bin/env python3
"""
Tests for the ComfyUI node wrappers: tensor conversion, outputs, error
wrapping, batch reports and node registration.
"""
import os
import sys

import torch

# Add current directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from border_flood_remover.nodes import (
    NODE_CLASS_MAPPINGS,
    NODE_DISPLAY_NAME_MAPPINGS,
    BorderFloodBackgroundRemover,
    BorderFloodBackgroundRemoverBatch,
    build_parameters,
    tensor_to_uint8,
)


def create_test_tensor(batch=1, size=16, channels=3):
    """White ComfyUI image batch with a saturated blue block in the center"""
    image = torch.ones((batch, size, size, channels), dtype=torch.float32)
    quarter = size // 4
    block = torch.tensor([0.1, 0.2, 0.6])
    image[:, quarter:size - quarter, quarter:size - quarter, :3] = block
    return image


def test_tensor_to_uint8():
    t = torch.tensor([[[0.0, 0.5, 1.0], [-0.2, 1.3, 0.1]]])
    out = tensor_to_uint8(t)
    assert out.dtype.name == "uint8"
    assert out.tolist() == [[[0, 128, 255], [0, 255, 26]]]


def test_build_parameters():
    p = build_parameters(50)
    assert p.aggressiveness == 0.5
    assert p.morphological_radius == 4
    assert p.feather_radius == 0

    p = build_parameters(0, feather_radius=2, morphological_radius=0)
    assert p.morphological_radius == 0
    assert p.feather_radius == 2


def test_remove_background_rgba():
    node = BorderFloodBackgroundRemover()
    image, mask = node.remove_background(create_test_tensor(), 0, 0, 0)

    assert tuple(image.shape) == (1, 16, 16, 4)
    assert tuple(mask.shape) == (1, 16, 16)
    assert mask[0, 0, 0].item() == 0.0
    assert mask[0, 15, 15].item() == 0.0
    assert mask[0, 8, 8].item() == 1.0
    assert image[0, 0, 0, 3].item() == 0.0
    # RGB survives under the transparent alpha
    assert image[0, 0, 0, 0].item() == 1.0


def test_remove_background_rgb_with_mask():
    node = BorderFloodBackgroundRemover()
    image, mask = node.remove_background(create_test_tensor(batch=2), 0, 0, 0, output_format="RGB_WITH_MASK")
    assert tuple(image.shape) == (2, 16, 16, 3)
    assert tuple(mask.shape) == (2, 16, 16)
    assert torch.equal(mask[0], mask[1])


def test_rgba_input_accepted():
    node = BorderFloodBackgroundRemover()
    image, mask = node.remove_background(create_test_tensor(channels=4), 0, 0, 0)
    assert tuple(image.shape) == (1, 16, 16, 4)
    assert int(mask.sum().item()) == 64


def test_invalid_input_wrapped_in_runtime_error():
    node = BorderFloodBackgroundRemover()
    for bad in (torch.ones((16, 16, 3)), torch.ones((1, 16, 16, 2))):
        try:
            node.remove_background(bad, 50, 0, -1)
        except RuntimeError as e:
            assert "Background removal failed" in str(e)
            continue
        raise AssertionError(f"shape {tuple(bad.shape)} should be rejected")

    try:
        node.remove_background(create_test_tensor(), 150, 0, -1)
    except RuntimeError:
        return
    raise AssertionError("aggressiveness 150 should be rejected")


def test_batch_report():
    node = BorderFloodBackgroundRemoverBatch()
    images, masks, report = node.batch_remove_background(create_test_tensor(batch=2), 90, 0, -1)

    assert tuple(images.shape) == (2, 16, 16, 4)
    assert tuple(masks.shape) == (2, 16, 16)
    assert "Successful: 2" in report
    assert "Failed: 0" in report
    assert "Aggressiveness: 90 (EXTREME)" in report
    assert "brightness_threshold" in report
    assert "Image 2:" in report


def test_batch_report_without_details():
    node = BorderFloodBackgroundRemoverBatch()
    _, _, report = node.batch_remove_background(create_test_tensor(), 20, 0, -1, progress_reporting=False)
    assert "EXTREME" not in report
    assert "Detailed Processing Log" not in report


def test_batch_bad_channels_reported():
    node = BorderFloodBackgroundRemoverBatch()
    images, masks, report = node.batch_remove_background(torch.ones((2, 8, 8, 2)), 50, 0, -1)
    assert report.startswith("Batch processing failed")
    assert tuple(images.shape) == (2, 8, 8, 4)
    assert tuple(masks.shape) == (2, 8, 8)


def test_batch_without_images_raises():
    node = BorderFloodBackgroundRemoverBatch()
    for bad in (None, torch.ones((8, 8, 3))):
        try:
            node.batch_remove_background(bad, 50, 0, -1)
        except RuntimeError as e:
            assert "Batch processing failed" in str(e)
            if bad is None:
                assert "No input images provided" in str(e)
            continue
        raise AssertionError("batch without a 4D image tensor should raise")


def test_input_types():
    required = BorderFloodBackgroundRemover.INPUT_TYPES()["required"]
    assert set(required) == {"image", "aggressiveness", "feather_radius", "morphological_radius"}
    kind, opts = required["aggressiveness"]
    assert kind == "INT"
    assert (opts["min"], opts["max"], opts["default"]) == (0, 100, 50)

    batch_inputs = BorderFloodBackgroundRemoverBatch.INPUT_TYPES()
    assert "images" in batch_inputs["required"]
    assert "progress_reporting" in batch_inputs["optional"]


def test_node_registration():
    assert set(NODE_CLASS_MAPPINGS) == set(NODE_DISPLAY_NAME_MAPPINGS)
    assert NODE_CLASS_MAPPINGS["BorderFloodBackgroundRemover"] is BorderFloodBackgroundRemover
    assert NODE_CLASS_MAPPINGS["BorderFloodBackgroundRemoverBatch"] is BorderFloodBackgroundRemoverBatch
    for cls in NODE_CLASS_MAPPINGS.values():
        assert hasattr(cls, cls.FUNCTION)


def main():
    """Run all node tests"""
    print("🧪 Running Node Tests")
    print("=" * 50)

    tests = [
        test_tensor_to_uint8,
        test_build_parameters,
        test_remove_background_rgba,
        test_remove_background_rgb_with_mask,
        test_rgba_input_accepted,
        test_invalid_input_wrapped_in_runtime_error,
        test_batch_report,
        test_batch_report_without_details,
        test_batch_bad_channels_reported,
        test_batch_without_images_raises,
        test_input_types,
        test_node_registration,
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
