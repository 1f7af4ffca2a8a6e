from .background_remover import BorderFloodProcessor, RemovalResult, StageTimings, remove_background
from .cancellation import GenerationController
from .classifier import classify_pixels, is_background, rgb_to_hsv
from .compositor import composite, save_rgba_png, to_pil_image
from .connectivity import border_connected, flood_fill_background
from .errors import BackgroundRemovalError, InvalidDimensionsError, InvalidParameterError, RunSupersededError
from .morphology import close_mask, feather_mask
from .parameters import ClassificationParameters

# ComfyUI nodes need torch; the pixel pipeline itself does not.
try:
    from .nodes import NODE_CLASS_MAPPINGS, NODE_DISPLAY_NAME_MAPPINGS
    NODES_AVAILABLE = True
except ImportError as e:
    NODE_CLASS_MAPPINGS = {}
    NODE_DISPLAY_NAME_MAPPINGS = {}
    NODES_AVAILABLE = False
    print("\n" + "="*70)
    print("ℹ️  BorderFloodRemover: ComfyUI nodes disabled")
    print("="*70)
    print(f"Reason: {str(e)}")
    print("\nThe nodes require PyTorch. To enable them:")
    print("  • Install: pip install torch")
    print("\nThe background removal pipeline and CLI are still available!")
    print("="*70 + "\n")

__all__ = [
    'BackgroundRemovalError',
    'BorderFloodProcessor',
    'ClassificationParameters',
    'GenerationController',
    'InvalidDimensionsError',
    'InvalidParameterError',
    'NODE_CLASS_MAPPINGS',
    'NODE_DISPLAY_NAME_MAPPINGS',
    'RemovalResult',
    'RunSupersededError',
    'StageTimings',
    'border_connected',
    'classify_pixels',
    'close_mask',
    'composite',
    'feather_mask',
    'flood_fill_background',
    'is_background',
    'remove_background',
    'rgb_to_hsv',
    'save_rgba_png',
    'to_pil_image',
]
