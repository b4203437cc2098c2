"""
garment-cutout: transparent-background assets from garment photos.
"""
from .errors import (
    ConfigError,
    CutoutError,
    DecodeError,
    EmptyForegroundError,
    MissingApiKeyError,
    ParameterError,
    ProcessingError,
    RemoteError,
    RemoteTimeoutError,
)
from .models import (
    AdjustmentParameters,
    BackgroundColor,
    ProcessedImageAsset,
    ProcessingMode,
    Quality,
    SegmentationParameters,
)
from .services.pipeline import (
    BatchItemResult,
    CutoutPipeline,
    adjust_brightness_contrast,
    auto_crop,
    remove_background,
)

__version__ = "1.0.0"

__all__ = [
    "AdjustmentParameters",
    "BackgroundColor",
    "BatchItemResult",
    "ConfigError",
    "CutoutError",
    "CutoutPipeline",
    "DecodeError",
    "EmptyForegroundError",
    "MissingApiKeyError",
    "ParameterError",
    "ProcessedImageAsset",
    "ProcessingError",
    "ProcessingMode",
    "Quality",
    "RemoteError",
    "RemoteTimeoutError",
    "SegmentationParameters",
    "adjust_brightness_contrast",
    "auto_crop",
    "remove_background",
]
