"""Request and response models."""
from .request import (
    AdjustmentParameters,
    BackgroundColor,
    ProcessingMode,
    Quality,
    SegmentationParameters,
    parse_parameters,
)
from .response import ProcessedImageAsset

__all__ = [
    "AdjustmentParameters",
    "BackgroundColor",
    "ProcessedImageAsset",
    "ProcessingMode",
    "Quality",
    "SegmentationParameters",
    "parse_parameters",
]
