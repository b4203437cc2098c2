"""Orchestration and codec layer."""
from .pipeline import BatchItemResult, CutoutPipeline
from .codec import ImageFetcher

__all__ = ["BatchItemResult", "CutoutPipeline", "ImageFetcher"]
