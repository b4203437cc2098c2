"""Bounding-box cropping of transparent margins."""
from . import process

__all__ = ["process"]
