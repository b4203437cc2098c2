"""Brightness/contrast adjustment and background fill."""
from . import process

__all__ = ["process"]
