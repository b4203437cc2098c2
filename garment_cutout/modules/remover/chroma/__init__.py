"""Local chroma-distance background removal."""
from . import process
from .config import settings

__all__ = ["process", "settings"]
