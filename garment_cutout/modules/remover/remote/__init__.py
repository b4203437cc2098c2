"""Remote matting service adapter."""
from . import process
from .process import RemoteMattingClient

__all__ = ["process", "RemoteMattingClient"]
