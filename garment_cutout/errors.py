"""
Error taxonomy for the cutout pipeline.

Every stage failure surfaces as a CutoutError subclass; callers decide whether
to retry with another mode or fall back to the unprocessed image.
"""
from typing import Optional


class CutoutError(Exception):
    """Base class for all pipeline failures."""


class DecodeError(CutoutError):
    """The input could not be read or decoded into pixels."""


class ConfigError(CutoutError):
    """The pipeline is missing configuration required for the requested path."""


class MissingApiKeyError(ConfigError):
    def __init__(self, provider: str):
        super().__init__(f"No API key configured for remote matting provider '{provider}'")
        self.provider = provider


class RemoteError(CutoutError):
    """The remote matting service answered with a failure or not at all."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message if status_code is None else f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class RemoteTimeoutError(RemoteError):
    def __init__(self, timeout_s: float):
        super().__init__(f"No response within {timeout_s:g}s")
        self.timeout_s = timeout_s


class ProcessingError(CutoutError):
    """Unexpected failure while transforming a pixel buffer."""


class EmptyForegroundError(ProcessingError):
    def __init__(self):
        super().__init__("No foreground detected: every pixel is fully transparent")


class ParameterError(CutoutError, ValueError):
    """A caller-supplied processing parameter is out of range."""
