from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from garment_cutout.errors import ParameterError

M = TypeVar("M", bound=BaseModel)


class ProcessingMode(str, Enum):
    LOCAL = "local"
    REMOTE_API = "api"
    AUTO = "auto"


class Quality(str, Enum):
    """Working-resolution presets for the local path (longest side cap)."""

    PREVIEW = "preview"
    MEDIUM = "medium"
    HIGH = "high"


class BackgroundColor(BaseModel):
    """Estimated (or caller-supplied) backdrop color."""

    model_config = ConfigDict(frozen=True)

    r: int = Field(ge=0, le=255)
    g: int = Field(ge=0, le=255)
    b: int = Field(ge=0, le=255)

    @classmethod
    def from_hex(cls, value: str) -> "BackgroundColor":
        """Parse '#rrggbb' or 'rrggbb'."""
        text = value.strip().lstrip("#")
        if len(text) != 6:
            raise ParameterError(f"Expected a #rrggbb color, got {value!r}")
        try:
            r, g, b = (int(text[i : i + 2], 16) for i in (0, 2, 4))
        except ValueError as e:
            raise ParameterError(f"Expected a #rrggbb color, got {value!r}") from e
        return cls(r=r, g=g, b=b)

    def as_tuple(self) -> tuple[int, int, int]:
        return self.r, self.g, self.b


class SegmentationParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    threshold: int = Field(30, ge=0, le=255)
    edge_smoothing_radius: int = Field(2, ge=0)
    target_color: Optional[BackgroundColor] = None
    # Center pixels that look like the garment stay opaque even when close to the backdrop.
    protect_subject: bool = False


class AdjustmentParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    brightness: int = Field(0, ge=-255, le=255)
    # 259 would divide by zero in the contrast factor; the usable range stops at 255.
    contrast: int = Field(0, ge=-255, le=255)


def parse_parameters(model: Type[M], **values: Any) -> M:
    """Build a parameter model, turning pydantic validation failures into ParameterError."""
    try:
        return model(**values)
    except ValidationError as e:
        raise ParameterError(str(e)) from e
