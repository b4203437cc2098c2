from pydantic import BaseModel, ConfigDict


class ProcessedImageAsset(BaseModel):
    """Terminal output of every pipeline operation. Immutable once produced."""

    model_config = ConfigDict(frozen=True)

    encoded_bytes: bytes
    display_ref: str
    width: int
    height: int
    method: str
    has_transparency: bool = True
