from pydantic_settings import BaseSettings


class RemoteSettings(BaseSettings):
    """Request details for the supported remote matting providers."""

    # remove.bg: tuned for product/clothing shots
    REMOVEBG_TYPE: str = "product"
    REMOVEBG_FORMAT: str = "png"

    DEFAULT_FILENAME: str = "garment.png"


settings = RemoteSettings()

PROVIDERS = ("removebg", "huggingface")
