from pydantic_settings import BaseSettings

from garment_cutout.models.request import Quality


class ChromaSettings(BaseSettings):
    """Configuration for the local chroma-distance remover."""

    # Soft-edge band: pixels between threshold and BAND_FACTOR * threshold get a linear alpha ramp.
    BAND_FACTOR: float = 1.5

    # Working-resolution caps (longest side) per quality preset.
    PREVIEW_MAX_SIDE: int = 800
    MEDIUM_MAX_SIDE: int = 1200
    HIGH_MAX_SIDE: int = 2400

    # --- Center-subject protection (optional) ---
    # Pixels this far from the backdrop color, near the image center and of mid brightness
    # are treated as garment and never made transparent.
    SUBJECT_COLOR_DISTANCE: float = 50.0
    SUBJECT_CENTER_RADIUS: float = 0.6  # fraction of the image diagonal
    SUBJECT_MIN_BRIGHTNESS: float = 20.0
    SUBJECT_MAX_BRIGHTNESS: float = 235.0

    def max_side_for(self, quality: Quality) -> int:
        return {
            Quality.PREVIEW: self.PREVIEW_MAX_SIDE,
            Quality.MEDIUM: self.MEDIUM_MAX_SIDE,
            Quality.HIGH: self.HIGH_MAX_SIDE,
        }[Quality(quality)]


settings = ChromaSettings()
