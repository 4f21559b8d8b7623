"""
Frame - a single timed raster frame of a story.

Serialization format matches the frame payload of the story backend:
{
    "order": 0,
    "imageData": "data:image/png;base64,...",
    "durationMs": 500
}
"""

from pydantic import BaseModel, ConfigDict, Field

from storystag.config import settings


class Frame(BaseModel):
    """Raster frame with image reference and display duration."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra='ignore',
        frozen=True,
    )

    # Playback position, unique within a story
    order: int = Field(default=0)

    # URI-like reference to the raster bytes (data:, http(s)://, file:// or path)
    image_data: str = Field(alias='imageData')

    duration_ms: int = Field(
        default_factory=lambda: settings.DEFAULT_FRAME_DURATION_MS,
        alias='durationMs',
        ge=1,
    )

    @property
    def duration(self) -> float:
        """Display duration in seconds."""
        return self.duration_ms / 1000.0
