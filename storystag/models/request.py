"""
ExportRequest - what to export and how.

``encoding`` is only consulted for animated stories exported with
``scope='all'`` and more than one frame; ``current_index`` only for
``scope='current'``.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TargetFormat(str, Enum):
    """Aspect-ratio presets for exported rasters."""
    ORIGINAL = "original"
    SQUARE = "square"
    REEL = "reel"
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"


class ExportScope(str, Enum):
    """Which frames to export."""
    ALL = "all"
    CURRENT = "current"


class Encoding(str, Enum):
    """Multi-frame encodings, in fallback order."""
    VIDEO = "video"
    GIF = "gif"
    ARCHIVE = "archive"


class ExportRequest(BaseModel):
    """Export options chosen by the user."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra='ignore',
        frozen=True,
    )

    target_format: TargetFormat = Field(default=TargetFormat.ORIGINAL, alias='targetFormat')
    scope: ExportScope = Field(default=ExportScope.ALL)
    encoding: Encoding = Field(default=Encoding.VIDEO)
    current_index: int = Field(default=0, ge=0, alias='currentIndex')
