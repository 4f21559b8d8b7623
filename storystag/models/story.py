"""
Story - Pydantic model for an exportable frame sequence.

A story owns an ordered, immutable tuple of frames. Frames are sorted by
their ``order`` value on validation, so the sequence defines playback order
regardless of how the payload listed them.
"""

import json
import re
from pathlib import Path
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .frame import Frame

_UNSAFE_TITLE_CHARS = re.compile(r'[^a-z0-9]', re.IGNORECASE)


def sanitize_title(title: str) -> str:
    """
    Strip a title down to lowercase ``[a-z0-9]`` for use in file names.

    Args:
        title: Story title as entered by the user

    Returns:
        Sanitized title, ``untitled`` if nothing survives
    """
    return _UNSAFE_TITLE_CHARS.sub('', title).lower() or 'untitled'


class Story(BaseModel):
    """
    A titled sequence of frames, optionally flagged as an animation.

    Serialization format:
    {
        "title": "My Story",
        "isAnimation": true,
        "frames": [{"order": 0, "imageData": "...", "durationMs": 500}, ...]
    }

    Example usage:
        story = Story.load('story.json')
        for frame in story.frames:
            print(frame.order, frame.duration_ms)
    """

    model_config = ConfigDict(
        populate_by_name=True,
        extra='ignore',
        frozen=True,
    )

    title: str = Field(default='Untitled')
    is_animation: bool = Field(default=False, alias='isAnimation')
    frames: tuple[Frame, ...] = Field(default_factory=tuple)

    @field_validator('frames')
    @classmethod
    def _sort_frames(cls, frames: tuple[Frame, ...]) -> tuple[Frame, ...]:
        """Sort frames by order and reject duplicate order values."""
        orders = [frame.order for frame in frames]
        if len(set(orders)) != len(orders):
            raise ValueError('Frame order values must be unique')
        return tuple(sorted(frames, key=lambda frame: frame.order))

    @property
    def safe_title(self) -> str:
        """Title reduced to a file name friendly form."""
        return sanitize_title(self.title)

    @property
    def total_duration_ms(self) -> int:
        """Sum of all frame durations in milliseconds."""
        return sum(frame.duration_ms for frame in self.frames)

    @classmethod
    def from_api_dict(cls, data: dict[str, Any]) -> 'Story':
        """
        Create a story from a backend payload.

        Accepts both camelCase (JS) and snake_case (Python) keys.

        Args:
            data: Story dictionary

        Returns:
            Story instance
        """
        return cls.model_validate(data)

    def to_api_dict(self) -> dict[str, Any]:
        """Convert to a camelCase dictionary."""
        return self.model_dump(by_alias=True, mode='json')

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'Story':
        """
        Load a story from a JSON file.

        Args:
            path: Path to the JSON file

        Returns:
            Story instance
        """
        with open(path, 'r', encoding='utf-8') as f:
            return cls.from_api_dict(json.load(f))
