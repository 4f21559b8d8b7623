"""Base class for multi-frame export backends.

All backends share one capability: turn a story into a single artifact at a
given destination size. The orchestrator treats them as interchangeable
strategies and walks them in fallback order.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import ClassVar

from storystag.compositor import FrameCompositor
from storystag.download import Artifact
from storystag.formats import Size
from storystag.models import Encoding, Story

logger = logging.getLogger(__name__)


class Exporter(ABC):
    """Encodes all frames of a story into one artifact.

    Subclasses must define:
    - encoding: The :class:`~storystag.models.Encoding` they implement
    - label: Short name used in notices, e.g. "GIF"
    - extension / mime_type: Output file type
    - encode(): Produces the artifact bytes
    """

    encoding: ClassVar[Encoding]
    label: ClassVar[str] = "Export"
    extension: ClassVar[str] = "bin"
    mime_type: ClassVar[str] = "application/octet-stream"
    filename_suffix: ClassVar[str] = ""

    # Registry of exporter classes by encoding
    _registry: ClassVar[dict[Encoding, type[Exporter]]] = {}

    def __init_subclass__(cls, **kwargs):
        """Register exporter subclass in registry."""
        super().__init_subclass__(**kwargs)
        if "encoding" in cls.__dict__:
            Exporter._registry[cls.encoding] = cls

    def __init__(self, compositor: FrameCompositor | None = None):
        self.compositor = compositor or FrameCompositor()

    @classmethod
    def get_class(cls, encoding: Encoding | str) -> type[Exporter]:
        """Get the exporter class registered for an encoding."""
        return cls._registry[Encoding(encoding)]

    def filename(self, story: Story) -> str:
        return f"{story.safe_title}{self.filename_suffix}.{self.extension}"

    @abstractmethod
    async def encode(self, story: Story, size: Size) -> bytes:
        """Encodes all frames of the story.

        Frames must be composited strictly in sequence order.

        :param story: The story to export
        :param size: Destination size of every frame
        :return: The encoded file content
        """
        ...

    async def attempt(self, story: Story, size: Size) -> Artifact:
        """Runs the backend and wraps its output as an artifact.

        Exceptions propagate unmodified to the caller.

        :param story: The story to export
        :param size: Destination size of every frame
        :return: The finished artifact
        """
        logger.debug(f"{self.label}: exporting {len(story.frames)} frames at {size}")
        data = await self.encode(story, size)
        artifact = Artifact(
            filename=self.filename(story), data=data, mime_type=self.mime_type
        )
        logger.info(f"{self.label}: created {artifact.filename} ({artifact.size} bytes)")
        return artifact
