"""
Artifacts, download sinks and the single-asset downloader.

Every export ends in one or more :class:`Artifact` objects handed to a
:class:`DownloadSink`. The sink is the only place where exported bytes leave
the pipeline.
"""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

import PIL.Image

from .compositor import FrameCompositor
from .config import settings
from .formats import Size
from .models import Frame, sanitize_title

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Artifact:
    """A finished binary ready for download.

    Attributes:
        filename: Suggested download file name
        data: The file content
        mime_type: MIME type of the content
    """
    filename: str
    data: bytes = field(repr=False)
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)


def frame_filename(title: str, index: int) -> str:
    """File name of a single exported frame.

    :param title: Story title (sanitized here)
    :param index: Zero-based frame index
    :return: ``{title}_frame_{n}.png`` with 1-based ``n``
    """
    return f"{sanitize_title(title)}_frame_{index + 1}.png"


def encode_png(surface: PIL.Image.Image) -> bytes:
    """Encodes a surface as PNG bytes."""
    buffer = io.BytesIO()
    surface.save(buffer, format="PNG")
    return buffer.getvalue()


class DownloadSink(ABC):
    """Receives finished artifacts."""

    @abstractmethod
    def deliver(self, artifact: Artifact) -> None:
        """Triggers the download of one artifact.

        :param artifact: The artifact
        """
        ...


class MemorySink(DownloadSink):
    """Keeps delivered artifacts in memory."""

    def __init__(self) -> None:
        self.artifacts: list[Artifact] = []

    def deliver(self, artifact: Artifact) -> None:
        self.artifacts.append(artifact)

    @property
    def filenames(self) -> list[str]:
        return [artifact.filename for artifact in self.artifacts]


class DirectorySink(DownloadSink):
    """Writes delivered artifacts into a directory."""

    def __init__(self, directory: str | Path | None = None) -> None:
        """
        :param directory: Target directory, ``settings.DOWNLOAD_DIR`` by default.
            Created on first delivery.
        """
        self.directory = Path(directory) if directory is not None else settings.DOWNLOAD_DIR
        self.paths: list[Path] = []

    def deliver(self, artifact: Artifact) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / artifact.filename
        path.write_bytes(artifact.data)
        self.paths.append(path)
        logger.info(f"Saved {artifact.filename} ({artifact.size} bytes) to {self.directory}")


class SingleAssetDownloader:
    """Composites exactly one frame and delivers it as a PNG image."""

    def __init__(self, compositor: FrameCompositor, sink: DownloadSink) -> None:
        self.compositor = compositor
        self.sink = sink

    async def download(self, frame: Frame, title: str, index: int, size: Size) -> Artifact:
        """Renders and delivers one frame.

        :param frame: The frame to export
        :param title: Story title, used for the file name
        :param index: Zero-based position of the frame in the story
        :param size: Destination size
        :return: The delivered artifact
        :raises ImageLoadError: If the frame's raster can not be loaded
        """
        surface = await self.compositor.render_frame(frame, size)
        artifact = Artifact(
            filename=frame_filename(title, index),
            data=encode_png(surface),
            mime_type="image/png",
        )
        self.sink.deliver(artifact)
        logger.info(f"Downloaded frame {index + 1} as {artifact.filename}")
        return artifact
