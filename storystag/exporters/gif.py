"""Animated GIF export backend.

Frames are composited off-screen one after the other and queued in a
:class:`GifAccumulator` together with their delays. Rendering the final GIF
happens in a worker thread owned by the accumulator.
"""

from __future__ import annotations

import asyncio
import io
import logging

import PIL.Image

from storystag.exceptions import EncoderRuntimeError
from storystag.formats import Size
from storystag.models import Encoding, Story

from .base import Exporter

logger = logging.getLogger(__name__)


class GifAccumulator:
    """Order-sensitive frame queue for one animated GIF.

    GIF stores delays in units of 10ms, so delays are preserved exactly
    when they are multiples of 10ms.

    Pillow merges identical consecutive frames into one frame carrying the
    sum of their delays. The GIF may then hold fewer frames than were
    added, the total display time stays the same.
    """

    def __init__(self, size: Size, loop: int = 0):
        """
        :param size: Size every frame must have
        :param loop: Number of loops, 0 for endless
        """
        self.size = size
        self.loop = loop
        self._frames: list[PIL.Image.Image] = []
        self._delays: list[int] = []

    def __len__(self) -> int:
        return len(self._frames)

    @property
    def delays(self) -> list[int]:
        return list(self._delays)

    def add_frame(self, surface: PIL.Image.Image, delay_ms: int) -> None:
        """Appends a frame.

        :param surface: The composited frame
        :param delay_ms: Display time before the next frame
        """
        if surface.size != self.size.to_tuple():
            raise EncoderRuntimeError(
                f"GIF frame size {surface.size} does not match {self.size}"
            )
        self._frames.append(surface.convert("RGB"))
        self._delays.append(int(delay_ms))

    def render(self) -> bytes:
        """Encodes all queued frames into one GIF.

        :return: The GIF file content
        """
        if not self._frames:
            raise EncoderRuntimeError("No frames were added to the GIF")
        buffer = io.BytesIO()
        try:
            self._frames[0].save(
                buffer,
                format="GIF",
                save_all=True,
                append_images=self._frames[1:],
                duration=self._delays,
                loop=self.loop,
            )
        except (OSError, ValueError) as e:
            raise EncoderRuntimeError(f"GIF encoding failed: {e}") from e
        return buffer.getvalue()

    async def render_async(self) -> bytes:
        """Renders the GIF without blocking the event loop."""
        return await asyncio.to_thread(self.render)


class GifExporter(Exporter):
    """Exports a story as an animated GIF."""

    encoding = Encoding.GIF
    label = "GIF"
    extension = "gif"
    mime_type = "image/gif"

    async def encode(self, story: Story, size: Size) -> bytes:
        accumulator = GifAccumulator(size)
        for frame in story.frames:
            surface = await self.compositor.render_frame(frame, size)
            accumulator.add_frame(surface, frame.duration_ms)
        logger.debug(f"GIF: rendering {len(accumulator)} frames")
        return await accumulator.render_async()
