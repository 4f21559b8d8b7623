"""
Export orchestration.

:class:`ExportOrchestrator` is the single entry point of the pipeline. It
picks the export path from the request and the story:

- ``scope='current'``: one frame through the single asset downloader.
- ``scope='all'`` on a non-animated story (or a single frame): every frame
  as its own PNG download.
- ``scope='all'`` on an animation: the fallback chain of export backends,
  starting at the requested encoding.

No exception escapes :meth:`ExportOrchestrator.export`. Every call returns an
:class:`ExportResult` with the delivered artifacts and the notices raised on
the way.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .compositor import FrameCompositor
from .download import Artifact, DirectorySink, DownloadSink, SingleAssetDownloader
from .exceptions import ExportError, ImageLoadError
from .exporters import Exporter
from .formats import ORIGINAL, Size, resolve_format
from .loader import load_image
from .models import Encoding, ExportRequest, ExportScope, Frame, Story
from .notices import CollectingNotifier, LoggingNotifier, Notice, Notifier

logger = logging.getLogger(__name__)


@dataclass
class ExportResult:
    """Outcome of one export call.

    Attributes:
        artifacts: Artifacts delivered to the sink, in delivery order
        notices: Notices raised during the export, in order
    """
    artifacts: list[Artifact] = field(default_factory=list)
    notices: list[Notice] = field(default_factory=list)

    @property
    def completed(self) -> bool:
        """True if something was delivered and no blocking notice was raised."""
        return bool(self.artifacts) and not any(n.blocking for n in self.notices)

    @property
    def filenames(self) -> list[str]:
        return [artifact.filename for artifact in self.artifacts]


class ExportOrchestrator:
    """
    Drives an export from request to download.

    Example:
        orchestrator = ExportOrchestrator(sink=DirectorySink("out"))
        result = await orchestrator.export(story, ExportRequest(
            target_format="square", encoding="gif"))
        if not result.completed:
            print(result.notices)
    """

    def __init__(
        self,
        sink: DownloadSink | None = None,
        notifier: Notifier | None = None,
        compositor: FrameCompositor | None = None,
        strategies: list[Exporter] | None = None,
    ):
        """
        :param sink: Receives the artifacts, a :class:`DirectorySink` by default
        :param notifier: Receives user notices, logging by default
        :param compositor: Shared frame compositor
        :param strategies: Export backends in fallback order. Defaults to
            one registered backend per encoding, in :class:`Encoding` order
            (video, GIF, archive).
        """
        self.sink = sink or DirectorySink()
        self.notifier = notifier or LoggingNotifier()
        self.compositor = compositor or FrameCompositor()
        if strategies is None:
            strategies = [
                Exporter.get_class(encoding)(self.compositor) for encoding in Encoding
            ]
        self.strategies = strategies
        self.downloader = SingleAssetDownloader(self.compositor, self.sink)

    async def export(self, story: Story, request: ExportRequest | None = None) -> ExportResult:
        """
        Export a story.

        Args:
            story: The story to export
            request: Export options, defaults apply if omitted

        Returns:
            The result with delivered artifacts and notices
        """
        request = request or ExportRequest()
        result = ExportResult()
        notices = CollectingNotifier(notices=result.notices, forward_to=self.notifier)
        try:
            if not story.frames:
                raise ExportError("The story has no frames to export")
            if request.scope == ExportScope.CURRENT:
                await self._export_current(story, request, result)
            elif story.is_animation and len(story.frames) > 1:
                await self._export_animation(story, request, result, notices)
            else:
                await self._export_frames(story, request, result)
        except ImageLoadError as e:
            notices.notify(Notice.failure(f"Download failed: a frame image could not be loaded ({e})"))
        except ExportError as e:
            notices.notify(Notice.failure(f"Download failed: {e}"))
        except Exception as e:
            logger.exception("Unexpected export failure")
            notices.notify(Notice.failure(f"Download failed: {e}"))
        return result

    async def _resolve_size(self, first: Frame, request: ExportRequest) -> Size:
        resolved = resolve_format(request.target_format)
        if resolved is ORIGINAL:
            image = await load_image(first.image_data)
            return Size(image.width, image.height)
        return resolved

    def _deliver(self, artifact: Artifact, result: ExportResult) -> None:
        self.sink.deliver(artifact)
        result.artifacts.append(artifact)

    async def _export_current(
        self, story: Story, request: ExportRequest, result: ExportResult
    ) -> None:
        index = request.current_index
        if index >= len(story.frames):
            raise ExportError(
                f"Frame {index + 1} does not exist, the story has {len(story.frames)} frames"
            )
        frame = story.frames[index]
        size = await self._resolve_size(frame, request)
        result.artifacts.append(await self.downloader.download(frame, story.title, index, size))

    async def _export_frames(
        self, story: Story, request: ExportRequest, result: ExportResult
    ) -> None:
        size = await self._resolve_size(story.frames[0], request)
        for index, frame in enumerate(story.frames):
            result.artifacts.append(
                await self.downloader.download(frame, story.title, index, size)
            )

    def _chain_from(self, encoding: Encoding) -> list[Exporter]:
        for position, strategy in enumerate(self.strategies):
            if strategy.encoding == Encoding(encoding):
                return self.strategies[position:]
        raise ExportError(f"No exporter available for {Encoding(encoding).value}")

    async def _export_animation(
        self,
        story: Story,
        request: ExportRequest,
        result: ExportResult,
        notices: Notifier,
    ) -> None:
        size = await self._resolve_size(story.frames[0], request)
        chain = self._chain_from(request.encoding)
        for position, strategy in enumerate(chain):
            try:
                artifact = await strategy.attempt(story, size)
            except ImageLoadError:
                raise
            except Exception as e:
                if position + 1 < len(chain):
                    fallback = chain[position + 1]
                    logger.debug(f"{strategy.label} export failed: {e!r}")
                    notices.notify(Notice.fallback(
                        f"{strategy.label} creation failed. Downloading as {fallback.label} instead."
                    ))
                    continue
                logger.debug(f"{strategy.label} export failed: {e!r}")
                notices.notify(Notice.failure(
                    f"{strategy.label} creation failed, no file was downloaded: {e}"
                ))
                return
            self._deliver(artifact, result)
            return
