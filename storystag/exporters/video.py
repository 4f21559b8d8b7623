"""Video export backend.

One persistent surface is sampled by a :class:`SurfaceCapture` at a fixed
frame rate, and every sample is written to a :class:`StreamRecorder`. The
exporter composites frame after frame onto that surface and holds each one
for its duration in real time, so the number of samples showing a frame
matches its display time.

The ``offline`` timing mode skips the wall-clock waits and writes the number
of samples a frame would have received directly.

The recorder uses OpenCV's ``mp4v`` writer, so the output is a genuine MP4
container.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import tempfile

import numpy as np
import PIL.Image

from storystag.config import settings
from storystag.exceptions import EncoderRuntimeError, EncoderUnavailableError
from storystag.formats import Size
from storystag.loader import load_image
from storystag.models import Encoding, Story

from .base import Exporter

logger = logging.getLogger(__name__)

TIMING_REALTIME = "realtime"
TIMING_OFFLINE = "offline"

# Cache module at module level to avoid import overhead in hot loops
_cv2_module = None


def _get_cv2():
    """Get OpenCV module, returning None if not available."""
    global _cv2_module
    if _cv2_module is not None:
        return _cv2_module
    try:
        import cv2
        _cv2_module = cv2
        return cv2
    except ImportError:
        return None


class StreamRecorder:
    """Accumulates captured surfaces into one video file.

    Example:
        recorder = StreamRecorder(Size(1080, 1080), fps=30)
        recorder.start()
        recorder.write(surface)
        data = recorder.stop()
    """

    def __init__(self, size: Size, fps: int, fourcc: str | None = None) -> None:
        """
        :param size: Size of every written surface
        :param fps: Playback frame rate of the video
        :param fourcc: Four character codec code, ``settings.VIDEO_FOURCC`` by default
        """
        self.size = size
        self.fps = fps
        self.fourcc = fourcc or settings.VIDEO_FOURCC
        self.frames_written = 0
        self._writer = None
        self._path: str | None = None

    @property
    def is_recording(self) -> bool:
        return self._writer is not None

    def start(self) -> None:
        """Opens the video writer.

        :raises EncoderUnavailableError: If OpenCV or the codec is missing
        """
        cv2 = _get_cv2()
        if cv2 is None:
            raise EncoderUnavailableError("OpenCV (cv2) is required for video export")
        handle, self._path = tempfile.mkstemp(suffix=".mp4", prefix="storystag_")
        os.close(handle)
        writer = cv2.VideoWriter(
            self._path,
            cv2.VideoWriter_fourcc(*self.fourcc),
            float(self.fps),
            self.size.to_tuple(),
        )
        if not writer.isOpened():
            writer.release()
            self._discard()
            raise EncoderUnavailableError(
                f"Video codec {self.fourcc} is not supported by this OpenCV build"
            )
        self._writer = writer
        self.frames_written = 0

    def write(self, surface: PIL.Image.Image) -> None:
        """Appends one captured surface.

        :param surface: The surface, must match the recorder's size
        """
        if self._writer is None:
            raise EncoderRuntimeError("Recorder is not running")
        if surface.size != self.size.to_tuple():
            raise EncoderRuntimeError(
                f"Captured surface {surface.size} does not match {self.size}"
            )
        cv2 = _get_cv2()
        pixels = np.asarray(surface.convert("RGB"))
        try:
            self._writer.write(cv2.cvtColor(pixels, cv2.COLOR_RGB2BGR))
        except cv2.error as e:
            raise EncoderRuntimeError(f"Writing video frame failed: {e}") from e
        self.frames_written += 1

    def stop(self) -> bytes:
        """Finalizes the video.

        :return: The video file content
        """
        if self._writer is None:
            raise EncoderRuntimeError("Recorder is not running")
        self._writer.release()
        self._writer = None
        try:
            with open(self._path, "rb") as f:
                data = f.read()
        except OSError as e:
            raise EncoderRuntimeError(f"Reading recorded video failed: {e}") from e
        finally:
            self._discard()
        if self.frames_written == 0 or not data:
            raise EncoderRuntimeError("Recorder produced no video data")
        return data

    def abort(self) -> None:
        """Releases the writer and drops everything recorded so far."""
        if self._writer is not None:
            self._writer.release()
            self._writer = None
        self._discard()

    def _discard(self) -> None:
        if self._path is not None:
            with contextlib.suppress(FileNotFoundError):
                os.remove(self._path)
            self._path = None


class SurfaceCapture:
    """Samples a surface at a fixed frame rate into a recorder.

    The sample count is derived from the elapsed time since :meth:`start`,
    so samples missed while the event loop was busy are caught up with the
    surface's content at the time of catching up. Call :meth:`flush` right
    before changing the surface to attribute pending samples to the old
    content.
    """

    def __init__(self, surface: PIL.Image.Image, recorder: StreamRecorder, fps: int) -> None:
        self.surface = surface
        self.recorder = recorder
        self.fps = fps
        self.samples = 0
        self._start_time = 0.0
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None

    def _now(self) -> float:
        return asyncio.get_running_loop().time()

    def start(self) -> None:
        """Starts sampling; the first sample is taken immediately."""
        self._start_time = self._now()
        self.samples = 0
        self.flush()
        self._task = asyncio.create_task(self._run())

    def flush(self) -> None:
        """Writes all samples that are due by now."""
        due = int((self._now() - self._start_time) * self.fps) + 1
        while self.samples < due:
            self.recorder.write(self.surface)
            self.samples += 1

    async def _run(self) -> None:
        interval = 1.0 / self.fps
        while True:
            await asyncio.sleep(interval)
            self.flush()

    async def stop(self) -> None:
        """Takes the last due samples and stops sampling."""
        task, self._task = self._task, None
        if task is None:
            return
        if task.done():
            # Re-raises a failure of the sampling loop
            task.result()
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        self.flush()


class VideoExporter(Exporter):
    """Exports a story as an MP4 video recorded from a live surface."""

    encoding = Encoding.VIDEO
    label = "MP4"
    extension = "mp4"
    mime_type = "video/mp4"

    def __init__(self, compositor=None, fps: int | None = None, timing: str | None = None):
        """
        :param compositor: The frame compositor
        :param fps: Capture frame rate, ``settings.VIDEO_FPS`` by default
        :param timing: 'realtime' or 'offline', ``settings.VIDEO_TIMING`` by default
        """
        super().__init__(compositor)
        self.fps = fps or settings.VIDEO_FPS
        self.timing = timing or settings.VIDEO_TIMING
        if self.timing not in (TIMING_REALTIME, TIMING_OFFLINE):
            raise ValueError(f"Unknown video timing: {self.timing}")

    def samples_for(self, duration_ms: int) -> int:
        """Number of samples a frame of the given duration occupies."""
        return max(1, round(duration_ms * self.fps / 1000))

    async def encode(self, story: Story, size: Size) -> bytes:
        # Decode everything up front so decoding never stretches a held frame
        images = [await load_image(frame.image_data) for frame in story.frames]

        surface = PIL.Image.new("RGB", size.to_tuple(), (0, 0, 0))
        recorder = StreamRecorder(size, self.fps)
        recorder.start()
        try:
            if self.timing == TIMING_OFFLINE:
                self._record_offline(story, images, surface, recorder)
            else:
                await self._record_realtime(story, images, surface, recorder)
            data = recorder.stop()
        except BaseException:
            recorder.abort()
            raise
        logger.debug(f"MP4: {recorder.frames_written} samples at {self.fps} fps")
        return data

    async def _record_realtime(self, story, images, surface, recorder) -> None:
        capture = SurfaceCapture(surface, recorder, self.fps)
        try:
            for index, (frame, image) in enumerate(zip(story.frames, images)):
                if capture.is_running:
                    capture.flush()
                self.compositor.composite_onto(surface, image)
                if not capture.is_running:
                    capture.start()
                logger.debug(f"MP4: holding frame {index + 1} for {frame.duration_ms}ms")
                await asyncio.sleep(frame.duration)
        finally:
            await capture.stop()

    def _record_offline(self, story, images, surface, recorder) -> None:
        for frame, image in zip(story.frames, images):
            self.compositor.composite_onto(surface, image)
            for _ in range(self.samples_for(frame.duration_ms)):
                recorder.write(surface)
