"""
Tests for the video backend.
"""

import asyncio

import PIL.Image
import pytest

from storystag import (
    EncoderRuntimeError,
    EncoderUnavailableError,
    ImageLoadError,
    Size,
    Story,
    VideoExporter,
)
from storystag.exporters import video
from storystag.exporters.video import StreamRecorder, SurfaceCapture


class FakeRecorder:
    """Recorder remembering the center pixel of every written sample."""

    def __init__(self):
        self.samples = []

    def write(self, surface):
        self.samples.append(surface.getpixel((surface.width // 2, surface.height // 2)))


def _count_video_frames(data: bytes, tmp_path) -> int:
    cv2 = pytest.importorskip("cv2")
    path = tmp_path / "read_back.mp4"
    path.write_bytes(data)
    capture = cv2.VideoCapture(str(path))
    try:
        count = 0
        while True:
            ok, _ = capture.read()
            if not ok:
                break
            count += 1
        return count
    finally:
        capture.release()


class TestSurfaceCapture:
    """Tests for SurfaceCapture."""

    @pytest.mark.asyncio
    async def test_first_sample_is_immediate(self):
        surface = PIL.Image.new("RGB", (4, 4), (255, 0, 0))
        recorder = FakeRecorder()
        capture = SurfaceCapture(surface, recorder, fps=10)
        capture.start()
        assert recorder.samples == [(255, 0, 0)]
        await capture.stop()
        assert not capture.is_running

    @pytest.mark.asyncio
    async def test_samples_follow_elapsed_time(self):
        surface = PIL.Image.new("RGB", (4, 4), (255, 0, 0))
        recorder = FakeRecorder()
        capture = SurfaceCapture(surface, recorder, fps=20)
        capture.start()
        await asyncio.sleep(0.5)
        capture.flush()
        surface.paste((0, 0, 255), (0, 0, 4, 4))
        await asyncio.sleep(0.25)
        await capture.stop()

        reds = recorder.samples.count((255, 0, 0))
        blues = recorder.samples.count((0, 0, 255))
        # 0.5s and 0.25s at 20 fps, with scheduling slack
        assert 9 <= reds <= 14
        assert 3 <= blues <= 8
        assert recorder.samples[:reds] == [(255, 0, 0)] * reds


class TestStreamRecorder:
    """Tests for StreamRecorder."""

    def test_unavailable_without_opencv(self, monkeypatch):
        monkeypatch.setattr(video, "_get_cv2", lambda: None)
        with pytest.raises(EncoderUnavailableError):
            StreamRecorder(Size(16, 16), fps=10).start()

    def test_write_before_start(self):
        with pytest.raises(EncoderRuntimeError):
            StreamRecorder(Size(16, 16), fps=10).write(PIL.Image.new("RGB", (16, 16)))

    def test_stop_without_frames(self):
        pytest.importorskip("cv2")
        recorder = StreamRecorder(Size(16, 16), fps=10)
        recorder.start()
        with pytest.raises(EncoderRuntimeError):
            recorder.stop()

    def test_size_mismatch(self):
        pytest.importorskip("cv2")
        recorder = StreamRecorder(Size(16, 16), fps=10)
        recorder.start()
        try:
            with pytest.raises(EncoderRuntimeError):
                recorder.write(PIL.Image.new("RGB", (8, 16)))
        finally:
            recorder.abort()


class TestVideoExporter:
    """Tests for VideoExporter."""

    def test_unknown_timing(self):
        with pytest.raises(ValueError):
            VideoExporter(timing="whenever")

    def test_samples_for(self):
        exporter = VideoExporter(fps=30, timing="offline")
        assert exporter.samples_for(800) == 24
        assert exporter.samples_for(1000) == 30
        assert exporter.samples_for(1) == 1

    @pytest.mark.asyncio
    async def test_offline_sample_count(self, make_story, tmp_path):
        pytest.importorskip("cv2")
        story = make_story(count=3, duration_ms=800)
        exporter = VideoExporter(fps=10, timing="offline")
        artifact = await exporter.attempt(story, Size(64, 64))

        assert artifact.filename == "mystory.mp4"
        assert artifact.mime_type == "video/mp4"
        assert artifact.data[4:8] == b"ftyp"
        assert _count_video_frames(artifact.data, tmp_path) == 24

    @pytest.mark.asyncio
    async def test_realtime_recording(self, make_story, tmp_path):
        pytest.importorskip("cv2")
        story = make_story(count=2, duration_ms=300)
        exporter = VideoExporter(fps=20, timing="realtime")
        data = await exporter.encode(story, Size(64, 64))
        # 0.6s at 20 fps, with scheduling slack
        assert 10 <= _count_video_frames(data, tmp_path) <= 16

    @pytest.mark.asyncio
    async def test_unavailable_encoder(self, make_story, monkeypatch):
        monkeypatch.setattr(video, "_get_cv2", lambda: None)
        with pytest.raises(EncoderUnavailableError):
            await VideoExporter(timing="offline").encode(make_story(count=2), Size(32, 32))

    @pytest.mark.asyncio
    async def test_load_error_before_recording(self, png_data_url, monkeypatch):
        """Broken frames are detected before the recorder is touched."""
        started = []
        monkeypatch.setattr(StreamRecorder, "start", lambda self: started.append(self))
        story = Story(
            isAnimation=True,
            frames=[
                {"order": 0, "imageData": png_data_url(10, 10)},
                {"order": 1, "imageData": "data:image/png;base64,AAAA"},
            ],
        )
        with pytest.raises(ImageLoadError):
            await VideoExporter(timing="offline").encode(story, Size(32, 32))
        assert started == []
