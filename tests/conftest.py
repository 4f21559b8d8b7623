"""
Pytest fixtures for storystag tests
"""

import base64
import io

import PIL.Image
import pytest

from storystag import MemorySink, CollectingNotifier, Story, Watermark

FRAME_COLORS = [
    (255, 0, 0, 255),
    (0, 160, 0, 255),
    (0, 0, 255, 255),
    (255, 200, 0, 255),
    (128, 0, 128, 255),
]


def encode_png_data_url(width: int, height: int, color: tuple) -> str:
    image = PIL.Image.new("RGBA", (width, height), color)
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")


@pytest.fixture
def png_data_url():
    """
    Returns a factory creating solid color PNG data URLs.
    :return: factory(width, height, color) -> str
    """
    def factory(width: int = 800, height: int = 600, color: tuple = (255, 0, 0, 255)) -> str:
        return encode_png_data_url(width, height, color)

    return factory


@pytest.fixture
def make_story():
    """
    Returns a factory for stories with solid color frames of distinct colors.
    :return: factory(count, is_animation, duration_ms, size, title) -> Story
    """
    def factory(
        count: int = 3,
        is_animation: bool = True,
        duration_ms: int = 800,
        size: tuple[int, int] = (64, 48),
        title: str = "My Story!",
    ) -> Story:
        frames = [
            {
                "order": index,
                "imageData": encode_png_data_url(*size, FRAME_COLORS[index % len(FRAME_COLORS)]),
                "durationMs": duration_ms,
            }
            for index in range(count)
        ]
        return Story(title=title, isAnimation=is_animation, frames=frames)

    return factory


class CountingWatermark(Watermark):
    """Watermark recording how often it was drawn."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls = 0

    def draw(self, surface):
        self.calls += 1
        super().draw(surface)


@pytest.fixture
def counting_watermark() -> CountingWatermark:
    return CountingWatermark()


@pytest.fixture
def sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()
