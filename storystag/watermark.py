"""
Brand watermark stamped onto every exported raster.

The text is centered horizontally with its baseline a fixed margin above the
lower edge. A blurred, offset shadow is drawn below the translucent text so
it stays legible on light and dark content alike.
"""

from __future__ import annotations

import logging

import PIL.Image
import PIL.ImageDraw
import PIL.ImageFilter
import PIL.ImageFont

from .config import settings

logger = logging.getLogger(__name__)


def _load_font(name: str, size: int) -> PIL.ImageFont.ImageFont | PIL.ImageFont.FreeTypeFont:
    try:
        return PIL.ImageFont.truetype(name, size)
    except OSError:
        logger.debug(f"Font {name} not available, using Pillow's default font")
        return PIL.ImageFont.load_default(size=size)


class Watermark:
    """
    Renders the fixed watermark string.

    All parameters default to the values in :mod:`storystag.config`.
    """

    def __init__(
        self,
        text: str | None = None,
        font_size: int | None = None,
        margin: int | None = None,
        fill: tuple[int, int, int, int] | None = None,
        shadow: tuple[int, int, int, int] | None = None,
        shadow_blur: float | None = None,
        shadow_offset: int | None = None,
    ):
        self.text = text if text is not None else settings.WATERMARK_TEXT
        self.font_size = font_size or settings.WATERMARK_FONT_SIZE
        self.margin = margin if margin is not None else settings.WATERMARK_MARGIN
        self.fill = tuple(fill or settings.WATERMARK_FILL)
        self.shadow = tuple(shadow or settings.WATERMARK_SHADOW)
        self.shadow_blur = (
            shadow_blur if shadow_blur is not None else settings.WATERMARK_SHADOW_BLUR
        )
        self.shadow_offset = (
            shadow_offset if shadow_offset is not None else settings.WATERMARK_SHADOW_OFFSET
        )
        self.font = _load_font(settings.WATERMARK_FONT, self.font_size)
        self._cache: dict[tuple[int, int], PIL.Image.Image] = {}

    def anchor_point(self, width: int, height: int) -> tuple[int, int]:
        """Bottom-center anchor of the text baseline.

        :param width: Surface width
        :param height: Surface height
        :return: The (x, y) anchor
        """
        return width // 2, height - self.margin

    def render(self, width: int, height: int) -> PIL.Image.Image:
        """Renders the watermark onto a transparent surface.

        The result only depends on the surface size and is cached per size.

        :param width: Surface width
        :param height: Surface height
        :return: RGBA surface holding shadow and text
        """
        key = (width, height)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        x, y = self.anchor_point(width, height)

        shadow = PIL.Image.new("RGBA", key, (0, 0, 0, 0))
        PIL.ImageDraw.Draw(shadow).text(
            (x + self.shadow_offset, y + self.shadow_offset),
            self.text,
            font=self.font,
            fill=self.shadow,
            anchor="ms",
        )
        if self.shadow_blur > 0:
            shadow = shadow.filter(PIL.ImageFilter.GaussianBlur(self.shadow_blur))

        text = PIL.Image.new("RGBA", key, (0, 0, 0, 0))
        PIL.ImageDraw.Draw(text).text(
            (x, y), self.text, font=self.font, fill=self.fill, anchor="ms"
        )
        shadow.alpha_composite(text)
        self._cache[key] = shadow
        return shadow

    def draw(self, surface: PIL.Image.Image) -> None:
        """Stamps the watermark onto ``surface`` in place.

        :param surface: RGBA surface to draw on
        """
        surface.alpha_composite(self.render(surface.width, surface.height))
