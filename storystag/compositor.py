"""Frame compositor.

Renders one source frame onto a destination surface of fixed size. The frame
is scaled uniformly to fit (never cropped, letterboxed where the aspect ratios
differ), centered on an opaque background and stamped with the watermark.

Compositing goes through a :class:`~storystag.layers.LayerStack` with three
layers, flattened bottom to top: background fill, frame content, watermark.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import PIL.Image
import PIL.ImageColor

from .config import settings
from .formats import Size
from .layers import LayerStack
from .loader import load_image
from .models import Frame
from .watermark import Watermark

logger = logging.getLogger(__name__)

FRAME_LAYER_ID = "frame"
WATERMARK_LAYER_ID = "watermark"


@dataclass(frozen=True)
class Placement:
    """Where a scaled source lands on the destination surface.

    Attributes:
        scale: Uniform scale factor applied to the source
        x: Left edge of the scaled source
        y: Top edge of the scaled source
        width: Scaled source width
        height: Scaled source height
    """
    scale: float
    x: int
    y: int
    width: int
    height: int


def compute_placement(source: tuple[int, int], destination: Size) -> Placement:
    """Computes the scale-to-fit placement of a source inside a destination.

    :param source: Source (width, height)
    :param destination: Destination size
    :return: The placement, always fully inside the destination
    """
    src_w, src_h = source
    if src_w <= 0 or src_h <= 0:
        raise ValueError(f"Invalid source size {source}")
    scale = min(destination.width / src_w, destination.height / src_h)
    # Rounding may overshoot by a fraction of a pixel, clamp to the surface
    scaled_w = max(1, min(destination.width, round(src_w * scale)))
    scaled_h = max(1, min(destination.height, round(src_h * scale)))
    x = (destination.width - scaled_w) // 2
    y = (destination.height - scaled_h) // 2
    return Placement(scale=scale, x=x, y=y, width=scaled_w, height=scaled_h)


class FrameCompositor:
    """
    Composites source rasters onto destination surfaces.

    Example:
        compositor = FrameCompositor()
        surface = compositor.composite(image, Size(1080, 1080))
        surface.save("frame.png")
    """

    def __init__(
        self,
        background: str | None = None,
        watermark: Watermark | None = None,
    ):
        """
        :param background: Background color, any Pillow color string.
            Defaults to ``settings.BACKGROUND_COLOR``.
        :param watermark: The watermark to stamp, a default one if omitted
        """
        color = PIL.ImageColor.getrgb(background or settings.BACKGROUND_COLOR)
        self.background: tuple[int, int, int, int] = (*color[:3], 255)
        self.watermark = watermark or Watermark()

    def build_stack(self, image: PIL.Image.Image, size: Size) -> LayerStack:
        """Builds the layer stack for one frame.

        :param image: The decoded source image
        :param size: Destination size
        :return: Stack holding background, frame and watermark layers
        """
        placement = compute_placement(image.size, size)
        stack = LayerStack(size.width, size.height, background=self.background)

        content = stack.add_layer(name="Frame", layer_id=FRAME_LAYER_ID)
        source = image if image.mode == "RGBA" else image.convert("RGBA")
        if source.size != (placement.width, placement.height):
            source = source.resize(
                (placement.width, placement.height), PIL.Image.Resampling.LANCZOS
            )
        content.surface.paste(source, (placement.x, placement.y))

        overlay = stack.add_layer(name="Watermark", layer_id=WATERMARK_LAYER_ID)
        self.watermark.draw(overlay.surface)
        return stack

    def composite(self, image: PIL.Image.Image, size: Size) -> PIL.Image.Image:
        """Composites a source image onto a new opaque surface.

        :param image: The decoded source image
        :param size: Destination size
        :return: RGB surface of exactly ``size``
        """
        return self.build_stack(image, size).flatten().convert("RGB")

    def composite_onto(self, surface: PIL.Image.Image, image: PIL.Image.Image) -> None:
        """Composites a source image onto an existing surface, replacing its content.

        :param surface: The destination surface, its size defines the output
        :param image: The decoded source image
        """
        size = Size(surface.width, surface.height)
        self.build_stack(image, size).render_to(surface)

    async def render_frame(self, frame: Frame, size: Size) -> PIL.Image.Image:
        """Loads a frame's raster and composites it.

        The raster is fully decoded before any surface is created, so a
        broken source never yields a partially rendered surface.

        :param frame: The frame to render
        :param size: Destination size
        :return: RGB surface of exactly ``size``
        :raises ImageLoadError: If the frame's raster can not be loaded
        """
        image = await load_image(frame.image_data)
        surface = self.composite(image, size)
        logger.debug(f"Composited frame {frame.order} onto {size}")
        return surface
