"""
Target format presets.

Maps a :class:`~storystag.models.TargetFormat` to the pixel size of the
destination surface. The original format has no fixed size; it resolves to
the :data:`ORIGINAL` sentinel and adopts the first frame's native size.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .models import TargetFormat

if TYPE_CHECKING:
    import PIL.Image


@dataclass(frozen=True)
class Size:
    """Integer pixel dimensions of a surface."""
    width: int
    height: int

    def to_tuple(self) -> tuple[int, int]:
        return (self.width, self.height)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


class _OriginalSize:
    """Sentinel for "use the first frame's native dimensions"."""

    def __repr__(self) -> str:
        return "ORIGINAL"


ORIGINAL: Final = _OriginalSize()

FORMAT_DIMENSIONS: dict[TargetFormat, Size] = {
    TargetFormat.SQUARE: Size(1080, 1080),
    TargetFormat.REEL: Size(1080, 1920),
    TargetFormat.LANDSCAPE: Size(1280, 720),
    TargetFormat.PORTRAIT: Size(1080, 1350),
}
"Fixed destination sizes of all non-original formats"


def resolve_format(target_format: TargetFormat | str) -> Size | _OriginalSize:
    """Look up the destination size of a format.

    :param target_format: The format key
    :return: The fixed size or :data:`ORIGINAL`
    """
    return FORMAT_DIMENSIONS.get(TargetFormat(target_format), ORIGINAL)


def resolve_size(
    target_format: TargetFormat | str, first_image: "PIL.Image.Image"
) -> Size:
    """Resolve the destination size for a whole export.

    :param target_format: The format key
    :param first_image: The decoded first frame of the export
    :return: The fixed size, or the first frame's native size for originals
    """
    resolved = resolve_format(target_format)
    if resolved is ORIGINAL:
        return Size(first_image.width, first_image.height)
    return resolved
