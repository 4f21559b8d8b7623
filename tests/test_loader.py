"""
Tests for loading frame rasters from their references.
"""

import io
import zipfile

import PIL.Image
import pytest

from storystag import ImageLoadError
from storystag.loader import decode_data_url, decode_image, load_image


def _png_bytes(width=20, height=10, color=(0, 0, 255, 255)) -> bytes:
    buffer = io.BytesIO()
    PIL.Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


class TestDecodeDataUrl:
    """Tests for decode_data_url()."""

    def test_base64_payload(self):
        assert decode_data_url("data:text/plain;base64,aGVsbG8=") == b"hello"

    def test_percent_encoded_payload(self):
        assert decode_data_url("data:text/plain,a%20b") == b"a b"

    def test_missing_comma(self):
        with pytest.raises(ValueError):
            decode_data_url("data:image/png;base64")


class TestLoadImage:
    """Tests for load_image()."""

    @pytest.mark.asyncio
    async def test_data_url(self, png_data_url):
        image = await load_image(png_data_url(30, 20))
        assert image.size == (30, 20)
        assert image.mode == "RGBA"

    @pytest.mark.asyncio
    async def test_file_path(self, tmp_path):
        path = tmp_path / "frame.png"
        path.write_bytes(_png_bytes(12, 34))
        image = await load_image(str(path))
        assert image.size == (12, 34)

    @pytest.mark.asyncio
    async def test_file_url(self, tmp_path):
        path = tmp_path / "frame one.png"
        path.write_bytes(_png_bytes(5, 6))
        image = await load_image(path.as_uri())
        assert image.size == (5, 6)

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        with pytest.raises(ImageLoadError):
            await load_image(str(tmp_path / "missing.png"))

    @pytest.mark.asyncio
    async def test_broken_base64(self):
        with pytest.raises(ImageLoadError):
            await load_image("data:image/png;base64,@@@not-base64@@@")

    @pytest.mark.asyncio
    async def test_truncated_png(self):
        """Bytes that start like a PNG but do not decode are rejected."""
        import base64
        data = _png_bytes()[:40]
        with pytest.raises(ImageLoadError):
            await load_image("data:image/png;base64," + base64.b64encode(data).decode())


class TestDecodeImage:
    """Tests for decode_image()."""

    def test_non_image_bytes(self):
        """Archives are recognized and rejected before decoding."""
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as zf:
            zf.writestr("a.txt", "hello")
        with pytest.raises(ImageLoadError):
            decode_image(buffer.getvalue())

    def test_garbage_bytes(self):
        with pytest.raises(ImageLoadError):
            decode_image(b"this is not an image at all")

    def test_converts_to_rgba(self):
        buffer = io.BytesIO()
        PIL.Image.new("L", (4, 4), 128).save(buffer, format="PNG")
        image = decode_image(buffer.getvalue())
        assert image.mode == "RGBA"
        assert image.getpixel((0, 0)) == (128, 128, 128, 255)
