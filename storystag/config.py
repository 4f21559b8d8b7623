"""Export configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Export settings."""

    # Compositing
    BACKGROUND_COLOR: str = "#FFFFFF"
    WATERMARK_TEXT: str = "bomma.art"
    WATERMARK_FONT: str = "DejaVuSans-Bold.ttf"  # Pillow's default font if missing
    WATERMARK_FONT_SIZE: int = 24
    WATERMARK_MARGIN: int = 20  # Distance of the text baseline from the lower edge
    WATERMARK_FILL: tuple[int, int, int, int] = (255, 255, 255, 178)
    WATERMARK_SHADOW: tuple[int, int, int, int] = (0, 0, 0, 128)
    WATERMARK_SHADOW_BLUR: float = 2.0
    WATERMARK_SHADOW_OFFSET: int = 2

    # Frames
    DEFAULT_FRAME_DURATION_MS: int = 500
    FETCH_TIMEOUT: float = 30.0  # Seconds, for http(s) frame sources

    # Video backend
    VIDEO_FPS: int = 30
    VIDEO_FOURCC: str = "mp4v"
    VIDEO_TIMING: str = "realtime"  # 'realtime' or 'offline'

    # Output
    DOWNLOAD_DIR: Path = Path.cwd() / "downloads"
    ARCHIVE_VIEWER: bool = True  # Add an index.html player to frame archives

    model_config = {"env_prefix": "STORYSTAG_"}


settings = Settings()
