"""ZIP archive export backend.

The last resort of the fallback chain. Each frame is composited and stored as
``{title}_frames/frame_{n}.png``. Optionally an ``index.html`` player is added
which steps through the frames using each frame's own duration.
"""

from __future__ import annotations

import html
import io
import json
import logging
from zipfile import ZIP_STORED, BadZipFile, ZipFile

from storystag.config import settings
from storystag.download import encode_png
from storystag.exceptions import ArchiveBuildError, ImageLoadError
from storystag.formats import Size
from storystag.models import Encoding, Story

from .base import Exporter

logger = logging.getLogger(__name__)

_VIEWER_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>{title}</title>
  <style>
    body {{ margin: 0; background: #000; display: flex; justify-content: center; align-items: center; height: 100vh; }}
    #player {{ max-width: 100%; max-height: 100vh; }}
    .controls {{ position: fixed; bottom: 10px; background: rgba(0,0,0,0.5); color: white; padding: 10px; border-radius: 5px; }}
  </style>
</head>
<body>
  <img id="player" src="{first}" width="{width}" height="{height}" />
  <div class="controls">
    <button id="play">Play</button>
    <button id="pause">Pause</button>
    <span id="frame">Frame: 1/{count}</span>
  </div>
  <script>
    const frames = {frames};
    const player = document.getElementById('player');
    const counter = document.getElementById('frame');
    let current = 0;
    let timer = null;
    function show(index) {{
      current = index;
      player.src = frames[current].src;
      counter.textContent = `Frame: ${{current + 1}}/${{frames.length}}`;
    }}
    function step() {{
      show((current + 1) % frames.length);
      timer = setTimeout(step, frames[current].duration);
    }}
    document.getElementById('play').addEventListener('click', () => {{
      if (timer === null) timer = setTimeout(step, frames[current].duration);
    }});
    document.getElementById('pause').addEventListener('click', () => {{
      clearTimeout(timer);
      timer = null;
    }});
  </script>
</body>
</html>
"""


def archive_entry_name(index: int) -> str:
    """Name of a frame inside the archive folder, 1-indexed."""
    return f"frame_{index + 1}.png"


def build_viewer(story: Story, size: Size) -> str:
    """Creates the HTML player for an archive.

    :param story: The exported story
    :param size: Size of the exported frames
    :return: The HTML document
    """
    frames = [
        {"src": archive_entry_name(index), "duration": frame.duration_ms}
        for index, frame in enumerate(story.frames)
    ]
    return _VIEWER_TEMPLATE.format(
        title=html.escape(story.title),
        first=archive_entry_name(0),
        width=size.width,
        height=size.height,
        count=len(frames),
        frames=json.dumps(frames),
    )


class ArchiveExporter(Exporter):
    """Exports a story as a ZIP archive of PNG frames."""

    encoding = Encoding.ARCHIVE
    label = "ZIP"
    extension = "zip"
    mime_type = "application/zip"
    filename_suffix = "_frames"

    def __init__(self, compositor=None, include_viewer: bool | None = None):
        """
        :param compositor: The frame compositor
        :param include_viewer: Add an index.html player,
            ``settings.ARCHIVE_VIEWER`` by default
        """
        super().__init__(compositor)
        self.include_viewer = (
            include_viewer if include_viewer is not None else settings.ARCHIVE_VIEWER
        )

    def folder_name(self, story: Story) -> str:
        return f"{story.safe_title}_frames"

    async def encode(self, story: Story, size: Size) -> bytes:
        folder = self.folder_name(story)
        buffer = io.BytesIO()
        try:
            with ZipFile(buffer, "w", compression=ZIP_STORED) as zip_file:
                for index, frame in enumerate(story.frames):
                    surface = await self.compositor.render_frame(frame, size)
                    zip_file.writestr(f"{folder}/{archive_entry_name(index)}", encode_png(surface))
                if self.include_viewer and story.frames:
                    zip_file.writestr(f"{folder}/index.html", build_viewer(story, size))
        except ImageLoadError:
            raise
        except (OSError, ValueError, BadZipFile) as e:
            raise ArchiveBuildError(f"Failed to build frame archive: {e}") from e
        return buffer.getvalue()
