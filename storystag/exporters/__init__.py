"""
Multi-frame export backends.

Backends in fallback order:
    VideoExporter (encoding 'video', .mp4) - live surface capture
    GifExporter (encoding 'gif', .gif) - frame accumulating GIF encoder
    ArchiveExporter (encoding 'archive', .zip) - PNG frames, last resort
"""

from .base import Exporter
from .video import VideoExporter, StreamRecorder, SurfaceCapture
from .gif import GifExporter, GifAccumulator
from .archive import ArchiveExporter, archive_entry_name, build_viewer

__all__ = [
    'Exporter',
    'VideoExporter',
    'StreamRecorder',
    'SurfaceCapture',
    'GifExporter',
    'GifAccumulator',
    'ArchiveExporter',
    'archive_entry_name',
    'build_viewer',
]
