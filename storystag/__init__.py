"""
Storystag - Export hand-drawn frame stories as images, GIFs, videos and archives
"""

from .config import Settings, settings
from .exceptions import (
    ExportError,
    ImageLoadError,
    EncoderUnavailableError,
    EncoderRuntimeError,
    ArchiveBuildError,
)
from .models import Frame, Story, ExportRequest, TargetFormat, ExportScope, Encoding, sanitize_title
from .formats import Size, ORIGINAL, FORMAT_DIMENSIONS, resolve_format, resolve_size
from .layers import Layer, LayerStack
from .watermark import Watermark
from .compositor import FrameCompositor, Placement, compute_placement
from .download import Artifact, DownloadSink, MemorySink, DirectorySink, SingleAssetDownloader
from .notices import Notice, NoticeLevel, Notifier, LoggingNotifier, CollectingNotifier
from .exporters import Exporter, VideoExporter, GifExporter, ArchiveExporter
from .orchestrator import ExportOrchestrator, ExportResult

__all__ = [
    # Configuration
    "Settings",
    "settings",
    # Errors
    "ExportError",
    "ImageLoadError",
    "EncoderUnavailableError",
    "EncoderRuntimeError",
    "ArchiveBuildError",
    # Models
    "Frame",
    "Story",
    "ExportRequest",
    "TargetFormat",
    "ExportScope",
    "Encoding",
    "sanitize_title",
    # Formats
    "Size",
    "ORIGINAL",
    "FORMAT_DIMENSIONS",
    "resolve_format",
    "resolve_size",
    # Compositing
    "Layer",
    "LayerStack",
    "Watermark",
    "FrameCompositor",
    "Placement",
    "compute_placement",
    # Delivery
    "Artifact",
    "DownloadSink",
    "MemorySink",
    "DirectorySink",
    "SingleAssetDownloader",
    # Notices
    "Notice",
    "NoticeLevel",
    "Notifier",
    "LoggingNotifier",
    "CollectingNotifier",
    # Backends
    "Exporter",
    "VideoExporter",
    "GifExporter",
    "ArchiveExporter",
    # Entry point
    "ExportOrchestrator",
    "ExportResult",
]

__version__ = "0.1.0"
