"""Exception classes for the export pipeline."""


class ExportError(Exception):
    """Base exception for export errors."""

    pass


class ImageLoadError(ExportError):
    """Raised when a frame's raster data can not be fetched or decoded."""

    pass


class EncoderUnavailableError(ExportError):
    """Raised when the runtime lacks the capability a backend requires."""

    pass


class EncoderRuntimeError(ExportError):
    """Raised when a backend fails after it has started encoding."""

    pass


class ArchiveBuildError(ExportError):
    """Raised when the frame archive can not be built. Not recoverable."""

    pass
