"""
Storystag data models

Pydantic models for the story payload and export options. Stories and frames
are frozen; the export pipeline only ever reads them.
"""

from .frame import Frame
from .story import Story, sanitize_title
from .request import Encoding, ExportRequest, ExportScope, TargetFormat

__all__ = [
    'Frame',
    'Story',
    'sanitize_title',
    'Encoding',
    'ExportRequest',
    'ExportScope',
    'TargetFormat',
]
