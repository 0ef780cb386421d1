"""Live preview of JSON documents that arrive as a text stream."""

from .stream_preview import (
    PreviewSnapshot,
    StreamingJSONPreview,
    preview_stream,
    apreview_stream,
)
from .progress import ProgressEvent, ProgressTracker

__all__ = [
    "PreviewSnapshot",
    "StreamingJSONPreview",
    "preview_stream",
    "apreview_stream",
    "ProgressEvent",
    "ProgressTracker",
]
