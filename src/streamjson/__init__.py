"""streamjson: repair truncated JSON streams into valid, previewable documents."""

from .config import PreviewSettings
from .core import (
    repair_partial_json,
    parse_partial_json,
    is_valid_json,
    strip_code_fence,
    IJSONRepairStrategy,
    TruncationRepairStrategy,
    MetricsCollector,
    StreamJSONError,
    RepairDefectError,
    StreamDecodeError,
    get_logger,
)
from .preview import (
    PreviewSnapshot,
    StreamingJSONPreview,
    preview_stream,
    apreview_stream,
    ProgressEvent,
    ProgressTracker,
)

__version__ = "0.1.0"

__all__ = [
    # Repair
    "repair_partial_json",
    "parse_partial_json",
    "is_valid_json",
    "strip_code_fence",
    "IJSONRepairStrategy",
    "TruncationRepairStrategy",
    # Errors
    "StreamJSONError",
    "RepairDefectError",
    "StreamDecodeError",
    # Preview
    "PreviewSettings",
    "PreviewSnapshot",
    "StreamingJSONPreview",
    "preview_stream",
    "apreview_stream",
    "ProgressEvent",
    "ProgressTracker",
    # Infrastructure
    "MetricsCollector",
    "get_logger",
]
