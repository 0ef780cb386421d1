"""Core repair pipeline and shared infrastructure."""

from .types import (
    TokenKind,
    StructuralToken,
    ScanState,
    RepairStage,
    StreamJSONError,
    RepairDefectError,
    StreamDecodeError,
)
from .json_repair import (
    EMPTY_DOCUMENT,
    scan_structure,
    select_cut_point,
    sanitize_tail,
    close_brackets,
    repair_partial_json,
    parse_partial_json,
    ends_with_open_number,
    is_valid_json,
    strip_code_fence,
)
from .abstractions import IJSONRepairStrategy
from .strategies import TruncationRepairStrategy
from .metrics import MetricsCollector
from .logger import get_logger

__all__ = [
    # Types
    "TokenKind",
    "StructuralToken",
    "ScanState",
    "RepairStage",
    "StreamJSONError",
    "RepairDefectError",
    "StreamDecodeError",
    # JSON Repair (pure, synchronous)
    "EMPTY_DOCUMENT",
    "scan_structure",
    "select_cut_point",
    "sanitize_tail",
    "close_brackets",
    "repair_partial_json",
    "parse_partial_json",
    "ends_with_open_number",
    "is_valid_json",
    "strip_code_fence",
    # Strategies
    "IJSONRepairStrategy",
    "TruncationRepairStrategy",
    # Infrastructure
    "MetricsCollector",
    "get_logger",
]
