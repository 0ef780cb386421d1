"""Shared type definitions for the repair pipeline and preview layer."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class TokenKind(str, Enum):
    """Kind of container opened by a structural token."""

    OBJECT_OPEN = "{"
    ARRAY_OPEN = "["

    @property
    def closer(self) -> str:
        return "}" if self is TokenKind.OBJECT_OPEN else "]"


class RepairStage(str, Enum):
    """Stages of the repair pipeline, in execution order."""

    SCAN = "scan"
    CUT = "cut"
    SANITIZE = "sanitize"
    CLOSE = "close"


@dataclass(frozen=True)
class StructuralToken:
    """An open brace/bracket and where it sits in the source text."""

    kind: TokenKind
    position: int


@dataclass
class ScanState:
    """Result of a single string-aware pass over the text."""

    in_string: bool = False
    is_escaped: bool = False
    string_start: Optional[int] = None
    last_string_start: Optional[int] = None
    stack: List[StructuralToken] = field(default_factory=list)

    @property
    def innermost(self) -> Optional[StructuralToken]:
        """Innermost still-open container, if any."""
        return self.stack[-1] if self.stack else None


class StreamJSONError(Exception):
    """Base error for the preview layer."""


class RepairDefectError(StreamJSONError):
    """Repaired text failed to decode. Always a bug in the repair strategy."""

    def __init__(self, strategy: str, text: str, reason: str):
        self.strategy = strategy
        self.text = text
        self.reason = reason
        super().__init__(f"[{strategy}] repaired text does not decode: {reason}")


class StreamDecodeError(StreamJSONError):
    """The completed stream buffer is not a valid JSON document."""

    def __init__(self, buffer_length: int, reason: str):
        self.buffer_length = buffer_length
        self.reason = reason
        super().__init__(f"Stream of {buffer_length} chars did not decode: {reason}")
