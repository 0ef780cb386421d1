"""
JSON Repair - Core Module

Turns a possibly-truncated JSON fragment (an LLM response that is still
streaming) into the longest valid JSON document derivable from it.

The repair runs four strictly sequential stages:
1. scan_structure   - one string-aware pass building the open-container stack
2. select_cut_point - decide whether to discard one incomplete array element
3. sanitize_tail    - strip dangling separators and partial tokens
4. close_brackets   - append closers for containers that are still open

repair_partial_json() is total: it never raises and always returns text that
json.loads() accepts.
"""

import json
import logging
import re
import string
from typing import Any, Optional

from .types import RepairStage, ScanState, StructuralToken, TokenKind

logger = logging.getLogger(__name__)

EMPTY_DOCUMENT = "{}"
JSON_WHITESPACE = " \t\n\r"

_LITERAL_CHARS = string.ascii_letters + string.digits + ".+-"
_JSON_LITERAL = re.compile(
    r"true|false|null|-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?"
)
_CODE_FENCE_OPEN = re.compile(r"^\s*`{1,3}[A-Za-z0-9_-]*[ \t]*(?:\r?\n|$)")
_CODE_FENCE_CLOSE = re.compile(r"\s*`{1,3}\s*$")
_PARTIAL_UNICODE_ESCAPE = re.compile(r"(?<!\\)((?:\\\\)*)\\u[0-9A-Fa-f]{0,3}$")
_KEYWORDS = ("true", "false", "null")


# =============================================================================
# STAGE 1 - STRUCTURAL SCANNER
# =============================================================================

def scan_structure(text: str) -> ScanState:
    """
    Scan text once, tracking open containers and string-literal state.

    Any close character pops the innermost open container, whatever its kind.
    Mid-stream input may be malformed and the scan must not fail on it.

    Args:
        text: JSON text, possibly truncated

    Returns:
        ScanState describing still-open containers and any open string
    """
    state = ScanState()
    for index, char in enumerate(text):
        if state.in_string:
            if state.is_escaped:
                state.is_escaped = False
            elif char == "\\":
                state.is_escaped = True
            elif char == '"':
                state.in_string = False
                state.string_start = None
            continue

        if char == '"':
            state.in_string = True
            state.string_start = index
            state.last_string_start = index
        elif char == "{" or char == "[":
            state.stack.append(StructuralToken(TokenKind(char), index))
        elif char == "}" or char == "]":
            if state.stack:
                state.stack.pop()
    return state


# =============================================================================
# STAGE 2 - CUT-POINT SELECTOR
# =============================================================================

def select_cut_point(state: ScanState, length: int) -> int:
    """
    Pick the index at which to truncate, or ``length`` for no truncation.

    The shallowest open container sitting directly inside an open array is an
    incomplete element and is cut as a whole. Failing that, an unterminated
    string whose enclosing container is an array is cut at its opening quote.
    """
    for parent, current in zip(state.stack, state.stack[1:]):
        if parent.kind is TokenKind.ARRAY_OPEN:
            return current.position

    innermost = state.innermost
    if (
        state.in_string
        and state.string_start is not None
        and innermost is not None
        and innermost.kind is TokenKind.ARRAY_OPEN
    ):
        return state.string_start

    return length


# =============================================================================
# STAGE 3 - TAIL SANITIZER
# =============================================================================

def _drop_dangling_separator(text: str) -> str:
    if text.endswith(","):
        text = text[:-1].rstrip(JSON_WHITESPACE)
    if text.endswith(":"):
        text += "null"
    return text


def _complete_dangling_key(text: str) -> str:
    """Give a trailing object key with no colon a null value."""
    if not text.endswith('"'):
        return text

    state = scan_structure(text)
    innermost = state.innermost
    if (
        state.in_string
        or state.last_string_start is None
        or innermost is None
        or innermost.kind is not TokenKind.OBJECT_OPEN
    ):
        return text

    before = text[: state.last_string_start].rstrip(JSON_WHITESPACE)
    if before.endswith(("{", ",")):
        return text + ":null"
    return text


def _close_partial_value(text: str, state: ScanState) -> Optional[str]:
    """
    Terminate an unfinished object value string, or None if it must be dropped.

    Only strings directly after a colon are closed. A trailing lone backslash
    or incomplete ``\\uXXXX`` escape is trimmed first.
    """
    start = state.string_start
    innermost = state.innermost
    if start is None or innermost is None or innermost.kind is not TokenKind.OBJECT_OPEN:
        return None
    if not text[:start].rstrip(JSON_WHITESPACE).endswith(":"):
        return None

    fragment = text[start:]
    if state.is_escaped:
        fragment = fragment[:-1]
    match = _PARTIAL_UNICODE_ESCAPE.search(fragment)
    if match:
        fragment = fragment[: match.start()] + match.group(1)

    literal = fragment + '"'
    if not is_valid_json(literal):
        return None
    return text[:start] + literal


def sanitize_tail(text: str) -> str:
    """
    Remove dangling separators and partial tokens from the end of text.

    Steps:
    1. Trim JSON whitespace
    2. Close an unterminated object value string; drop any other
       unterminated string literal (partial key, or a value that cannot be
       closed into a legal string)
    3. Drop one trailing comma; give a trailing colon a ``null`` value
    4. Drop a trailing keyword/number fragment (``tru``, ``12.``, ``1e+``)
       and re-apply step 3, since the removal can expose a new comma or colon

    Characters inside completed string literals are never touched.

    Args:
        text: Text already truncated at the selected cut point

    Returns:
        Text ending in a complete value, an opener, or nothing at all
    """
    result = text.strip(JSON_WHITESPACE)

    state = scan_structure(result)
    if state.in_string and state.string_start is not None:
        closed = _close_partial_value(result, state)
        if closed is not None:
            return closed
        logger.debug(
            f"[{RepairStage.SANITIZE.value}] dropping partial string at {state.string_start}"
        )
        result = result[: state.string_start].rstrip(JSON_WHITESPACE)

    result = _drop_dangling_separator(result)

    if not result.endswith(("}", "]", '"')):
        head = result.rstrip(_LITERAL_CHARS)
        token = result[len(head):]
        if token and not _JSON_LITERAL.fullmatch(token):
            logger.debug(
                f"[{RepairStage.SANITIZE.value}] dropping partial literal {token!r}"
            )
            result = head.rstrip(JSON_WHITESPACE)
            result = _drop_dangling_separator(result)

    return _complete_dangling_key(result)


# =============================================================================
# STAGE 4 - BRACKET CLOSER
# =============================================================================

def close_brackets(text: str) -> str:
    """Append a closer for every container still open, innermost first."""
    state = scan_structure(text)
    return text + "".join(token.kind.closer for token in reversed(state.stack))


# =============================================================================
# TOP-LEVEL
# =============================================================================

def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def is_valid_json(text: str) -> bool:
    """
    Check text against strict JSON (no NaN/Infinity).

    Args:
        text: Candidate JSON text

    Returns:
        True if json.loads() accepts it as standard JSON
    """
    try:
        json.loads(text, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return False
    return True


def repair_partial_json(text: Optional[str]) -> str:
    """
    Repair a truncated JSON fragment into the longest valid document.

    Already-valid input is returned unchanged, so the function is idempotent.
    Empty or missing input yields ``{}``. Input that is not a prefix of any
    JSON document degrades to a smaller valid document, or to ``{}``.

    Args:
        text: Growing buffer of a streamed JSON response

    Returns:
        JSON text that always decodes
    """
    if not text:
        return EMPTY_DOCUMENT
    if is_valid_json(text):
        return text

    state = scan_structure(text)
    cut = select_cut_point(state, len(text))
    if cut < len(text):
        logger.debug(
            f"[{RepairStage.CUT.value}] discarding incomplete element at {cut}/{len(text)}"
        )

    sanitized = sanitize_tail(text[:cut])
    if not sanitized:
        return EMPTY_DOCUMENT

    repaired = close_brackets(sanitized)
    if not is_valid_json(repaired):
        logger.warning(
            f"[{RepairStage.CLOSE.value}] input is not a JSON prefix, "
            f"falling back to {EMPTY_DOCUMENT} ({len(text)} chars)"
        )
        return EMPTY_DOCUMENT
    return repaired


def parse_partial_json(text: Optional[str]) -> Any:
    """Repair and decode a truncated JSON fragment in one step."""
    return json.loads(repair_partial_json(text))


def ends_with_open_number(text: str) -> bool:
    """
    Check whether text ends in a number element of the outermost array that
    further input could still extend.

    ``[10,2`` repairs to ``[10,2]`` but may continue as ``[10,20]``, so its last
    element is not final yet. ``[10,2,``, ``[10,2 `` and ``[10,2]`` are settled.
    """
    head = text.rstrip(_LITERAL_CHARS)
    token = text[len(head):]
    if not token or token in _KEYWORDS or not _JSON_LITERAL.fullmatch(token):
        return False

    state = scan_structure(head)
    return (
        not state.in_string
        and len(state.stack) == 1
        and state.stack[0].kind is TokenKind.ARRAY_OPEN
    )


def strip_code_fence(text: str) -> str:
    """
    Remove a Markdown code fence (```json ... ```) wrapping streamed JSON.

    Works on partial streams: an opening fence whose newline has not arrived
    yet, or a closing fence that is only half written, are both removed.
    Text that does not start with a fence is returned unchanged.
    """
    match = _CODE_FENCE_OPEN.match(text)
    if not match:
        return text
    return _CODE_FENCE_CLOSE.sub("", text[match.end():])
