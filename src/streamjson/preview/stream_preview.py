"""
Streaming JSON Preview

Accumulates text chunks from a streaming response (e.g. an LLM emitting a
JSON array of records token by token) and, after every chunk, repairs and
decodes the growing buffer so a consumer can render the partial document.
"""

import json
import logging
import time
from typing import Any, AsyncIterable, AsyncIterator, Iterable, Iterator, Optional

from pydantic import BaseModel

from ..config import PreviewSettings
from ..core.abstractions import IJSONRepairStrategy
from ..core.json_repair import EMPTY_DOCUMENT, ends_with_open_number, strip_code_fence
from ..core.metrics import MetricsCollector
from ..core.strategies import TruncationRepairStrategy
from ..core.types import RepairDefectError, StreamDecodeError

logger = logging.getLogger(__name__)


class PreviewSnapshot(BaseModel):
    """Decoded view of the stream buffer after one update."""

    sequence: int
    text: str
    data: Any = None
    item_count: Optional[int] = None
    complete_items: Optional[int] = None
    changed: bool = True
    buffer_length: int = 0


class StreamingJSONPreview:
    """
    Incremental preview over a growing JSON buffer.

    Each call to feed() appends a chunk, runs the repair strategy over the
    whole buffer and decodes the result. Container and string elements of a
    decoded array are always complete. A bare number at the end of the array
    may still grow (``[10,2`` becomes ``[10,20]``), so ``complete_items``
    counts only the leading elements that can no longer change.

    Usage:
        preview = StreamingJSONPreview()
        for chunk in llm.stream(system, user):
            snapshot = preview.feed(chunk)
            if snapshot:
                render(snapshot.data)
        questions = preview.finalize()
    """

    def __init__(
        self,
        strategy: Optional[IJSONRepairStrategy] = None,
        settings: Optional[PreviewSettings] = None,
        metrics: Optional[MetricsCollector] = None,
        name: str = "stream",
    ):
        self.name = name
        self.settings = settings or PreviewSettings()
        self.strategy = strategy or TruncationRepairStrategy(
            strip_fences=self.settings.strip_code_fences
        )
        self.metrics = metrics or MetricsCollector(name)
        self._buffer = ""
        self._sequence = 0
        self._latest: Optional[PreviewSnapshot] = None

    @property
    def buffer(self) -> str:
        """Raw text received so far."""
        return self._buffer

    def feed(self, chunk: str) -> Optional[PreviewSnapshot]:
        """
        Append a chunk and refresh the preview.

        Args:
            chunk: Newly received text

        Returns:
            Snapshot if the decoded value changed (always, with emit_unchanged),
            otherwise None. Empty chunks are ignored.

        Raises:
            ValueError: If the buffer would exceed max_buffer_chars
            RepairDefectError: If the repaired text does not decode
        """
        if not chunk:
            return None

        limit = self.settings.max_buffer_chars
        if limit is not None and len(self._buffer) + len(chunk) > limit:
            raise ValueError(
                f"[{self.name}] buffer would exceed {limit} chars "
                f"({len(self._buffer)} + {len(chunk)})"
            )

        if self.metrics.start_time is None:
            self.metrics.start()
        self._buffer += chunk

        snapshot = self._refresh()
        if snapshot.changed or self.settings.emit_unchanged:
            return snapshot
        return None

    def _refresh(self) -> PreviewSnapshot:
        start = time.time()
        text = self.strategy.repair(self._buffer)
        self.metrics.record("repair", (time.time() - start) * 1000, "success")

        start = time.time()
        try:
            data = json.loads(text)
        except ValueError as e:
            self.metrics.record(
                "decode", (time.time() - start) * 1000, "error", {"error": str(e)}
            )
            raise RepairDefectError(self.strategy.name, text, str(e)) from e
        self.metrics.record("decode", (time.time() - start) * 1000, "success")

        complete = self._complete_items(data)
        previous = self._latest
        self._sequence += 1
        snapshot = PreviewSnapshot(
            sequence=self._sequence,
            text=text,
            data=data,
            item_count=len(data) if isinstance(data, list) else None,
            complete_items=complete,
            changed=(
                previous is None
                or previous.data != data
                or previous.complete_items != complete
            ),
            buffer_length=len(self._buffer),
        )
        self._latest = snapshot

        if snapshot.changed:
            logger.debug(
                f"[{self.name}] update {snapshot.sequence}: "
                f"{snapshot.item_count} items from {snapshot.buffer_length} chars"
            )
        return snapshot

    def _complete_items(self, data: Any) -> Optional[int]:
        if not isinstance(data, list):
            return None
        if not data:
            return 0

        last = data[-1]
        if isinstance(last, bool) or not isinstance(last, (int, float)):
            return len(data)

        text = self._buffer
        if self.settings.strip_code_fences:
            text = strip_code_fence(text)
        return len(data) - 1 if ends_with_open_number(text) else len(data)

    def snapshot(self) -> PreviewSnapshot:
        """Latest snapshot, or an empty-document snapshot before any data."""
        if self._latest is not None:
            return self._latest
        return PreviewSnapshot(
            sequence=0, text=EMPTY_DOCUMENT, data={}, changed=False, buffer_length=0
        )

    def finalize(self, strict: bool = True) -> Any:
        """
        Decode the completed buffer.

        Args:
            strict: Raise if the full buffer is not valid JSON; otherwise fall
                back to the last preview value

        Returns:
            Decoded document

        Raises:
            StreamDecodeError: If strict and the buffer does not decode
        """
        self.metrics.stop()
        text = self._buffer
        if self.settings.strip_code_fences:
            text = strip_code_fence(text)

        try:
            return json.loads(text)
        except ValueError as e:
            if strict:
                raise StreamDecodeError(len(self._buffer), str(e)) from e
            logger.warning(
                f"[{self.name}] stream ended with invalid JSON, keeping last preview: {e}"
            )
            return self.snapshot().data

    def reset(self) -> None:
        """Discard the buffer and all snapshots."""
        self._buffer = ""
        self._sequence = 0
        self._latest = None
        self.metrics.clear()


def preview_stream(
    chunks: Iterable[str],
    strategy: Optional[IJSONRepairStrategy] = None,
    settings: Optional[PreviewSettings] = None,
    metrics: Optional[MetricsCollector] = None,
) -> Iterator[PreviewSnapshot]:
    """
    Yield a snapshot for every chunk that changes the decoded document.

    Args:
        chunks: Text chunks, e.g. ``llm.stream(system=..., user=...)``
        strategy: Repair strategy (defaults to TruncationRepairStrategy)
        settings: Preview settings
        metrics: Collector to record timings into
    """
    preview = StreamingJSONPreview(strategy=strategy, settings=settings, metrics=metrics)
    for chunk in chunks:
        snapshot = preview.feed(chunk)
        if snapshot is not None:
            yield snapshot
    preview.metrics.stop()


async def apreview_stream(
    chunks: AsyncIterable[str],
    strategy: Optional[IJSONRepairStrategy] = None,
    settings: Optional[PreviewSettings] = None,
    metrics: Optional[MetricsCollector] = None,
) -> AsyncIterator[PreviewSnapshot]:
    """Async variant of preview_stream() for async chunk sources."""
    preview = StreamingJSONPreview(strategy=strategy, settings=settings, metrics=metrics)
    async for chunk in chunks:
        snapshot = preview.feed(chunk)
        if snapshot is not None:
            yield snapshot
    preview.metrics.stop()
