"""Progress events for collections that arrive item by item."""

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from .stream_preview import PreviewSnapshot

PROCESSING_EVENT = "generation.processing"


class ProgressEvent(BaseModel):
    """Published whenever a new complete item appears in the stream."""

    type: str = PROCESSING_EVENT
    timestamp: datetime = Field(default_factory=datetime.now)
    items_generated: int
    total_items: Optional[int] = None
    last_item: Optional[Dict[str, Any]] = None


class ProgressTracker:
    """
    Turn preview snapshots into progress events.

    An event is produced only when the snapshot's complete items outnumber the
    last reported count. A trailing number that may still grow is not counted
    until a separator or closer follows it. The newest complete item is shown
    as-is (or projected onto preview_fields).
    """

    def __init__(
        self,
        total_items: Optional[int] = None,
        preview_fields: Optional[Sequence[str]] = None,
    ):
        self.total_items = total_items
        self.preview_fields: Optional[List[str]] = (
            list(preview_fields) if preview_fields is not None else None
        )
        self.reported = 0

    def update(self, snapshot: PreviewSnapshot) -> Optional[ProgressEvent]:
        """Return an event if the snapshot adds complete items, else None."""
        data = snapshot.data
        if not isinstance(data, list):
            return None

        count = snapshot.complete_items
        if count is None:
            count = len(data)
        if count <= self.reported:
            return None

        self.reported = count
        return ProgressEvent(
            items_generated=count,
            total_items=self.total_items,
            last_item=self._project(data[count - 1]),
        )

    def _project(self, item: Any) -> Optional[Dict[str, Any]]:
        if not isinstance(item, dict):
            return None
        if self.preview_fields is None:
            return dict(item)
        return {key: item[key] for key in self.preview_fields if key in item}
