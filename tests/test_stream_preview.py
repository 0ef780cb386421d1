"""Tests for the streaming preview layer."""

import json

import pytest

from streamjson.config import PreviewSettings
from streamjson.core.abstractions import IJSONRepairStrategy
from streamjson.core.metrics import MetricsCollector
from streamjson.core.strategies import TruncationRepairStrategy
from streamjson.core.types import RepairDefectError, StreamDecodeError
from streamjson.preview.stream_preview import (
    PreviewSnapshot,
    StreamingJSONPreview,
    apreview_stream,
    preview_stream,
)


QUESTIONS = [
    {"orderIndex": 0, "type": "direct_question", "stem": "Q1", "options": [{"index": "A", "isCorrect": True}]},
    {"orderIndex": 1, "type": "contextual", "stem": "Q2", "options": [{"index": "B", "isCorrect": False}]},
    {"orderIndex": 2, "type": "contextual", "stem": "Q3", "options": []},
]


def _chunks(text, size=7):
    return [text[i:i + size] for i in range(0, len(text), size)]


# ============================================================================
# Mock Strategy
# ============================================================================

class BrokenStrategy(IJSONRepairStrategy):
    """Strategy that returns text a decoder rejects."""

    @property
    def name(self) -> str:
        return "broken"

    def repair(self, text: str) -> str:
        return text


# ============================================================================
# Tests
# ============================================================================

class TestTruncationRepairStrategy:
    """Tests for the default strategy."""

    def test_name(self):
        assert TruncationRepairStrategy().name == "truncation_repair"

    def test_strips_fence(self):
        strategy = TruncationRepairStrategy()
        assert strategy.repair('```json\n[{"a":1},{"b"') == '[{"a":1}]'

    def test_fence_kept_when_disabled(self):
        strategy = TruncationRepairStrategy(strip_fences=False)
        assert strategy.repair('```json\n[{"a":1}]') == "{}"


class TestStreamingJSONPreview:
    """Tests for incremental feeding."""

    def test_feed_returns_snapshot_on_change(self):
        preview = StreamingJSONPreview()
        snapshot = preview.feed('[{"a":1}')
        assert isinstance(snapshot, PreviewSnapshot)
        assert snapshot.data == [{"a": 1}]
        assert snapshot.item_count == 1
        assert snapshot.changed is True
        assert snapshot.sequence == 1
        assert snapshot.buffer_length == 8

    def test_feed_returns_none_when_unchanged(self):
        preview = StreamingJSONPreview()
        preview.feed('[{"a":1}')
        assert preview.feed(',{"b"') is None
        assert preview.snapshot().data == [{"a": 1}]
        assert preview.snapshot().changed is False

    def test_emit_unchanged(self):
        preview = StreamingJSONPreview(settings=PreviewSettings(emit_unchanged=True))
        preview.feed('[{"a":1}')
        snapshot = preview.feed(',{"b"')
        assert snapshot is not None
        assert snapshot.changed is False
        assert snapshot.sequence == 2

    def test_empty_chunk_ignored(self):
        preview = StreamingJSONPreview()
        assert preview.feed("") is None
        assert preview.buffer == ""

    def test_snapshot_before_data(self):
        snapshot = StreamingJSONPreview().snapshot()
        assert snapshot.sequence == 0
        assert snapshot.text == "{}"
        assert snapshot.data == {}

    def test_buffer_accumulates(self):
        preview = StreamingJSONPreview()
        for chunk in ["[1", ",2", ",3]"]:
            preview.feed(chunk)
        assert preview.buffer == "[1,2,3]"
        assert preview.snapshot().data == [1, 2, 3]

    def test_only_complete_items_reach_consumer(self):
        document = json.dumps(QUESTIONS)
        preview = StreamingJSONPreview()
        for chunk in _chunks(document, size=3):
            snapshot = preview.feed(chunk)
            if snapshot is not None:
                assert snapshot.data == QUESTIONS[: len(snapshot.data)]

    def test_fenced_stream(self):
        preview = StreamingJSONPreview()
        for chunk in _chunks("```json\n" + json.dumps(QUESTIONS) + "\n```"):
            preview.feed(chunk)
        assert preview.snapshot().data == QUESTIONS
        assert preview.finalize() == QUESTIONS

    def test_max_buffer_chars(self):
        preview = StreamingJSONPreview(settings=PreviewSettings(max_buffer_chars=5))
        preview.feed("[1,2")
        with pytest.raises(ValueError):
            preview.feed(",3,4")
        assert preview.buffer == "[1,2"

    def test_repair_defect_raises(self):
        preview = StreamingJSONPreview(strategy=BrokenStrategy())
        with pytest.raises(RepairDefectError) as exc_info:
            preview.feed('[{"a":')
        assert exc_info.value.strategy == "broken"
        assert exc_info.value.text == '[{"a":'
        assert preview.metrics.get_summary()["decode"]["success_rate"] == 0

    def test_reset(self):
        preview = StreamingJSONPreview()
        preview.feed("[1]")
        preview.reset()
        assert preview.buffer == ""
        assert preview.snapshot().sequence == 0

    def test_reset_keeps_caller_metrics(self):
        metrics = MetricsCollector("mine")
        preview = StreamingJSONPreview(metrics=metrics)
        preview.feed("[1]")
        preview.reset()
        assert preview.metrics is metrics
        assert metrics.get_summary() == {}
        assert metrics.start_time is None

        preview.feed("[2]")
        assert metrics.get_stream_metrics()["updates"] == 1
        assert metrics.start_time is not None


class TestCompleteItems:
    """A trailing number is not counted until it can no longer grow."""

    def test_trailing_number_held_back(self):
        preview = StreamingJSONPreview()
        snapshots = [preview.feed(chunk) for chunk in ["[10,", "2", "0", "]"]]
        assert [s.data for s in snapshots] == [[10], [10, 2], [10, 20], [10, 20]]
        assert [s.item_count for s in snapshots] == [1, 2, 2, 2]
        assert [s.complete_items for s in snapshots] == [1, 1, 1, 2]

    def test_closing_bracket_alone_emits_snapshot(self):
        preview = StreamingJSONPreview()
        preview.feed("[10,20")
        snapshot = preview.feed("]")
        assert snapshot is not None
        assert snapshot.changed is True
        assert snapshot.complete_items == 2

    @pytest.mark.parametrize("buffer", ["[10,2,", "[10,2 ", '[10,"x"', "[10,true", "[1,[2,3"])
    def test_settled_tail(self, buffer):
        snapshot = StreamingJSONPreview().feed(buffer)
        assert snapshot.complete_items == len(snapshot.data)

    def test_fenced_trailing_number(self):
        snapshot = StreamingJSONPreview().feed("```json\n[10,2")
        assert snapshot.complete_items == 1

    def test_objects_have_no_item_count(self):
        snapshot = StreamingJSONPreview().feed('{"a":[1,2')
        assert snapshot.complete_items is None

    def test_complete_items_are_final_for_every_prefix(self):
        document = json.dumps([10, 200, -3.5e2, 4, True, "5", [6], 70])
        full = json.loads(document)
        preview = StreamingJSONPreview()
        previous = 0
        for chunk in document:
            snapshot = preview.feed(chunk)
            if snapshot is None:
                continue
            count = snapshot.complete_items
            assert snapshot.data[:count] == full[:count]
            assert count >= previous
            previous = count
        assert previous == len(full)


class TestFinalize:
    """Tests for decoding the completed stream."""

    def test_complete_stream(self):
        preview = StreamingJSONPreview()
        for chunk in _chunks(json.dumps(QUESTIONS)):
            preview.feed(chunk)
        assert preview.finalize() == QUESTIONS

    def test_strict_raises_on_truncated_stream(self):
        preview = StreamingJSONPreview()
        preview.feed('[{"a":1},{"b":')
        with pytest.raises(StreamDecodeError) as exc_info:
            preview.finalize()
        assert exc_info.value.buffer_length == 14

    def test_lenient_returns_last_preview(self):
        preview = StreamingJSONPreview()
        preview.feed('[{"a":1},{"b":')
        assert preview.finalize(strict=False) == [{"a": 1}]

    def test_empty_stream_strict(self):
        with pytest.raises(StreamDecodeError):
            StreamingJSONPreview().finalize()


class TestMetrics:
    """Preview updates are timed per stage."""

    def test_records_repair_and_decode(self):
        metrics = MetricsCollector("quiz")
        preview = StreamingJSONPreview(metrics=metrics)
        preview.feed("[1")
        preview.feed(",2]")
        preview.finalize()
        summary = metrics.get_summary()
        assert summary["repair"]["count"] == 2
        assert summary["decode"]["count"] == 2
        stream = metrics.get_stream_metrics()
        assert stream["stream_name"] == "quiz"
        assert stream["updates"] == 2
        assert stream["failures"] == 0
        assert stream["total_duration_ms"] >= 0


class TestPreviewStream:
    """Generator helpers over chunk sources."""

    def test_sync_stream_yields_growing_collections(self):
        counts = [
            s.item_count for s in preview_stream(_chunks(json.dumps(QUESTIONS)))
        ]
        assert counts[-1] == len(QUESTIONS)
        assert counts == sorted(counts)

    def test_sync_stream_final_snapshot_matches_document(self):
        snapshots = list(preview_stream(_chunks(json.dumps(QUESTIONS), size=1)))
        assert snapshots[-1].data == QUESTIONS
        assert [s.sequence for s in snapshots] == sorted(s.sequence for s in snapshots)

    @pytest.mark.asyncio
    async def test_async_stream(self):
        async def source():
            for chunk in _chunks(json.dumps(QUESTIONS)):
                yield chunk

        snapshots = [s async for s in apreview_stream(source())]
        assert snapshots[-1].data == QUESTIONS
        assert all(s.data == QUESTIONS[: len(s.data)] for s in snapshots)
