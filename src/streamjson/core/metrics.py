"""
Metrics Collection Utilities

Tracks timing and outcome of each preview update (repair + decode) over the
lifetime of one stream.
"""

import time
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Optional


class MetricsCollector:
    """
    Collect per-stage metrics for a stream preview.

    Each update of a preview records one entry per stage it ran.
    """

    def __init__(self, name: str = "stream"):
        """
        Initialize metrics collector.

        Args:
            name: Identifier for this collector (e.g., stream name)
        """
        self.name = name
        self.metrics = defaultdict(list)
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None

    def start(self) -> None:
        """Mark start of the stream."""
        self.start_time = datetime.now()
        self.end_time = None

    def stop(self) -> None:
        """Mark end of the stream."""
        self.end_time = datetime.now()

    def clear(self) -> None:
        """Discard all recorded stages and timing."""
        self.metrics.clear()
        self.start_time = None
        self.end_time = None

    def record(
        self,
        stage: str,
        duration_ms: float,
        status: str,
        details: Optional[Dict] = None,
    ) -> None:
        """
        Record one stage execution.

        Args:
            stage: Stage identifier ("repair", "decode", ...)
            duration_ms: Execution time in milliseconds
            status: "success" or "error"
            details: Optional additional details
        """
        self.metrics[stage].append({
            "timestamp": time.time(),
            "duration_ms": duration_ms,
            "status": status,
            "details": details or {},
        })

    def get_summary(self) -> Dict[str, Any]:
        """
        Get per-stage statistics.

        Returns:
            Dict of stage -> count, avg/min/max duration and success rate
        """
        summary = {}
        for stage, executions in self.metrics.items():
            durations = [e["duration_ms"] for e in executions]
            successes = [e for e in executions if e["status"] == "success"]
            summary[stage] = {
                "count": len(executions),
                "avg_ms": sum(durations) / len(durations) if durations else 0,
                "min_ms": min(durations) if durations else 0,
                "max_ms": max(durations) if durations else 0,
                "success_rate": len(successes) / len(executions) if executions else 0,
            }
        return summary

    def get_stream_metrics(self) -> Dict[str, Any]:
        """
        Get stream-level metrics.

        Returns:
            Dict with stream name, total duration, update and failure counts
        """
        total_duration_ms = 0.0
        if self.start_time and self.end_time:
            total_duration_ms = (self.end_time - self.start_time).total_seconds() * 1000

        failures = sum(
            1
            for executions in self.metrics.values()
            for e in executions
            if e["status"] != "success"
        )

        return {
            "stream_name": self.name,
            "total_duration_ms": total_duration_ms,
            "updates": len(self.metrics.get("repair", [])),
            "failures": failures,
            "stages": self.get_summary(),
        }
