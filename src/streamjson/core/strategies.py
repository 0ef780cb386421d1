"""Repair strategies used by the streaming preview."""

from .abstractions import IJSONRepairStrategy
from .json_repair import repair_partial_json, strip_code_fence


class TruncationRepairStrategy(IJSONRepairStrategy):
    """
    Structural repair of truncated JSON: drop the incomplete array element,
    clean the tail, close open brackets.

    Single Responsibility: make a stream prefix decodable without guessing content.
    """

    def __init__(self, strip_fences: bool = True):
        self.strip_fences = strip_fences

    @property
    def name(self) -> str:
        return "truncation_repair"

    def repair(self, text: str) -> str:
        """Repair text, removing a Markdown code fence first if enabled."""
        if self.strip_fences and text:
            text = strip_code_fence(text)
        return repair_partial_json(text)
