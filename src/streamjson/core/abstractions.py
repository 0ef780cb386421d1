"""
Core Abstractions

The preview layer depends on this interface rather than on a concrete
repair function, so alternative repair strategies can be swapped in.
"""

from abc import ABC, abstractmethod


# ============================================================================
# JSON Repair Strategy (Open/Closed Principle, Single Responsibility)
# ============================================================================

class IJSONRepairStrategy(ABC):
    """
    Strategy interface for turning a streamed buffer into decodable JSON.

    Implementations must be total: for any input they return text that a
    standard JSON decoder accepts. A decode failure on their output is treated
    as a defect by the preview layer, not as a recoverable condition.
    """

    @abstractmethod
    def repair(self, text: str) -> str:
        """
        Repair a possibly truncated JSON buffer.

        Args:
            text: Accumulated stream text

        Returns:
            Valid JSON text
        """
        pass

    @property
    @abstractmethod
    def name(self) -> str:
        """Strategy identifier."""
        pass
