"""
Event emitter interface.

The consumer owns the emitter; watchers only publish to it.
"""

from abc import ABC, abstractmethod
from typing import Any


class IEventEmitter(ABC):
    """Publish side of a consumer-owned event emitter."""

    @abstractmethod
    def emit(self, event: str, payload: Any = None) -> bool:
        """
        Publish payload to every listener of event.

        Returns:
            True if at least one listener was registered
        """
