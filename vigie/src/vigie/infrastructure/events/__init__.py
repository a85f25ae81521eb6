"""Event emitter infrastructure."""

from vigie.infrastructure.events.event_emitter import EventEmitter

__all__ = ["EventEmitter"]
