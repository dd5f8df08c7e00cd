"""
Event system for the Nana engine.

This package provides the event bus that serves as the foundation for the
event-driven architecture.
"""

from nana.events.emitter import (
    EventEmitter,
    EventBus,
    EventPriority,
    EventRecorder,
    EngineEventType,
)

__all__ = [
    "EventEmitter",
    "EventBus",
    "EventPriority",
    "EventRecorder",
    "EngineEventType",
]
