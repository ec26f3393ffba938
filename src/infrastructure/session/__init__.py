from src.infrastructure.session.in_memory import (
    InMemorySession,
    NavigationEvent,
    RecordingNavigationSink,
)

__all__ = ["InMemorySession", "NavigationEvent", "RecordingNavigationSink"]
