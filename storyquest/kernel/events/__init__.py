"""
Append-only activity log.
"""

from storyquest.kernel.events.event_store import EventStore

__all__ = ["EventStore"]
