"""
Append-only audit logging.
"""

from lyceum.kernel.events.event_store import EventStore

__all__ = ["EventStore"]
