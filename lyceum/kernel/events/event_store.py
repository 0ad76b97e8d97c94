"""
Event Store service for append-only audit logging.

Mutating services log here inside the same transaction as the change itself.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from lyceum.kernel.models.event_log import EventLog, EventType


class EventStore:
    """
    Service for writing and reading the event log.

    Usage:
        event_store = EventStore(session)
        await event_store.log(
            event_type=EventType.PREREQUISITE_ADDED,
            entity_type="lecture",
            entity_id=lecture.id,
            payload={"prerequisite_lecture_id": prereq.id},
        )
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(
        self,
        event_type: EventType,
        entity_type: str,
        entity_id: uuid.UUID,
        user_id: Optional[uuid.UUID] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> EventLog:
        """
        Add an event to the session. The caller owns flush/commit.

        Args:
            event_type: The type of event
            entity_type: The type of entity (lecture, progress, relation, ...)
            entity_id: The ID of the entity
            user_id: The acting user, if any
            payload: Additional event data

        Returns:
            The pending EventLog record
        """
        event = EventLog(
            event_type=event_type.value,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            payload=self._serialize_payload(payload or {}),
        )
        self.session.add(event)
        return event

    async def get_entity_history(
        self,
        entity_type: str,
        entity_id: uuid.UUID,
        event_types: Optional[List[EventType]] = None,
        limit: int = 100,
    ) -> List[EventLog]:
        """Events for one entity, newest first."""
        query = select(EventLog).where(
            and_(
                EventLog.entity_type == entity_type,
                EventLog.entity_id == entity_id,
            )
        )
        if event_types:
            query = query.where(EventLog.event_type.in_([t.value for t in event_types]))
        query = query.order_by(desc(EventLog.created_at)).limit(limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    def _serialize_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Convert payload values to JSON-serializable types."""
        return {key: self._serialize_value(value) for key, value in payload.items()}

    def _serialize_value(self, value: Any) -> Any:
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, datetime):
            return value.isoformat()
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, dict):
            return self._serialize_payload(value)
        if isinstance(value, (list, tuple)):
            return [self._serialize_value(v) for v in value]
        return value
