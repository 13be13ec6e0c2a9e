"""
Change event models published on user mutations.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..users.models import UserRecord

UNKNOWN_ROUTING_KEY = "unknown_user_id"


class EventType(str, Enum):
    """Kind of mutation a change event describes."""
    CREATED = "CREATED"
    UPDATED = "UPDATED"
    DELETED = "DELETED"


class UserEvent(BaseModel):
    """Change event carrying the affected user record."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    event_type: EventType = Field(..., alias="eventType")
    user_data: Optional[UserRecord] = Field(None, alias="userData")

    @property
    def routing_key(self) -> str:
        if self.user_data is None or self.user_data.id is None:
            return UNKNOWN_ROUTING_KEY
        return str(self.user_data.id)

    def to_message(self) -> Dict[str, Any]:
        """Wire form: ``{"eventType": ..., "userData": ...}``."""
        return {
            "eventType": self.event_type.value,
            "userData": (
                self.user_data.model_dump(mode="json", by_alias=True)
                if self.user_data is not None else None
            ),
        }

    @classmethod
    def created(cls, user: Optional[UserRecord]) -> "UserEvent":
        return cls(event_type=EventType.CREATED, user_data=user)

    @classmethod
    def updated(cls, user: Optional[UserRecord]) -> "UserEvent":
        return cls(event_type=EventType.UPDATED, user_data=user)

    @classmethod
    def deleted(cls, user: Optional[UserRecord]) -> "UserEvent":
        return cls(event_type=EventType.DELETED, user_data=user)
