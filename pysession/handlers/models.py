"""
Pydantic models for persisted session rows.
"""

import time
from typing import Optional

from pydantic import BaseModel, Field


class SessionRecord(BaseModel):
    """One stored session as held by the relational backend."""
    id: str = Field(..., min_length=1, max_length=255, description="Session identifier")
    payload: str = Field(default="", description="Serialized session payload")
    last_activity: float = Field(
        default_factory=time.time,
        description="Epoch seconds of the last write"
    )

    def idle_for(self, now: Optional[float] = None) -> float:
        """Seconds since the last write."""
        return (now if now is not None else time.time()) - self.last_activity
