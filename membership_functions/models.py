from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class NotificationRecord(BaseModel):
    """A document created under the notifications collection"""
    model_config = ConfigDict(extra="ignore")

    userId: str
    title: Optional[str] = None
    body: Optional[str] = None
    type: Optional[str] = None


class MembershipRecord(BaseModel):
    """A document in the members collection, as seen by the sweep"""
    model_config = ConfigDict(extra="ignore")

    status: Optional[str] = None
    # Only timestamps qualify; ints and ISO strings are not coerced
    expiresAt: Optional[datetime] = Field(default=None, strict=True)


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class DispatchStatus(str, Enum):
    SENT = "sent"
    SKIPPED_NO_TOKEN = "skipped_no_token"
    FAILED = "failed"


class DispatchResult(BaseModel):
    """Outcome of one push notification attempt"""
    status: DispatchStatus
    user_id: Optional[str] = None
    message_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def sent(self) -> bool:
        return self.status == DispatchStatus.SENT


class SweepResult(BaseModel):
    """Outcome of one membership expiry sweep"""
    swept_at: datetime
    scanned: int = 0
    expired: int = 0
    committed: bool = False
    skipped_lease_held: bool = False
    expired_ids: List[str] = Field(default_factory=list)
    error: Optional[str] = None
