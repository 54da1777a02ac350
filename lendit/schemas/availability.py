from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from lendit.core.availability import AvailabilityStatus

class Availability(BaseModel):
    item_id: int
    status: AvailabilityStatus
    total_copies: int
    available_copies: int
    pending_holds: int
    due_date: Optional[datetime] = None
    loan_id: Optional[int] = None
    hold_id: Optional[int] = None
    queue_position: Optional[int] = None
    holds_ahead: Optional[int] = None
    hold_expires_at: Optional[datetime] = None
    estimated_wait_days: Optional[int] = None

    class Config:
        from_attributes = True
