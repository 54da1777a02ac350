from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from lendit.core.models import HoldStatus

class Hold(BaseModel):
    id: int
    item_id: int
    patron_id: str
    position: int
    status: HoldStatus
    created_at: datetime
    notified_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    class Config:
        from_attributes = True
