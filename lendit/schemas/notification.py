from pydantic import BaseModel
from typing import Optional
from datetime import datetime

class Notification(BaseModel):
    id: int
    patron_id: str
    type: str
    message: str
    item_id: Optional[int] = None
    hold_id: Optional[int] = None
    expires_at: Optional[datetime] = None
    date: Optional[datetime] = None
    is_read: Optional[bool] = False

    class Config:
        from_attributes = True
