from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from lendit.core.models import LoanStatus

class Loan(BaseModel):
    id: int
    item_id: int
    patron_id: str
    borrowed_at: datetime
    due_date: datetime
    renewal_count: int
    status: LoanStatus
    returned_at: Optional[datetime] = None

    class Config:
        from_attributes = True
