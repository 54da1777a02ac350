#!/usr/bin/env python
"""
    Item Schemas for Lendit,
    including catalog requests and the item listing with live copy counts.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from lendit.configs import DEFAULT_LOAN_PERIOD_DAYS, DEFAULT_MAX_RENEWALS

class ItemCreate(BaseModel):
    id: Optional[int] = None
    title: Optional[str] = None
    total_copies: int = Field(1, ge=1)
    loan_period_days: int = Field(DEFAULT_LOAN_PERIOD_DAYS, ge=1)
    max_renewals: int = Field(DEFAULT_MAX_RENEWALS, ge=0)

    class Config:
        json_schema_extra = {
            "example": {
                "title": "The Very Hungry Caterpillar",
                "total_copies": 1,
                "loan_period_days": 21,
                "max_renewals": 2
            }
        }

class ItemCopies(BaseModel):
    total_copies: int = Field(..., ge=1)

class Item(BaseModel):
    id: int
    title: Optional[str] = None
    total_copies: int
    loan_period_days: int
    max_renewals: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ItemStatus(Item):
    available_copies: int
    on_loan: int
    earmarked: int
    pending_holds: int
