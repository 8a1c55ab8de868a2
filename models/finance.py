from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from .enums import TransactionType


class TransactionCreate(BaseModel):
    """
    `amount` is entered as a positive number; the sign is derived from
    `type` when stored (expenses are negative).
    """
    description: str
    amount: float = Field(..., ge=0)
    type: TransactionType
    category: Optional[str] = "Dues"
    transaction_date: date

    @field_validator("description")
    def description_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError("Description is required")
        return v.strip()


class TransactionUpdate(BaseModel):
    description: Optional[str] = None
    amount: Optional[float] = Field(None, ge=0)
    type: Optional[TransactionType] = None
    category: Optional[str] = None
    transaction_date: Optional[date] = None


class TransactionRead(BaseModel):
    id: str
    organization_id: str
    description: Optional[str] = None
    amount: float
    type: Optional[str] = None
    category: Optional[str] = None
    transaction_date: Optional[date] = None
    created_at: Optional[datetime] = None

    @field_validator("id", "organization_id", mode="before")
    def to_str(cls, v):
        return str(v)


class FinanceTotals(BaseModel):
    income: float
    expenses: float
    balance: float
