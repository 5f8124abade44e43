from enum import Enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class PaymentStatus(str, Enum):
    """Outcome of a payment recorded against a parking session."""

    PENDING = "Pending"
    SUCCESSFUL = "Successful"
    FAILED = "Failed"


class PaymentCreate(BaseModel):
    """Fields the caller provides when recording a payment result"""
    parking: str = Field(min_length=1, description="Parking session the payment settles")
    amount: float = Field(ge=0)
    payment_status: PaymentStatus = PaymentStatus.PENDING


class Payment(PaymentCreate):
    id: str
    initiator: Optional[str] = None
    created_at: datetime
