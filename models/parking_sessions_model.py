from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from models.payments_model import Payment
from models.reservations_model import Reservation


class ParkingStatus(str, Enum):
    """Lifecycle of a parking session. Only ever moves forward."""

    ACTIVE = "Active"
    PAYMENT_PENDING = "Payment Pending"
    EXITED = "Exited"


class ParkingEntryCreate(BaseModel):
    reservation: str = Field(min_length=1)


class ParkingSession(BaseModel):
    id: str
    reservation: str
    admin: str
    entered_time: datetime
    exited_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0, description="Whole minutes parked")
    total_amount: Optional[float] = Field(None, ge=0)
    status: ParkingStatus = ParkingStatus.ACTIVE

    @model_validator(mode="after")
    def check_exit_fields(self):
        # exited_time is present exactly when the vehicle has checked out
        checked_out = self.status != ParkingStatus.ACTIVE
        if checked_out != (self.exited_time is not None):
            raise ValueError(f"exited_time must be set if and only if status is not {ParkingStatus.ACTIVE.value}")
        return self


class ParkingSessionDetail(BaseModel):
    """A session with its reservation and latest payment expanded."""

    id: str
    reservation: Optional[Reservation] = None
    admin: str
    entered_time: datetime
    exited_time: Optional[datetime] = None
    duration: Optional[int] = None
    total_amount: Optional[float] = None
    status: ParkingStatus
    payment: Optional[Payment] = None
