from pydantic import BaseModel, field_validator, model_validator
from typing import Optional
from datetime import datetime


class CreateReservation(BaseModel):
    parking_spot: str
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @field_validator('parking_spot')
    def validate_parking_spot(cls, value):
        if not value.strip():
            raise ValueError("Parking spot id cannot be empty")
        return value.strip()

    @model_validator(mode="after")
    def validate_time_window(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("Reservation must end after it starts")
        return self


class Reservation(CreateReservation):
    id: str
    customer: str
    created_at: Optional[datetime] = None
