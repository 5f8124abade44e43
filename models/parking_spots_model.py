from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

class Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)

class ParkingSpotCreate(BaseModel):
    name: str = Field(min_length=1)
    price_per_hour: float = Field(ge=0)
    coordinates: Coordinates

class ParkingSpot(ParkingSpotCreate):
    id: str
    created_at: Optional[datetime] = None

class NearestSpot(BaseModel):
    id: str
    name: str
    # great-circle distance from the caller in metres
    distance: float
