import logging
import uuid
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from models.parking_spots_model import ParkingSpot, ParkingSpotCreate
from services import auth_services
from utils.storage_utils import get_parking_spot_by_id, load_parking_spot_data_from_db, save_new_parking_spot_to_db

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["parking-spots"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing token"},
        403: {"description": "Forbidden - Insufficient permissions"},
        404: {"description": "Not Found - Resource does not exist"}
    }
)


@router.get(
    "/parking-spots/{spot_id}",
    summary="Retrieve a single parking spot by ID",
    response_description="Parking spot details"
)
def get_parking_spot_by_id_endpoint(spot_id: str):
    spot = get_parking_spot_by_id(spot_id)
    if not spot:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Parking spot does not exist"
        )
    return spot


@router.get(
    "/parking-spots",
    summary="Retrieve all parking spots",
    response_description="Parking spot details"
)
def get_parking_spots():
    return load_parking_spot_data_from_db()


@router.post(
    "/parking-spots",
    summary="Create new parking spot",
    status_code=status.HTTP_201_CREATED
)
def create_parking_spot(spot_create: ParkingSpotCreate, session_user: Dict = Depends(auth_services.require_admin)):
    spot = ParkingSpot(
        id=str(uuid.uuid4()),
        created_at=datetime.now(timezone.utc),
        **spot_create.model_dump()
    )
    save_new_parking_spot_to_db(jsonable_encoder(spot))
    logger.info(f"Parking spot {spot.id} ({spot.name}) created by {session_user.get('username')}")

    return JSONResponse(content=jsonable_encoder(spot), status_code=status.HTTP_201_CREATED)
