import logging
import uuid
from datetime import datetime, timezone
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from models.reservations_model import CreateReservation, Reservation
from services import auth_services
from utils.storage_utils import get_parking_spot_by_id, get_reservation_by_id, save_new_reservation_to_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reservations"])


@router.post("/reservations", status_code=status.HTTP_201_CREATED)
def create_reservation(reservation_data: CreateReservation, session_user: Dict = Depends(auth_services.require_auth)):
    if not get_parking_spot_by_id(reservation_data.parking_spot):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Parking spot not found"
        )

    reservation = Reservation(
        id=str(uuid.uuid4()),
        customer=auth_services.user_id(session_user),
        created_at=datetime.now(timezone.utc),
        **reservation_data.model_dump()
    )
    save_new_reservation_to_db(jsonable_encoder(reservation))
    logger.info(f"Reservation {reservation.id} created for {reservation.customer} on spot {reservation.parking_spot}")

    return JSONResponse(
        content={"status": "Success", "reservation": jsonable_encoder(reservation)},
        status_code=status.HTTP_201_CREATED
    )


@router.get("/reservations/{reservation_id}")
def get_reservation(reservation_id: str, session_user: Dict = Depends(auth_services.require_auth)):
    reservation = get_reservation_by_id(reservation_id)
    if not reservation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Reservation not found"
        )

    is_owner = reservation["customer"] == auth_services.user_id(session_user)
    is_admin = session_user.get("role", "").upper() == auth_services.ROLE_ADMIN
    if not (is_owner or is_admin):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot access reservations that are not your own"
        )

    return reservation
