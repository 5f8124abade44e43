from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from models.parking_sessions_model import ParkingEntryCreate
from services import auth_services, parking_services, spot_services
from services.errors import NotFound
from utils.config import settings
from utils.storage_utils import get_reservation_by_id

router = APIRouter(
    prefix="/parking",
    tags=["parking"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing token"},
        403: {"description": "Forbidden - Insufficient permissions"},
        404: {"description": "Not Found - Resource does not exist"}
    }
)


@router.post(
    "/enter",
    summary="Record a vehicle entering on a reservation",
    status_code=status.HTTP_201_CREATED
)
def enter_parking(entry: ParkingEntryCreate, session_user: Dict = Depends(auth_services.require_admin)):
    if not get_reservation_by_id(entry.reservation):
        raise NotFound("Reservation not found")

    parking = parking_services.enter_parking(entry.reservation, auth_services.user_id(session_user))

    return JSONResponse(
        content={"message": "Parking entry created successfully", "parking": jsonable_encoder(parking)},
        status_code=status.HTTP_201_CREATED
    )


@router.put(
    "/{parking_id}/exit",
    summary="Check a vehicle out and compute what it owes"
)
def exit_parking(parking_id: str, session_user: Dict = Depends(auth_services.require_admin)):
    parking = parking_services.exit_parking(parking_id)

    return JSONResponse(
        content={"message": "Parking updated successfully. Payment is pending.", "parking": jsonable_encoder(parking)},
        status_code=status.HTTP_200_OK
    )


@router.put(
    "/{parking_id}/validate",
    summary="Release a vehicle once its payment has succeeded"
)
def validate_payment_and_exit(parking_id: str, session_user: Dict = Depends(auth_services.require_admin)):
    parking = parking_services.validate_payment_and_exit(parking_id)

    return JSONResponse(
        content={"message": "Vehicle is allowed to exit", "parking": jsonable_encoder(parking)},
        status_code=status.HTTP_200_OK
    )


@router.get(
    "",
    summary="Retrieve all parking sessions",
    response_description="Parking sessions with payment details"
)
def get_parkings(session_user: Dict = Depends(auth_services.require_admin)):
    parkings = parking_services.get_parkings()
    return JSONResponse(content={"parkings": jsonable_encoder(parkings)}, status_code=status.HTTP_200_OK)


@router.get("/total", summary="Count all parking sessions")
def get_total(session_user: Dict = Depends(auth_services.require_admin)):
    return {"total": parking_services.get_total()}


@router.get(
    "/user",
    summary="Retrieve the caller's parking sessions"
)
def get_parking_by_user(session_user: Dict = Depends(auth_services.require_auth)):
    parkings = parking_services.get_parkings_by_customer(auth_services.user_id(session_user))
    return JSONResponse(content={"parking": jsonable_encoder(parkings)}, status_code=status.HTTP_200_OK)


@router.get(
    "/knn",
    summary="Find the parking spots nearest to the caller",
    response_description="Spots ordered by distance in metres"
)
def get_knn(
    k: Optional[int] = Query(None, description="Number of spots to return"),
    session_user: Dict = Depends(auth_services.require_auth)
):
    if k is None:
        k = settings.nearest_spots_default_k
    predicted_spots = spot_services.find_nearest_spots(session_user, k)
    return {"predictedSpots": jsonable_encoder(predicted_spots)}


@router.get(
    "/{parking_id}",
    summary="Retrieve a single parking session by ID",
    response_description="Parking session with reservation and payment"
)
def get_parking(parking_id: str, session_user: Dict = Depends(auth_services.require_auth)):
    parking = parking_services.get_parking(parking_id)
    return JSONResponse(content={"parking": jsonable_encoder(parking)}, status_code=status.HTTP_200_OK)


@router.delete(
    "/{parking_id}",
    summary="Delete parking session",
    response_description="Deletes a parking session by ID"
)
def delete_parking(parking_id: str, session_user: Dict = Depends(auth_services.require_admin)):
    parking_services.delete_parking(parking_id)
    return {"message": "Parking entry deleted successfully"}
