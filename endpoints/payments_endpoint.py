import logging
import uuid
from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from models.payments_model import Payment, PaymentCreate
from services import auth_services
from utils.session_calculator import current_time
from utils.storage_utils import (
    get_parking_session_by_id,
    get_reservation_by_id,
    load_payment_data_from_db,
    save_new_payment_to_db
)

# Set up logging
logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["payments"],
    responses={
        401: {"description": "Unauthorized - Invalid or missing token"},
        403: {"description": "Forbidden - Insufficient permissions"},
        404: {"description": "Not Found - Resource does not exist"}
    }
)


def _is_admin(session_user: Dict) -> bool:
    return session_user.get("role", "").upper() == auth_services.ROLE_ADMIN


@router.get(
    "/payments",
    summary="Get all payments",
    response_description="List of payments"
)
def get_all_payments(session_user: Dict = Depends(auth_services.require_auth)) -> JSONResponse:
    payments = load_payment_data_from_db()

    # Admins see all payments, users only the ones they initiated
    if not _is_admin(session_user):
        initiator = auth_services.user_id(session_user)
        payments = [p for p in payments if p.get("initiator") == initiator]

    return JSONResponse(content=payments, status_code=status.HTTP_200_OK)


@router.post(
    "/payments",
    summary="Record the result of a payment for a parking session",
    response_description="Created payment details",
    status_code=status.HTTP_201_CREATED
)
def create_payment(
    payment_create: PaymentCreate,
    session_user: Dict = Depends(auth_services.require_auth)
) -> JSONResponse:
    parking = get_parking_session_by_id(payment_create.parking)
    if not parking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Parking entry not found"
        )

    initiator = auth_services.user_id(session_user)
    if not _is_admin(session_user):
        reservation = get_reservation_by_id(parking["reservation"]) or {}
        if reservation.get("customer") != initiator:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Cannot pay for parking that is not your own"
            )

    payment = Payment(
        id=str(uuid.uuid4()),
        initiator=initiator,
        created_at=current_time(),
        **payment_create.model_dump()
    )
    save_new_payment_to_db(jsonable_encoder(payment))
    logger.info(
        f"Payment {payment.id} ({payment.payment_status.value}, {payment.amount}) "
        f"recorded for parking {payment.parking} by {initiator}"
    )

    return JSONResponse(content=jsonable_encoder(payment), status_code=status.HTTP_201_CREATED)
