import logging
import uuid
from typing import Dict, List, Optional

from models.parking_sessions_model import ParkingSession, ParkingSessionDetail, ParkingStatus
from models.payments_model import PaymentStatus
from services.errors import AlreadyExited, BadInput, DependencyMissing, InvalidTransition, NotFound, PaymentNotVerified
from utils import session_calculator, storage_utils

logger = logging.getLogger(__name__)


def _load_session(session_id: str) -> ParkingSession:
    parking = storage_utils.get_parking_session_by_id(session_id)
    if not parking:
        raise NotFound("Parking entry not found")
    return ParkingSession(**parking)


def _resolve_price_per_hour(parking: ParkingSession) -> float:
    reservation = storage_utils.get_reservation_by_id(parking.reservation)
    if not reservation:
        logger.error(f"Parking {parking.id} references missing reservation {parking.reservation}")
        raise DependencyMissing(f"Reservation {parking.reservation} could not be resolved")

    spot = storage_utils.get_parking_spot_by_id(reservation["parking_spot"])
    if not spot or spot.get("price_per_hour") is None:
        logger.error(f"Reservation {reservation['id']} references missing parking spot {reservation['parking_spot']}")
        raise DependencyMissing(f"Parking spot {reservation['parking_spot']} could not be resolved")

    return float(spot["price_per_hour"])


def _commit_transition(parking: ParkingSession, from_status: ParkingStatus):
    """
    Writes parking only if the stored row still has from_status. A concurrent
    caller that got there first makes this one fail with AlreadyExited.
    """
    try:
        storage_utils.update_existing_parking_session_in_db(
            parking.id, parking.model_dump(mode="json"), expected_status=from_status.value
        )
    except storage_utils.RecordNotFoundError:
        if not storage_utils.get_parking_session_by_id(parking.id):
            raise NotFound("Parking entry not found")
        logger.warning(f"Parking {parking.id} left {from_status.value} before it could be updated")
        raise AlreadyExited("Parking already marked as exited")


def enter_parking(reservation_id: str, admin_id: str) -> ParkingSession:
    parking = ParkingSession(
        id=str(uuid.uuid4()),
        reservation=reservation_id,
        admin=admin_id,
        entered_time=session_calculator.current_time(),
        status=ParkingStatus.ACTIVE,
    )
    storage_utils.save_new_parking_session_to_db(parking.model_dump(mode="json"))

    logger.info(f"Parking {parking.id} entered on reservation {reservation_id} by {admin_id}")
    return parking


def exit_parking(session_id: str) -> ParkingSession:
    parking = _load_session(session_id)

    # Exit is not reentrant: a second call must not move exited_time or the charge
    if parking.status != ParkingStatus.ACTIVE:
        logger.warning(f"Exit rejected for parking {session_id} in status {parking.status.value}")
        raise AlreadyExited("Parking already marked as exited")

    price_per_hour = _resolve_price_per_hour(parking)
    exited_time = session_calculator.current_time()

    try:
        duration = session_calculator.calculate_duration_minutes(parking.entered_time, exited_time)
    except ValueError as e:
        logger.error(f"Refusing to bill parking {session_id}: {e}")
        raise BadInput(str(e)) from e

    exited = ParkingSession(
        **{
            **parking.model_dump(),
            "exited_time": exited_time,
            "duration": duration,
            "total_amount": session_calculator.calculate_total_amount(duration, price_per_hour),
            "status": ParkingStatus.PAYMENT_PENDING,
        }
    )
    _commit_transition(exited, from_status=ParkingStatus.ACTIVE)

    logger.info(f"Parking {session_id} exited after {duration} min, {exited.total_amount} due")
    return exited


def validate_payment_and_exit(session_id: str) -> ParkingSession:
    parking = _load_session(session_id)

    if parking.status == ParkingStatus.ACTIVE:
        raise InvalidTransition("Parking has not been checked out yet")

    payment = storage_utils.get_latest_payment_by_session_id(session_id)
    if not payment or payment.get("payment_status") != PaymentStatus.SUCCESSFUL.value:
        logger.warning(f"Payment not verified for parking {session_id}")
        raise PaymentNotVerified("Payment not verified")

    # A gate re-checking a released vehicle gets the same answer, nothing is written
    if parking.status == ParkingStatus.EXITED:
        logger.info(f"Parking {session_id} already released, payment {payment['id']} still verified")
        return parking

    released = ParkingSession(**{**parking.model_dump(), "status": ParkingStatus.EXITED})
    try:
        _commit_transition(released, from_status=ParkingStatus.PAYMENT_PENDING)
    except AlreadyExited:
        # Payment Pending only leads to Exited, so another gate released it first
        return _load_session(session_id)

    logger.info(f"Parking {session_id} released after payment {payment['id']}")
    return released


# --- Queries ---


def _latest_payments_by_session() -> Dict[str, Dict]:
    latest = {}
    payments = storage_utils.load_payment_data_from_db()
    # rows come back in insertion order; created_at decides, insertion order breaks ties
    for payment in sorted(payments, key=lambda p: p["created_at"]):
        latest[payment["parking"]] = payment
    return latest


def _expand(parking: Dict, reservations: Dict[str, Dict], payments: Dict[str, Dict]) -> ParkingSessionDetail:
    return ParkingSessionDetail(
        **{
            **parking,
            "reservation": reservations.get(parking["reservation"]),
            "payment": payments.get(parking["id"]),
        }
    )


def get_parking(session_id: str) -> ParkingSessionDetail:
    parking = storage_utils.get_parking_session_by_id(session_id)
    if not parking:
        raise NotFound("Parking entry not found")

    reservation = storage_utils.get_reservation_by_id(parking["reservation"])
    payment = storage_utils.get_latest_payment_by_session_id(session_id)
    return _expand(
        parking,
        {reservation["id"]: reservation} if reservation else {},
        {session_id: payment} if payment else {},
    )


def get_parkings(customer_id: Optional[str] = None) -> List[ParkingSessionDetail]:
    reservations = {r["id"]: r for r in storage_utils.load_reservation_data_from_db()}
    payments = _latest_payments_by_session()

    if customer_id is None:
        parkings = storage_utils.load_parking_session_data_from_db()
    else:
        # Ownership is not stored on the session, it comes through the reservation
        parkings = storage_utils.find_parking_sessions_in_db(
            lambda p: reservations.get(p["reservation"], {}).get("customer") == customer_id
        )

    return [_expand(p, reservations, payments) for p in parkings]


def get_parkings_by_customer(customer_id: str) -> List[ParkingSessionDetail]:
    return get_parkings(customer_id=customer_id)


def get_total() -> int:
    return storage_utils.count_parking_sessions_in_db()


def delete_parking(session_id: str):
    try:
        storage_utils.delete_parking_session_from_db(session_id)
    except storage_utils.RecordNotFoundError:
        raise NotFound("Parking entry not found")
    logger.info(f"Parking {session_id} deleted")
