from fastapi import status


class ParkingError(Exception):
    """
    Base for every error the parking core reports.

    Each subclass has a stable code and the HTTP status a transport should
    answer with, so callers never need to look at the message text.
    """

    code = "parking_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(ParkingError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class AlreadyExited(ParkingError):
    code = "already_exited"
    status_code = status.HTTP_409_CONFLICT


class PaymentNotVerified(ParkingError):
    code = "payment_not_verified"
    status_code = status.HTTP_402_PAYMENT_REQUIRED


class DependencyMissing(ParkingError):
    code = "dependency_missing"
    status_code = status.HTTP_424_FAILED_DEPENDENCY


class BadInput(ParkingError):
    code = "bad_input"
    status_code = status.HTTP_400_BAD_REQUEST


class InvalidTransition(ParkingError):
    code = "invalid_transition"
    status_code = status.HTTP_409_CONFLICT
