from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP

from pydantic import TypeAdapter

MINUTE = timedelta(minutes=1)
CENTS = Decimal("0.01")

_datetime = TypeAdapter(datetime)


def current_time() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value) -> str:
    """
    Fixed-width UTC ISO-8601 text for a datetime or an ISO string, e.g.
    2024-01-01T12:00:00.000000+00:00. Stored timestamps compare as text,
    so "12:00:00Z" next to "12:00:00.500000Z" would sort out of time order.
    Naive values are taken as UTC.
    """
    moment = _datetime.validate_python(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def calculate_duration_minutes(entered_time: datetime, exited_time: datetime) -> int:
    """
    Whole minutes between entry and exit. Partial minutes are not billed,
    so the duration is floored rather than rounded.

    Raises ValueError when exit lies before entry (clock skew) instead of
    producing a negative duration.
    """
    if exited_time < entered_time:
        raise ValueError(
            f"Exit time {exited_time.isoformat()} is before entry time {entered_time.isoformat()}"
        )
    return (exited_time - entered_time) // MINUTE


def calculate_total_amount(duration_minutes: int, price_per_hour: float) -> float:
    """
    Charge for duration_minutes at price_per_hour, rounded half-up to cents.

    Uses Decimal so 37 minutes at 100/h gives 61.67 and not a binary float
    artefact; the rate goes through str() to keep the value the user typed.
    """
    if duration_minutes < 0:
        raise ValueError("Duration cannot be negative")
    if price_per_hour < 0:
        raise ValueError("Price per hour cannot be negative")

    amount = Decimal(duration_minutes) / Decimal(60) * Decimal(str(price_per_hour))
    return float(amount.quantize(CENTS, rounding=ROUND_HALF_UP))
