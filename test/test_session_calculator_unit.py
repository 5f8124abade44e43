import pytest
from datetime import datetime, timedelta, timezone

from utils import session_calculator as sc


def at_ms(ms):
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc)


class TestCalculateDuration:

    def test_ten_minutes(self):
        assert sc.calculate_duration_minutes(at_ms(1000), at_ms(601000)) == 10

    def test_partial_minute_is_floored(self):
        entered = at_ms(0)
        assert sc.calculate_duration_minutes(entered, entered + timedelta(seconds=119)) == 1
        assert sc.calculate_duration_minutes(entered, entered + timedelta(seconds=59, milliseconds=999)) == 0

    def test_same_instant_is_zero(self):
        now = sc.current_time()
        assert sc.calculate_duration_minutes(now, now) == 0

    def test_exit_before_entry_is_rejected(self):
        with pytest.raises(ValueError, match="before entry"):
            sc.calculate_duration_minutes(at_ms(601000), at_ms(1000))

    def test_current_time_is_timezone_aware(self):
        assert sc.current_time().tzinfo is not None


class TestCalculateTotalAmount:

    def test_ninety_minutes(self):
        assert sc.calculate_total_amount(90, 100) == 150.00

    def test_rounds_half_up_to_cents(self):
        # 37 / 60 * 100 = 61.666...
        assert sc.calculate_total_amount(37, 100) == 61.67

    def test_half_cent_rounds_up(self):
        # 1 / 60 * 0.3 = 0.005
        assert sc.calculate_total_amount(1, 0.3) == 0.01

    def test_zero_minutes_is_free(self):
        assert sc.calculate_total_amount(0, 2.5) == 0.0

    def test_fractional_rate(self):
        assert sc.calculate_total_amount(45, 2.5) == 1.88

    @pytest.mark.parametrize("duration, price", [(-1, 10), (10, -1)])
    def test_negative_inputs_are_rejected(self, duration, price):
        with pytest.raises(ValueError):
            sc.calculate_total_amount(duration, price)


class TestFormatTimestamp:

    @pytest.mark.parametrize("value", [
        datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc),
        "2024-01-01T12:00:00Z",
        "2024-01-01T14:00:00+02:00",
        datetime(2024, 1, 1, 12, 0),
    ])
    def test_always_full_width_utc(self, value):
        assert sc.format_timestamp(value) == "2024-01-01T12:00:00.000000+00:00"

    def test_text_order_follows_time_order(self):
        whole = sc.format_timestamp("2024-01-01T12:00:00Z")
        half = sc.format_timestamp("2024-01-01T12:00:00.5Z")
        assert whole < half
