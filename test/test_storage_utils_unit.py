from datetime import datetime, timezone

import pytest
from fastapi.encoders import jsonable_encoder

from models.payments_model import Payment
from utils import storage_utils


def test_normalize_flattens_nested_dicts():
    data = [{"id": "1", "coordinates": {"lat": 1.5, "lng": 2.5}, "meta": {"a": {"b": 3}}}]
    assert storage_utils.normalize_data(data) == [
        {"id": "1", "coordinates.lat": 1.5, "coordinates.lng": 2.5, "meta.a.b": 3}
    ]


def test_unnormalize_rebuilds_nested_dicts():
    data = [{"id": "1", "coordinates.lat": 1.5, "coordinates.lng": 2.5}]
    assert storage_utils.unnormalize_data(data) == [{"id": "1", "coordinates": {"lat": 1.5, "lng": 2.5}}]


def test_init_db_is_idempotent(test_db):
    storage_utils.init_db()
    assert storage_utils.count_rows_in_db("parking_sessions") == 0


def test_insert_and_load_single(spot):
    assert storage_utils.get_parking_spot_by_id(spot["id"]) == spot
    assert storage_utils.get_parking_spot_by_id("missing") is None


def test_required_columns_are_enforced(test_db):
    with pytest.raises(storage_utils.StorageError):
        storage_utils.save_new_parking_spot_to_db({"id": "no-name", "price_per_hour": 1.0})


def test_duplicate_id_is_rejected(spot):
    with pytest.raises(storage_utils.StorageError):
        storage_utils.save_new_parking_spot_to_db(spot)


def test_guarded_update_only_applies_when_expected_matches(test_db):
    storage_utils.insert_single_json_to_db("parking_sessions", {
        "id": "p1", "reservation": "r1", "admin": "a1",
        "entered_time": "2024-01-01T10:00:00Z", "status": "Active"
    })

    storage_utils.update_existing_parking_session_in_db("p1", {"status": "Exited"}, expected_status="Active")
    assert storage_utils.get_parking_session_by_id("p1")["status"] == "Exited"

    with pytest.raises(storage_utils.RecordNotFoundError):
        storage_utils.update_existing_parking_session_in_db("p1", {"status": "Active"}, expected_status="Active")
    assert storage_utils.get_parking_session_by_id("p1")["status"] == "Exited"


def test_update_missing_row(test_db):
    with pytest.raises(storage_utils.RecordNotFoundError):
        storage_utils.update_single_json_in_db("reservations", "id", "ghost", {"customer": "x"})


def test_delete(reservation):
    storage_utils.delete_single_json_from_db("reservations", "id", reservation["id"])
    assert storage_utils.get_reservation_by_id(reservation["id"]) is None
    with pytest.raises(storage_utils.RecordNotFoundError):
        storage_utils.delete_single_json_from_db("reservations", "id", reservation["id"])


def test_find_where(test_db):
    for i, customer in enumerate(["alice", "bob", "alice"]):
        storage_utils.save_new_reservation_to_db({"id": f"r{i}", "customer": customer, "parking_spot": "s"})

    found = storage_utils.find_json_in_db("reservations", lambda r: r["customer"] == "alice")
    assert [r["id"] for r in found] == ["r0", "r2"]


def test_find_parking_sessions(test_db):
    for i, reservation_id in enumerate(["r1", "r2", "r1"]):
        storage_utils.save_new_parking_session_to_db({
            "id": f"p{i}", "reservation": reservation_id, "admin": "a1",
            "entered_time": "2024-01-01T10:00:00Z", "status": "Active"
        })

    found = storage_utils.find_parking_sessions_in_db(lambda p: p["reservation"] == "r1")
    assert [p["id"] for p in found] == ["p0", "p2"]


def test_latest_payment_prefers_newest_then_last_inserted(test_db):
    rows = [
        ("old", "2024-01-01T10:00:00Z"),
        ("tie-first", "2024-01-01T11:00:00Z"),
        ("tie-second", "2024-01-01T11:00:00Z"),
    ]
    for payment_id, created_at in rows:
        storage_utils.save_new_payment_to_db({
            "id": payment_id, "parking": "p1", "amount": 1.0,
            "payment_status": "Pending", "created_at": created_at
        })

    assert storage_utils.get_latest_payment_by_session_id("p1")["id"] == "tie-second"
    assert storage_utils.get_latest_payment_by_session_id("p2") is None


def test_latest_payment_within_the_same_second(test_db):
    # encoded timestamps drop a zero fraction: 12:00:00Z vs 12:00:00.500000Z
    older = Payment(
        id="older", parking="p1", amount=1.0, payment_status="Failed",
        created_at=datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    )
    newer = Payment(
        id="newer", parking="p1", amount=1.0, payment_status="Successful",
        created_at=datetime(2024, 1, 1, 12, 0, 0, 500000, tzinfo=timezone.utc)
    )
    storage_utils.save_new_payment_to_db(jsonable_encoder(older))
    storage_utils.save_new_payment_to_db(jsonable_encoder(newer))

    assert storage_utils.get_latest_payment_by_session_id("p1")["id"] == "newer"
    assert storage_utils.get_latest_payment_by_session_id("p1")["created_at"] == "2024-01-01T12:00:00.500000+00:00"


def test_unknown_table_raises_storage_error(test_db):
    with pytest.raises(storage_utils.StorageError):
        storage_utils.load_json_from_db("no_such_table")
