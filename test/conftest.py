import os
import tempfile
import uuid
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from utils import storage_utils
from utils.session_manager import add_session, sessions

ADMIN_USER = {"id": "admin-test-id", "username": "admin_test", "role": "ADMIN", "name": "Admin User"}
CUSTOMER_USER = {
    "id": "user-test-id",
    "username": "regular_user",
    "role": "USER",
    "name": "Regular User",
    "coordinates": "52.3676,4.9041",
}
OTHER_USER = {"id": "other-test-id", "username": "other_user", "role": "USER", "name": "Other User"}


@pytest.fixture(autouse=True)
def cleanup_sessions():
    """automatically clean up identity tokens before and after each test"""
    sessions.clear()
    yield
    sessions.clear()


@pytest.fixture(scope="function")
def test_db(monkeypatch):
    """create a temporary sqlite database with the full schema"""
    db_fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(db_fd)

    monkeypatch.setattr(storage_utils, "DB_PATH", Path(db_path))
    storage_utils.init_db()

    yield db_path

    try:
        os.unlink(db_path)
    except (OSError, PermissionError):
        pass  # cleaned up by OS temp cleanup


@pytest.fixture
def client(test_db):
    from main import app

    return TestClient(app)


def _token_for(user):
    token = str(uuid.uuid4())
    add_session(token, user)
    return token


@pytest.fixture
def admin_token(test_db):
    return _token_for(ADMIN_USER)


@pytest.fixture
def user_token(test_db):
    return _token_for(CUSTOMER_USER)


@pytest.fixture
def other_user_token(test_db):
    return _token_for(OTHER_USER)


@pytest.fixture
def spot(test_db):
    spot = {
        "id": "spot-1",
        "name": "Dam Square",
        "price_per_hour": 100.0,
        "coordinates": {"lat": 52.3731, "lng": 4.8926},
        "created_at": "2024-01-01T00:00:00+00:00",
    }
    storage_utils.save_new_parking_spot_to_db(spot)
    return spot


@pytest.fixture
def reservation(spot):
    reservation = {
        "id": "reservation-1",
        "customer": CUSTOMER_USER["id"],
        "parking_spot": spot["id"],
        "start_time": None,
        "end_time": None,
        "created_at": "2024-01-01T00:00:00+00:00",
    }
    storage_utils.save_new_reservation_to_db(reservation)
    return reservation
