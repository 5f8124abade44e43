import logging
import sqlite3
from pathlib import Path
from typing import Callable, Dict, List, Optional

from utils import session_calculator
from utils.config import settings

logger = logging.getLogger(__name__)

# Read at call time so tests can point the store at a temporary file
DB_PATH = Path(settings.db_path)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS parking_spots (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        price_per_hour REAL NOT NULL,
        "coordinates.lat" REAL NOT NULL,
        "coordinates.lng" REAL NOT NULL,
        created_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS reservations (
        id TEXT PRIMARY KEY,
        customer TEXT NOT NULL,
        parking_spot TEXT NOT NULL,
        start_time TEXT,
        end_time TEXT,
        created_at TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS parking_sessions (
        id TEXT PRIMARY KEY,
        reservation TEXT NOT NULL,
        admin TEXT NOT NULL,
        entered_time TEXT NOT NULL,
        exited_time TEXT,
        duration INTEGER,
        total_amount REAL,
        status TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS payments (
        id TEXT PRIMARY KEY,
        parking TEXT NOT NULL,
        amount REAL NOT NULL,
        payment_status TEXT NOT NULL,
        initiator TEXT,
        created_at TEXT NOT NULL
    )
    """,
]


class StorageError(Exception):
    """The sqlite store could not complete a read or write."""


class RecordNotFoundError(LookupError):
    """No row matched the key (and guard) of an update or delete."""


# --- Nested <-> flat column mapping ---


def normalize_data(data: List[Dict]) -> List[Dict]:
    """
    Flattens nested dictionaries into dot separated columns,
    e.g. {'coordinates': {'lat': 52.1}} -> {'coordinates.lat': 52.1}.
    """

    def flatten(d: Dict, prefix: str = "") -> Dict:
        flat = {}
        for k, v in d.items():
            key = f"{prefix}{k}"
            if isinstance(v, dict):
                flat.update(flatten(v, f"{key}."))
            else:
                flat[key] = v
        return flat

    return [flatten(item) for item in data]


def unnormalize_data(data: List[Dict]) -> List[Dict]:
    """
    Rebuilds nested dictionaries from dot separated columns.
    """

    def unflatten(d: Dict) -> Dict:
        nested: Dict = {}
        for k, v in d.items():
            parts = k.split(".")
            target = nested
            for part in parts[:-1]:
                target = target.setdefault(part, {})
            target[parts[-1]] = v
        return nested

    return [unflatten(item) for item in data]


def _connect() -> sqlite3.Connection:
    conn = sqlite3.connect(DB_PATH)
    conn.row_factory = sqlite3.Row
    return conn


def init_db():
    """Creates the database file and every table that is missing."""
    Path(DB_PATH).parent.mkdir(parents=True, exist_ok=True)
    try:
        with _connect() as conn:
            for statement in SCHEMA:
                conn.execute(statement)
    except sqlite3.Error as e:
        logger.error(f"Failed to initialise database at {DB_PATH}: {e}")
        raise StorageError("Failed to initialise database") from e
    logger.info(f"Database ready at {DB_PATH}")


# --- Generic record store ---


def load_json_from_db(table_name: str) -> List[Dict]:
    rows = []
    try:
        with _connect() as conn:
            for row in conn.execute(f'SELECT * FROM "{table_name}" ORDER BY rowid'):
                rows.append(dict(row))
    except sqlite3.Error as e:
        logger.error(f"Error loading all data from table '{table_name}': {e}")
        raise StorageError(f"Failed to load {table_name}") from e

    return unnormalize_data(rows)


def load_single_json_from_db(table_name: str, key_col: str, key_val: str) -> Optional[Dict]:
    try:
        with _connect() as conn:
            row = conn.execute(
                f'SELECT * FROM "{table_name}" WHERE "{key_col}" = ?', (key_val,)
            ).fetchone()
    except sqlite3.Error as e:
        logger.error(f"Error loading single row from table '{table_name}': {e}")
        raise StorageError(f"Failed to load {table_name}") from e

    if row is None:
        return None
    return unnormalize_data([dict(row)])[0]


def load_latest_json_from_db(table_name: str, key_col: str, key_val: str, order_col: str) -> Optional[Dict]:
    """
    Loads the newest row matching key_col = key_val, newest by order_col.
    Rows with an equal order_col fall back to insertion order.
    """
    sql = (
        f'SELECT * FROM "{table_name}" WHERE "{key_col}" = ? '
        f'ORDER BY "{order_col}" DESC, rowid DESC LIMIT 1'
    )
    try:
        with _connect() as conn:
            row = conn.execute(sql, (key_val,)).fetchone()
    except sqlite3.Error as e:
        logger.error(f"Error loading latest row from table '{table_name}': {e}")
        raise StorageError(f"Failed to load {table_name}") from e

    if row is None:
        return None
    return unnormalize_data([dict(row)])[0]


def find_json_in_db(table_name: str, predicate: Callable[[Dict], bool]) -> List[Dict]:
    return [item for item in load_json_from_db(table_name) if predicate(item)]


def count_rows_in_db(table_name: str) -> int:
    try:
        with _connect() as conn:
            return conn.execute(f'SELECT COUNT(*) FROM "{table_name}"').fetchone()[0]
    except sqlite3.Error as e:
        logger.error(f"Error counting rows in table '{table_name}': {e}")
        raise StorageError(f"Failed to count {table_name}") from e


def insert_single_json_to_db(table_name: str, item: Dict):
    flat = normalize_data([item])[0]

    columns_sql = ", ".join(f'"{col}"' for col in flat)
    placeholders_sql = ", ".join("?" * len(flat))
    sql = f'INSERT INTO "{table_name}" ({columns_sql}) VALUES ({placeholders_sql})'

    try:
        with _connect() as conn:
            conn.execute(sql, tuple(flat.values()))
    except sqlite3.Error as e:
        logger.error(f"Error inserting data into table '{table_name}': {e}")
        raise StorageError(f"Failed to insert into {table_name}") from e


def update_single_json_in_db(
    table_name: str,
    key_col: str,
    key_val: str,
    update_item: Dict,
    expected: Optional[Dict] = None,
):
    """
    Overwrites one row with the complete, final state in update_item.

    expected maps columns to the values they must still hold; the row is only
    written when they do, which makes a read-modify-write a single atomic
    statement. Raises RecordNotFoundError when nothing was written.
    """
    flat = normalize_data([update_item])[0]
    guard = expected or {}

    set_sql = ", ".join(f'"{col}" = ?' for col in flat)
    where_sql = " AND ".join(f'"{col}" = ?' for col in [key_col, *guard])
    sql = f'UPDATE "{table_name}" SET {set_sql} WHERE {where_sql}'
    params = (*flat.values(), key_val, *guard.values())

    try:
        with _connect() as conn:
            cursor = conn.execute(sql, params)
            updated = cursor.rowcount
    except sqlite3.Error as e:
        logger.error(f"Error updating data in table '{table_name}': {e}")
        raise StorageError(f"Failed to update {table_name}") from e

    if updated == 0:
        raise RecordNotFoundError(f"No row in {table_name} with {key_col}={key_val} matching {guard}")


def delete_single_json_from_db(table_name: str, key_col: str, key_val: str):
    try:
        with _connect() as conn:
            deleted = conn.execute(
                f'DELETE FROM "{table_name}" WHERE "{key_col}" = ?', (key_val,)
            ).rowcount
    except sqlite3.Error as e:
        logger.error(f"Error deleting data from table '{table_name}': {e}")
        raise StorageError(f"Failed to delete from {table_name}") from e

    if deleted == 0:
        raise RecordNotFoundError(f"No row in {table_name} with {key_col}={key_val}")


# -----------------------------------------------------------------
## Entity helpers
# -----------------------------------------------------------------


# --- Parking sessions ---
def load_parking_session_data_from_db() -> List[Dict]:
    return load_json_from_db("parking_sessions")


def get_parking_session_by_id(session_id: str) -> Optional[Dict]:
    return load_single_json_from_db("parking_sessions", key_col="id", key_val=session_id)


def save_new_parking_session_to_db(session_data: Dict):
    insert_single_json_to_db("parking_sessions", session_data)


def update_existing_parking_session_in_db(session_id: str, session_data: Dict, expected_status: str):
    update_single_json_in_db(
        "parking_sessions",
        key_col="id",
        key_val=session_id,
        update_item=session_data,
        expected={"status": expected_status},
    )


def find_parking_sessions_in_db(predicate: Callable[[Dict], bool]) -> List[Dict]:
    return find_json_in_db("parking_sessions", predicate)


def delete_parking_session_from_db(session_id: str):
    delete_single_json_from_db("parking_sessions", key_col="id", key_val=session_id)


def count_parking_sessions_in_db() -> int:
    return count_rows_in_db("parking_sessions")


# --- Reservations ---
def load_reservation_data_from_db() -> List[Dict]:
    return load_json_from_db("reservations")


def get_reservation_by_id(reservation_id: str) -> Optional[Dict]:
    return load_single_json_from_db("reservations", key_col="id", key_val=reservation_id)


def save_new_reservation_to_db(reservation_data: Dict):
    insert_single_json_to_db("reservations", reservation_data)


# --- Parking spots ---
def load_parking_spot_data_from_db() -> List[Dict]:
    return load_json_from_db("parking_spots")


def get_parking_spot_by_id(spot_id: str) -> Optional[Dict]:
    return load_single_json_from_db("parking_spots", key_col="id", key_val=spot_id)


def save_new_parking_spot_to_db(spot_data: Dict):
    insert_single_json_to_db("parking_spots", spot_data)


# --- Payments ---
def load_payment_data_from_db() -> List[Dict]:
    return load_json_from_db("payments")


def get_latest_payment_by_session_id(session_id: str) -> Optional[Dict]:
    return load_latest_json_from_db("payments", key_col="parking", key_val=session_id, order_col="created_at")


def save_new_payment_to_db(payment_data: Dict):
    # created_at orders payments, so it is stored at a fixed width
    insert_single_json_to_db(
        "payments",
        {**payment_data, "created_at": session_calculator.format_timestamp(payment_data["created_at"])}
    )
