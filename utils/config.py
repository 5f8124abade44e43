import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    # sqlite file holding sessions, reservations, payments and spots
    db_path: str = os.getenv("PARKWISE_DB_PATH", "data/parkwise.db")

    log_level: str = os.getenv("PARKWISE_LOG_LEVEL", "INFO")

    host: str = os.getenv("PARKWISE_HOST", "0.0.0.0")
    port: int = int(os.getenv("PARKWISE_PORT", "8000"))

    # How many spots /parking/knn returns when the caller does not ask
    nearest_spots_default_k: int = int(os.getenv("PARKWISE_NEAREST_SPOTS_K", "3"))


settings = Settings()
