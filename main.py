import logging

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from endpoints.parking_endpoint import router as parking_router
from endpoints.parking_spots_endpoint import router as parking_spots_router
from endpoints.payments_endpoint import router as payment_router
from endpoints.reservations import router as reservations_router
from services.errors import ParkingError
from utils import storage_utils
from utils.config import settings

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Parkwise", version="1.0.0")

app.include_router(parking_router)
app.include_router(parking_spots_router)
app.include_router(reservations_router)
app.include_router(payment_router)


@app.on_event("startup")
def on_startup():
    storage_utils.init_db()


# Each error kind keeps its own status and code so clients can branch on them
@app.exception_handler(ParkingError)
def parking_error_handler(request: Request, exc: ParkingError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code}
    )


@app.exception_handler(storage_utils.StorageError)
def storage_error_handler(request: Request, exc: storage_utils.StorageError):
    logger.error(f"{request.method} {request.url.path} failed on storage: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error", "code": "storage_error"}
    )


@app.get("/")
def read_root():
    return {"message": "Welcome to the Parkwise API!"}


if __name__ == "__main__":
    uvicorn.run("main:app", host=settings.host, port=settings.port)
