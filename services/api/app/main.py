"""POS billing API service entrypoint."""

from fastapi import FastAPI

from services.api.app.db.init_db import init_db
from services.api.app.routers.order import router as order_router
from services.api.app.utils.logger import setup_logger

app = FastAPI(title="POS Billing API")

app.include_router(order_router)


@app.on_event("startup")
def _startup() -> None:
    setup_logger()
    init_db()


@app.get("/health")
def health() -> dict:
    return {"status": "ok"}
