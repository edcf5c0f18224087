import logging

from fastapi import FastAPI

from resto_admin.api.tables import router as tables_router
from resto_admin.config import settings
from resto_admin.errors import register_error_handlers

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

app = FastAPI(title="resto_admin API")

register_error_handlers(app)

app.include_router(tables_router, prefix="/api/v1")


@app.get("/health")
def health_check():
    return {"status": "ok"}
