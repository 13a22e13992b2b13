from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from csv_importer.core.config import settings
from csv_importer.core.logging import setup_logging
from csv_importer.db.session import init_models
from csv_importer.services.errors import ImportAbortedError

setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables for registered entities
    await init_models()
    yield


app = FastAPI(
    title="CSV Importer",
    version="0.1.0",
    docs_url="/api/docs" if settings.APP_ENV != "production" else None,
    redoc_url="/api/redoc" if settings.APP_ENV != "production" else None,
    lifespan=lifespan,
)


@app.exception_handler(ImportAbortedError)
async def import_aborted_handler(request: Request, exc: ImportAbortedError):
    # Already logged with traceback by the importer.
    return JSONResponse(status_code=500, content={"detail": "CSV import could not complete."})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception: %s %s: %s", request.method, request.url.path, exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal server error."})


# ─── Routers ───
from csv_importer.api.v1.router import api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok", "env": settings.APP_ENV}
