import os
import logging
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest

from tripflow import __version__
from tripflow.db import init_db, get_db_path

# ─────────────────────────── LOGGING SETUP ───────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE", "")

log_format = logging.Formatter(
    '%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

# Root logger captures uvicorn, fastapi and httpx as well as our own modules
root_logger = logging.getLogger()
root_logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

logger = logging.getLogger("tripflow")
logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

if not any(getattr(h, "_tripflow", False) for h in root_logger.handlers):
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(log_format)
    console_handler.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
    console_handler._tripflow = True
    root_logger.addHandler(console_handler)

    # File handler (optional, only if configured and writable)
    if LOG_FILE:
        try:
            log_dir = os.path.dirname(LOG_FILE)
            if log_dir:
                os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingFileHandler(
                LOG_FILE, maxBytes=10*1024*1024, backupCount=5  # 10MB per file, keep 5 backups
            )
            file_handler.setFormatter(log_format)
            file_handler.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
            file_handler._tripflow = True
            root_logger.addHandler(file_handler)
            logger.info(f"File logging enabled: {LOG_FILE}")
        except OSError as e:
            logger.warning(f"Could not enable file logging: {e}")

APP_TITLE = "TripFlow"

app = FastAPI(title=APP_TITLE, version=__version__)


class ExceptionLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: StarletteRequest, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(
                f"Unhandled exception on {request.method} {request.url.path}: {e}",
                exc_info=True
            )
            return JSONResponse({"error": "Internal server error"}, status_code=500)


app.add_middleware(ExceptionLoggingMiddleware)


@app.on_event("startup")
async def _startup():
    # Schema must exist before any route touches the database
    await init_db()
    logger.info(f"{APP_TITLE} {__version__} started with database {get_db_path()}")


@app.get("/health")
async def health():
    return {"ok": True, "version": __version__}


from tripflow.api import router as api_router  # noqa: E402
app.include_router(api_router)
