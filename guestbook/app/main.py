# guestbook/app/main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from guestbook.core.config import settings
from guestbook.core.database import wait_for_db
from guestbook.app.routers import guestbook
from guestbook.core.rate_limit import init_rate_limiter
from guestbook.core.exceptions import GuestbookError
from guestbook.app.exception_handlers import guestbook_exception_handler, general_exception_handler

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        if settings.RATE_LIMIT_ENABLED:
            await init_rate_limiter()
        await wait_for_db()
    except Exception as e:
        logger.error(f"[lifespan] Startup failure: {e}")

    yield

    if settings.DEBUG:
        logger.info("[lifespan] Shutdown complete")

tags_metadata = [
    {"name": "guestbook", "description": "Guestbook entries, field validation and media uploads"},
]

app = FastAPI(
    title="Guestbook API",
    description="Visitor guestbook: submit, list, edit and delete entries",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=tags_metadata
)

# Prometheus Metrics (Expose /metrics)
Instrumentator().instrument(app).expose(app)

if settings.DEBUG:
    # Any localhost port in development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_origin_regex=r"https?://(localhost|127\.0\.0\.1)(:[0-9]+)?",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.add_exception_handler(GuestbookError, guestbook_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

@app.get("/")
def read_root():
    return {
        "status": "active",
        "env": settings.ENVIRONMENT,
    }

app.include_router(guestbook.router, prefix="/api/v1")
