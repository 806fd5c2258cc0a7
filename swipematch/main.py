import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import ORJSONResponse

from . import db as mongo
from .config import get_settings
from .db import close_mongo_connection, connect_to_mongo
from .redis_bus import stop as redis_bus_stop
from .repositories.exceptions import StoreUnavailableRepositoryError
from .routers import feed, interactions, matches, users
from .services.notification_sink import drain_pending_notifications

LOGGER = logging.getLogger("uvicorn.error")

app = FastAPI(title="Swipematch API", default_response_class=ORJSONResponse)
settings = get_settings()

LOGGER.info("CORS allow_origins=%s", settings.allowed_origins())
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["ETag"],
    allow_credentials=True,
)
app.add_middleware(GZipMiddleware, minimum_size=512)


@app.middleware("http")
async def log_slow_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    if elapsed_ms >= get_settings().slow_request_ms:
        LOGGER.warning(
            "[perf] slow request %s %s %dms status=%s",
            request.method,
            request.url.path,
            int(elapsed_ms),
            response.status_code,
        )
    return response


@app.exception_handler(StoreUnavailableRepositoryError)
async def store_unavailable_handler(request: Request, exc: StoreUnavailableRepositoryError):
    LOGGER.error("Store unavailable during %s %s: %s", request.method, request.url.path, exc)
    return ORJSONResponse(
        status_code=503,
        content={"detail": "Service temporarily unavailable"},
        headers={"Retry-After": "1"},
    )


@app.on_event("startup")
async def startup():
    await connect_to_mongo()


@app.on_event("shutdown")
async def shutdown():
    await drain_pending_notifications()
    await close_mongo_connection()
    try:
        await redis_bus_stop()
    except Exception as exc:
        LOGGER.warning("Redis shutdown failed: %s", exc)


app.include_router(users.router, prefix="/api")
app.include_router(interactions.router, prefix="/api")
app.include_router(matches.router, prefix="/api")
app.include_router(feed.router, prefix="/api")


@app.get("/")
async def root():
    return {"status": "swipematch-api-ok"}


@app.get("/api/health/db")
async def db_health():
    return {
        "mongo": "connected" if mongo.is_connected() else "disconnected",
        "db": str(get_settings().mongo_db),
    }
