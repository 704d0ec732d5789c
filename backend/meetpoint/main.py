import logging
import os
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from meetpoint.config import settings

# ─── Logging setup (file + console) ───
_LOG_DIR = Path(__file__).resolve().parent.parent / "logs"
_LOG_DIR.mkdir(exist_ok=True)

_log_level = getattr(logging, os.environ.get("LOG_LEVEL", "INFO").upper(), logging.INFO)

logging.basicConfig(
    level=_log_level,
    format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    handlers=[
        logging.StreamHandler(),
        RotatingFileHandler(
            _LOG_DIR / "meetpoint.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
            encoding="utf-8",
        ),
    ],
)

# Quiet noisy libraries
logging.getLogger("httpcore").setLevel(logging.WARNING)
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

from meetpoint.dependencies import close_gateways
from meetpoint.routers import hubs, stations, venues
from meetpoint.services.cache_service import cache_service

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Make sure the reference table exists; seeding is a separate script
    try:
        from meetpoint.database import Base, engine
        from meetpoint.models import Station  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        logger.warning(f"Station table check skipped: {e}")

    yield

    # Shutdown
    await close_gateways()
    await cache_service.close()
    logger.info("HTTP clients closed")


app = FastAPI(
    title="Meetpoint",
    description="Fair meeting-point selection for groups",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(hubs.router, prefix="/api/hubs", tags=["hubs"])
app.include_router(venues.router, prefix="/api/venues", tags=["venues"])
app.include_router(stations.router, prefix="/api/stations", tags=["stations"])


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "service": "meetpoint"}
