"""FastAPI application entrypoint."""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import api_router
from app.core.config import DEV_JWT_SECRET, get_settings
from app.core.database import async_session_factory, init_db
from app.core.errors import register_exception_handlers
from app.services.seed import seed_demo_data

_settings = get_settings()

logging.basicConfig(
    level=_settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

_start_time = time.monotonic()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Startup: ensure tables exist (use Alembic in production)
    await init_db()
    if _settings.jwt_secret_key == DEV_JWT_SECRET:
        logger.warning("JWT_SECRET_KEY is not set; using the insecure development secret")
    if _settings.seed_demo_data:
        async with async_session_factory() as session:
            await seed_demo_data(session)
    yield


app = FastAPI(
    title="Tenant Notes",
    version="0.1.0",
    description="Multi-tenant notes API with per-plan quotas",
    lifespan=lifespan,
)

register_exception_handlers(app)

# ── CORS ─────────────────────────────────────────────────────
_origins = [o.strip() for o in _settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    # Browsers reject credentialed requests against a wildcard origin.
    allow_credentials="*" not in _origins,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

# ── API routes ───────────────────────────────────────────────
app.include_router(api_router)


@app.get("/health", tags=["system"])
async def health_check() -> dict:
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - _start_time, 3),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host=_settings.host, port=_settings.port, log_level="info")
