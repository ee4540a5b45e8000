import logging
from contextlib import asynccontextmanager

import sentry_sdk
from fastapi import FastAPI
from sqlalchemy import text

from pomodoro_api.config import settings
from pomodoro_api.database import engine

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialize Sentry
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        traces_sample_rate=0.2 if settings.ENVIRONMENT == "production" else 1.0,
        send_default_pii=False,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: verify DB connection
    async with engine.begin() as conn:
        await conn.execute(text("SELECT 1"))

    yield

    # Shutdown
    await engine.dispose()


app = FastAPI(
    title="Pomodoro API",
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

from pomodoro_api.middleware.error_handler import register_error_handlers  # noqa: E402

register_error_handlers(app)

# Routers
from pomodoro_api.routers.auth import router as auth_router  # noqa: E402
from pomodoro_api.routers.sessions import router as sessions_router  # noqa: E402
from pomodoro_api.routers.stats import router as stats_router  # noqa: E402

app.include_router(auth_router)
app.include_router(sessions_router)
app.include_router(stats_router)


@app.get("/health")
async def health():
    return {"status": "ok"}
