import logging
import subprocess
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from emenu.api.attendance import router as attendance_router
from emenu.api.auth import router as auth_router
from emenu.api.policies import router as policies_router
from emenu.api.schedules import router as schedules_router
from emenu.api.users import router as users_router
from emenu.core.config import settings
from emenu.core.exceptions import AttendanceError, attendance_error_handler

logger = logging.getLogger(__name__)

_BACKEND_DIR = Path(__file__).resolve().parent.parent


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run Alembic migrations on startup."""
    if settings.RUN_MIGRATIONS_ON_STARTUP:
        logger.info("Running Alembic migrations...")
        try:
            result = subprocess.run(
                ["alembic", "upgrade", "head"],
                capture_output=True,
                text=True,
                cwd=_BACKEND_DIR,
            )
            if result.returncode != 0:
                logger.error("Alembic migration failed:\n%s", result.stderr)
            else:
                logger.info("Migrations applied successfully:\n%s", result.stdout)
        except OSError as exc:
            logger.exception("Failed to run migrations: %s", exc)

    yield

    logger.info("Shutting down e-menu attendance backend.")


app = FastAPI(
    title="E-Menu Attendance API",
    description="Employee check-in / check-out with punctuality, half-day and geofence rules.",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AttendanceError, attendance_error_handler)

app.include_router(auth_router, prefix="/api/auth", tags=["Auth"])
app.include_router(users_router, prefix="/api/users", tags=["Users"])
app.include_router(policies_router, prefix="/api/policies", tags=["Attendance policies"])
app.include_router(schedules_router, prefix="/api/schedules", tags=["Work schedules"])
app.include_router(attendance_router, prefix="/api/attendance", tags=["Attendance"])


@app.get("/health", tags=["System"])
async def health_check() -> dict:
    return {"status": "ok"}
