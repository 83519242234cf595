# app/main.py

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
import sys

# Import your core modules
from app.core.database import test_connection, init_db, AsyncSessionLocal
from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.rate_limiter import limiter
from app.services.auth_service import get_user_by_email
from app.services.user_service import create_user
from app.models.user import UserRole

# Routers
from app.api.endpoints import (
    auth as auth_router,
    users as users_router,
    applications as applications_router,
    assignments as assignments_router,
    metrics as metrics_router,
)

# ------------------------------------------------------------
# LOGURU CONFIGURATION
# ------------------------------------------------------------
logger.remove()
logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
           "<level>{level}</level> | "
           "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
           "<level>{message}</level>",
    colorize=True,
    backtrace=True,
    diagnose=settings.ENV != "prod",
)

# ------------------------------------------------------------
# FASTAPI APP INIT
# ------------------------------------------------------------
app = FastAPI(
    title="ZgenAI Recruit Backend",
    version="2.3.0",
    description="Application intake, approval, user management and "
                "student/trainer/recruiter assignments.",
)

# ------------------------------------------------------------
# ERRORS -> {"error": "..."}
# ------------------------------------------------------------
register_exception_handlers(app)

# ------------------------------------------------------------
# RATE LIMITING (public intake form)
# ------------------------------------------------------------
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# ------------------------------------------------------------
# CORS CONFIGURATION
# ------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type"],
)

# ------------------------------------------------------------
# REGISTER ROUTERS
# ------------------------------------------------------------
app.include_router(metrics_router.router)
app.include_router(auth_router.router)
app.include_router(users_router.router)
app.include_router(applications_router.router)
app.include_router(applications_router.legacy_router)
app.include_router(assignments_router.router)


# ------------------------------------------------------------
# APPLICATION STARTUP EVENTS
# ------------------------------------------------------------
@app.on_event("startup")
async def on_startup():
    logger.info("Starting ZgenAI Recruit Backend...")

    # 1) Database connection test
    try:
        await test_connection()
        logger.success("Database connection established.")
    except Exception:
        logger.exception("Startup aborted: Database connection failed.")
        return

    # 2) Initialize database tables
    await init_db()
    logger.success("Database tables ready.")

    # 3) Seed bootstrap admin
    if not settings.ADMIN_EMAIL or not settings.ADMIN_PASSWORD:
        logger.warning("ADMIN_EMAIL / ADMIN_PASSWORD not set; skipping admin seeding.")
    else:
        async with AsyncSessionLocal() as session:
            if await get_user_by_email(session, settings.ADMIN_EMAIL):
                logger.info("Admin already exists. Skipping.")
            else:
                logger.info(f"Seeding admin: {settings.ADMIN_EMAIL}")
                await create_user(
                    session,
                    full_name=settings.ADMIN_NAME or "System Admin",
                    email=settings.ADMIN_EMAIL,
                    role=UserRole.Admin,
                    password=settings.ADMIN_PASSWORD,
                )
                logger.success("Admin created successfully.")

    logger.success("Backend startup completed successfully.")


# ------------------------------------------------------------
# ROOT
# ------------------------------------------------------------
@app.get("/", tags=["System"])
async def root():
    return {
        "status": "ok",
        "service": "ZgenAI Recruit Backend",
        "version": app.version,
        "health_url": "/health",
    }
