from datetime import datetime, timezone
import time

import psutil
from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy import func, text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.api.deps import get_db_session, require_admin
from app.models.application import Application
from app.models.assignment import Assignment
from app.models.user import User

router = APIRouter(tags=["System & Metrics"])

# Track when the module is loaded for uptime calculation
START_TIME = time.time()


async def _ping(session: AsyncSession) -> tuple[str, float]:
    started = time.time()
    try:
        await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check: database unreachable: {e}")
        return "disconnected", 0.0
    return "connected", round((time.time() - started) * 1000, 2)


# ===================================================================
# 1. LIVENESS
# ===================================================================
@router.get("/health")
async def health(session: AsyncSession = Depends(get_db_session)):
    db_status, _ = await _ping(session)
    return {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ===================================================================
# 2. SYSTEM METRICS
# ===================================================================
@router.get("/api/metrics")
async def metrics(session: AsyncSession = Depends(get_db_session)):
    db_status, db_latency = await _ping(session)

    try:
        disk_usage = psutil.disk_usage("/").percent
    except OSError:
        disk_usage = 0

    return {
        "status": "Online",
        "uptime": int(time.time() - START_TIME),
        "cpu": psutil.cpu_percent(interval=None),
        "ram": psutil.virtual_memory().percent,
        "disk": disk_usage,
        "database": db_status,
        "db_latency": db_latency,
    }


# ===================================================================
# 3. ADMIN DASHBOARD STATS (Admin Only)
# ===================================================================
@router.get("/api/metrics/dashboard-stats")
async def dashboard_stats(
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    app_rows = await session.execute(
        select(Application.status, func.count(Application.id)).group_by(Application.status)
    )
    applications = {status.value: count for status, count in app_rows.all()}

    user_rows = await session.execute(
        select(User.role, func.count(User.id)).group_by(User.role)
    )
    users = {role.value: count for role, count in user_rows.all()}

    assignment_total = (await session.execute(select(func.count(Assignment.id)))).scalar_one()

    return {
        "applications": {"total": sum(applications.values()), **applications},
        "users": {"total": sum(users.values()), **users},
        "assignments": {"total": assignment_total},
    }
