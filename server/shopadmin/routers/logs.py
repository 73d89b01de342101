"""System log endpoints and the admin-facing health report."""

import logging
import time
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, Depends, Query, Response, status

from ..context import AppContext, get_context
from ..logbook import LogEntryRequest, LogLevel


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/logs", tags=["logs"])

STARTUP_TIME = time.time()


@router.get("")
def get_logs(
    level: Optional[LogLevel] = None,
    category: Optional[str] = None,
    search: Optional[str] = None,
    limit: int = Query(100, ge=1, le=1000),
    ctx: AppContext = Depends(get_context),
):
    entries = ctx.logs.query(level=level, category=category, search=search, limit=limit)
    return {"logs": entries, "count": len(entries), "counts": ctx.logs.counts()}


@router.post("", status_code=status.HTTP_201_CREATED)
def add_log(entry: LogEntryRequest, ctx: AppContext = Depends(get_context)):
    return ctx.logs.add(entry.level, entry.category, entry.message, entry.details)


@router.delete("")
def clear_logs(ctx: AppContext = Depends(get_context)):
    removed = ctx.logs.clear()
    logger.info(f"[logs] Cleared {removed} log entries")
    return {"success": True, "removed": removed}


@router.get("/export")
def export_logs(ctx: AppContext = Depends(get_context)):
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return Response(
        content=ctx.logs.export(),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="system-logs-{stamp}.csv"'},
    )


@router.get("/health")
async def system_health(ctx: AppContext = Depends(get_context)):
    """
    Health report for the admin dashboard.

    Unlike /health this touches the database, so it is not meant for load
    balancer probes.
    """
    database = "not configured"
    if ctx.pool is not None:
        try:
            async with ctx.pool.acquire() as conn:
                await conn.fetchval("SELECT 1")
            database = "connected"
        except Exception as e:
            logger.error(f"[logs] Database health check failed: {e}")
            database = "unreachable"

    counts = ctx.logs.counts()
    last_error = ctx.logs.last_error()
    degraded = database == "unreachable" or (ctx.credentials.using_fallback and ctx.pool is not None)

    return {
        "status": "degraded" if degraded else "healthy",
        "uptimeSeconds": int(time.time() - STARTUP_TIME),
        "storage": ctx.storage_mode,
        "database": database,
        "credentials": {
            "usingFallback": ctx.credentials.using_fallback,
            "hashingAvailable": ctx.credentials.hashing_available,
            "fallbackTransitions": len(ctx.credentials.transitions),
        },
        "logs": counts,
        "lastError": last_error["timestamp"] if last_error else None,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
