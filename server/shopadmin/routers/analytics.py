from fastapi import APIRouter, Depends, Query, status

from ..analytics import TrackEventRequest
from ..context import AppContext, get_context


router = APIRouter(prefix="/api/analytics", tags=["analytics"])


@router.post("/track", status_code=status.HTTP_201_CREATED)
def track_event(event: TrackEventRequest, ctx: AppContext = Depends(get_context)):
    record = ctx.analytics.track(event)
    return {"success": True, "id": record["id"]}


@router.get("")
def get_analytics(
    days: int = Query(30, ge=1, le=365),
    ctx: AppContext = Depends(get_context),
):
    """Aggregated storefront activity over the last `days` days."""
    return ctx.analytics.summary(days=days)


@router.get("/realtime")
def get_realtime(
    minutes: int = Query(5, ge=1, le=60),
    ctx: AppContext = Depends(get_context),
):
    return ctx.analytics.realtime(minutes=minutes)
