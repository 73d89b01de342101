"""
Storefront analytics events.

Events are kept in a bounded in-process buffer (oldest dropped first);
aggregates are computed on read.
"""

from __future__ import annotations

import threading
import uuid
from collections import Counter, deque
from datetime import datetime, timedelta, timezone
from typing import Any, Deque, Dict, List, Optional

from pydantic import BaseModel, Field


class TrackEventRequest(BaseModel):
    """Event sent by the storefront."""
    event: str = Field(..., min_length=1, max_length=64, description="Event type, e.g. page_view, product_view, add_to_cart, purchase")
    page: Optional[str] = Field(None, max_length=512, description="Path of the page the event happened on")
    productId: Optional[str] = Field(None, description="Product involved, if any")
    sessionId: Optional[str] = Field(None, max_length=128, description="Anonymous storefront session")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Free-form event payload")


def _parse(timestamp: str) -> datetime:
    return datetime.fromisoformat(timestamp)


class AnalyticsTracker:
    """Bounded event buffer with summary and realtime views."""

    def __init__(self, max_events: int = 10000):
        self._events: Deque[Dict[str, Any]] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def track(self, event: TrackEventRequest, now: Optional[datetime] = None) -> Dict[str, Any]:
        record = {
            "id": str(uuid.uuid4()),
            "timestamp": (now or datetime.now(timezone.utc)).isoformat(),
            **event.model_dump(),
        }
        with self._lock:
            self._events.append(record)
        return record

    def _since(self, cutoff: datetime) -> List[Dict[str, Any]]:
        with self._lock:
            return [e for e in self._events if _parse(e["timestamp"]) >= cutoff]

    def summary(self, days: int = 30, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        events = self._since(now - timedelta(days=days))

        by_type = Counter(e["event"] for e in events)
        product_views = Counter(e["productId"] for e in events if e["event"] == "product_view" and e.get("productId"))
        page_views = Counter(e["page"] for e in events if e["event"] == "page_view" and e.get("page"))
        per_day = Counter(e["timestamp"][:10] for e in events)

        return {
            "periodDays": days,
            "totalEvents": len(events),
            "pageViews": by_type.get("page_view", 0),
            "productViews": by_type.get("product_view", 0),
            "addToCart": by_type.get("add_to_cart", 0),
            "purchases": by_type.get("purchase", 0),
            "uniqueSessions": len({e["sessionId"] for e in events if e.get("sessionId")}),
            "eventsByType": dict(by_type),
            "topProducts": [{"productId": pid, "views": n} for pid, n in product_views.most_common(10)],
            "topPages": [{"page": page, "views": n} for page, n in page_views.most_common(10)],
            "eventsByDay": [{"date": day, "count": per_day[day]} for day in sorted(per_day)],
        }

    def realtime(self, minutes: int = 5, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.now(timezone.utc)
        events = self._since(now - timedelta(minutes=minutes))
        return {
            "windowMinutes": minutes,
            "activeSessions": len({e["sessionId"] for e in events if e.get("sessionId")}),
            "eventsInWindow": len(events),
            "recentEvents": list(reversed(events))[:20],
            "timestamp": now.isoformat(),
        }
