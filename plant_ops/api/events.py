# plant_ops/api/events.py

from typing import Optional

from fastapi import APIRouter

from ..services.event_logger import get_events

router = APIRouter(prefix="/api/events", tags=["events"])


@router.get("")
def list_events(limit: int = 50, event_type: Optional[str] = None):
    """Recent decision/audit events, newest first."""
    return {"events": get_events(limit, event_type)}
