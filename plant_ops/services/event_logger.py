import logging
import uuid
from collections import deque
from datetime import datetime
from typing import Any, Deque, Dict, List, Optional

logger = logging.getLogger(__name__)

# In-memory log (limited size); decisions are not persisted
MAX_LOG_SIZE = 200
_events: Deque[Dict[str, Any]] = deque(maxlen=MAX_LOG_SIZE)


def log_event(event_type: str, description: str, **metadata: Any) -> Dict[str, Any]:
    entry = {
        "event_id": f"EVT-{uuid.uuid4().hex}",
        "event_type": event_type,
        "description": description,
        "event_date": datetime.utcnow().isoformat(),
        "metadata": metadata or None,
    }
    _events.append(entry)
    logger.info("%s: %s", event_type, description)
    return entry


def get_events(limit: int = 50, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
    """Most recent first."""
    events = [e for e in _events if event_type is None or e["event_type"] == event_type]
    return list(reversed(events))[:limit]


def clear_events() -> None:
    _events.clear()
