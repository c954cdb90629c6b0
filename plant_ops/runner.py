# plant_ops/runner.py
"""
Background refresh loop: rebuilds the cached roster snapshot and advances
machine service stages on a fixed interval.
"""

import logging
import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from .models.labor import LineSnapshot
from .services.fleet import FleetService
from .services.roster import RosterService

logger = logging.getLogger(__name__)


class RefreshRunner:
    """Cooperative, cancellable refresh thread (one per app)."""

    def __init__(self, roster: RosterService, fleet: FleetService, interval_seconds: int = 30):
        self.roster = roster
        self.fleet = fleet
        self.interval_seconds = interval_seconds
        self.cycle_count = 0
        self.last_cycle_at: Optional[datetime] = None
        self.last_snapshot: List[LineSnapshot] = []
        self._stop = threading.Event()
        self._cycle_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_cycle(self) -> Dict[str, Any]:
        """One refresh: snapshot + one service-stage step."""
        # The timer thread and on-demand API calls may overlap
        with self._cycle_lock:
            self.last_snapshot = self.roster.snapshot()
            stage_changes = self.fleet.advance_service_stages()
            self.cycle_count += 1
            self.last_cycle_at = datetime.utcnow()
            return {
                "cycle": self.cycle_count,
                "timestamp": self.last_cycle_at.isoformat(),
                "short_lines": [s.line_id for s in self.last_snapshot if s.deficit > 0],
                "stage_changes": stage_changes,
            }

    def _loop(self) -> None:
        logger.info("Refresh runner started with %ss interval", self.interval_seconds)
        while not self._stop.wait(self.interval_seconds):
            try:
                self.run_cycle()
            except Exception:
                logger.exception("Refresh cycle failed")
        logger.info("Refresh runner stopped after %d cycles", self.cycle_count)

    def start(self) -> Dict[str, Any]:
        if self.is_running:
            return {"status": "already_running"}
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, daemon=True, name="plant-refresh")
        self._thread.start()
        return {"status": "started", "interval_seconds": self.interval_seconds}

    def stop(self, timeout: float = 5.0) -> Dict[str, Any]:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        return {"status": "stopped", "cycles_completed": self.cycle_count}

    def get_status(self) -> Dict[str, Any]:
        with self._cycle_lock:
            return {
                "is_running": self.is_running,
                "cycle_count": self.cycle_count,
                "last_cycle_at": self.last_cycle_at.isoformat() if self.last_cycle_at else None,
            }
