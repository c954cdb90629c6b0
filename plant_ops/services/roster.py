# plant_ops/services/roster.py
"""
RosterService - the single owner of the in-memory labor roster.

All mutations go through `apply` (the Action Executor) or `mutate_line`
(scenario triggers). Every mutation bumps the version stamp of the lines it
touched so that actions proposed against an older roster can be rejected.
"""

import logging
import threading
from typing import Callable, Dict, List, Tuple

from ..models.labor import LineSnapshot, ProductionLine, ProposedAction
from .event_logger import log_event
from .executor import ExecutionResult, apply_action
from .snapshot import build_snapshots, summarize_allocation

logger = logging.getLogger(__name__)


class UnknownLineError(KeyError):
    pass


class StaleActionError(RuntimeError):
    """An action's basis versions no longer match the roster."""

    def __init__(self, stale_lines: Dict[str, Tuple[int, int]]):
        self.stale_lines = stale_lines
        detail = ", ".join(f"{lid} (proposed v{old}, now v{new})" for lid, (old, new) in stale_lines.items())
        super().__init__(f"Roster changed since the action was proposed: {detail}")


class RosterService:

    def __init__(self, lines: List[ProductionLine]):
        self._lock = threading.RLock()
        self._seed = [line.model_copy(deep=True) for line in lines]
        self._lines: List[ProductionLine] = []
        self._versions: Dict[str, int] = {}
        self._load(self._seed)

    def _load(self, lines: List[ProductionLine]) -> None:
        self._lines = [line.model_copy(deep=True) for line in lines]
        self._versions = {line.id: self._versions.get(line.id, 0) + 1 for line in self._lines}

    def _bump(self, line_ids: List[str]) -> None:
        for line_id in line_ids:
            self._versions[line_id] = self._versions.get(line_id, 0) + 1

    # ---------- reads ----------

    def lines(self) -> List[ProductionLine]:
        """Deep copies; callers cannot mutate the roster through them."""
        with self._lock:
            return [line.model_copy(deep=True) for line in self._lines]

    def line(self, line_id: str) -> ProductionLine:
        with self._lock:
            for line in self._lines:
                if line.id == line_id:
                    return line.model_copy(deep=True)
        raise UnknownLineError(line_id)

    def versions(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._versions)

    def snapshot(self) -> List[LineSnapshot]:
        with self._lock:
            return build_snapshots(self._lines)

    def snapshot_with_versions(self) -> Tuple[List[LineSnapshot], Dict[str, int]]:
        with self._lock:
            return build_snapshots(self._lines), dict(self._versions)

    def summary(self):
        with self._lock:
            return summarize_allocation(self._lines)

    # ---------- writes ----------

    def check_versions(self, action: ProposedAction) -> None:
        stale = {}
        with self._lock:
            for line_id, proposed in action.basis_versions.items():
                current = self._versions.get(line_id)
                if current is not None and current != proposed:
                    stale[line_id] = (proposed, current)
        if stale:
            raise StaleActionError(stale)

    def apply(self, action: ProposedAction, enforce_versions: bool = True) -> ExecutionResult:
        """
        Execute one action against the roster.

        With `enforce_versions`, an action whose basis versions differ from
        the current line versions raises StaleActionError and nothing changes.
        """
        with self._lock:
            if enforce_versions:
                self.check_versions(action)

            result = apply_action(action, self._lines)
            self._bump(result.touched_lines)

        if result.applied:
            log_event(
                f"LABOR_{action.action.value}",
                f"{action.title}: {result.message}",
                worker_ids=result.matched_worker_ids,
            )
        else:
            log_event("LABOR_STALE_ACTION", f"{action.title}: {result.message or 'no workers matched'}",
                      unmatched=result.unmatched)
        return result

    def mutate_line(self, line_id: str, mutator: Callable[[ProductionLine], None]) -> None:
        """Scenario-trigger path: run `mutator` on one line in place."""
        with self._lock:
            for line in self._lines:
                if line.id == line_id:
                    mutator(line)
                    self._bump([line_id])
                    return
        raise UnknownLineError(line_id)

    def mutate_all(self, mutator: Callable[[ProductionLine], None]) -> None:
        with self._lock:
            for line in self._lines:
                mutator(line)
            self._bump([line.id for line in self._lines])

    def reset(self) -> None:
        """Back to the seeded roster. Versions keep increasing."""
        with self._lock:
            self._load(self._seed)
        logger.info("Roster reset to seed (%d lines)", len(self._seed))
