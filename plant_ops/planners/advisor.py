# plant_ops/planners/advisor.py
"""
Labor advisor - picks a planner strategy, owns the pending suggestion list.
"""

import logging
import threading
from typing import List, Optional

from ..models.labor import ProposedAction, SuggestionSet
from ..services.event_logger import log_event
from ..services.executor import ExecutionResult
from ..services.roster import RosterService
from .base_planner import LaborPlanner
from .config import PlannerConfig, get_config
from .errors import PlannerError, SolveSuperseded
from .local_solver import LocalFallbackSolver

logger = logging.getLogger(__name__)


class SuggestionNotFoundError(IndexError):
    pass


class LaborAdvisor:
    """
    Front door of the decision engine.

    - Solves against a consistent roster snapshot, delegated planner first,
      local solver on any PlannerError.
    - Guards overlapping solves with a generation counter: a solve that
      finishes after a newer one started is discarded (SolveSuperseded).
    - Executes pending suggestions one at a time and removes them.
    """

    def __init__(
        self,
        roster: RosterService,
        delegated: Optional[LaborPlanner] = None,
        fallback: Optional[LaborPlanner] = None,
        config: Optional[PlannerConfig] = None,
    ):
        self.roster = roster
        self.config = config or get_config()
        self.delegated = delegated
        self.fallback = fallback or LocalFallbackSolver(self.config.TASK_CATEGORIES, self.config.MAX_TASK_GROUP)

        self._lock = threading.RLock()
        self._generation = 0
        self._pending: List[ProposedAction] = []
        self.last_event: str = ""
        self.last_source: Optional[str] = None

    @property
    def generation(self) -> int:
        return self._generation

    def _next_generation(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def request_suggestions(self, event: str) -> SuggestionSet:
        """
        Solve the current roster for `event`.

        Raises:
            SolveSuperseded: a newer request started before this one finished
        """
        generation = self._next_generation()
        snapshots, versions = self.roster.snapshot_with_versions()
        log_event("LABOR_SOLVE_REQUESTED", event or "(no event text)", generation=generation)

        suggestions = None
        source = self.fallback.name
        if self.delegated is not None and self.delegated.is_available():
            try:
                suggestions = self.delegated.propose(
                    snapshots, event, should_abort=lambda: self._generation != generation,
                )
                source = self.delegated.name
            except SolveSuperseded:
                raise
            except PlannerError as e:
                logger.warning("Delegated planner failed (%s: %s). Triggering local solver.", type(e).__name__, e)
                log_event("PLANNER_FALLBACK", f"{type(e).__name__}: {e}", generation=generation)

        if suggestions is None:
            suggestions = self.fallback.propose(snapshots, event)

        worker_lines = {
            wid: snap.line_id for snap in snapshots for wid in snap.present_worker_ids
        }
        for action in suggestions:
            stamped = set(action.touched_lines())
            stamped.update(worker_lines[wid] for wid in action.worker_ids if wid in worker_lines)
            action.basis_versions = {lid: versions[lid] for lid in sorted(stamped) if lid in versions}

        with self._lock:
            if generation != self._generation:
                raise SolveSuperseded(f"Solve #{generation} superseded by #{self._generation}")
            self._pending = suggestions
            self.last_event = event
            self.last_source = source

        log_event(
            "LABOR_SUGGESTIONS",
            f"{len(suggestions)} suggestion(s) from {source} planner",
            generation=generation,
        )
        return SuggestionSet(event=event, source=source, generation=generation, suggestions=list(suggestions))

    def pending(self) -> List[ProposedAction]:
        with self._lock:
            return [a.model_copy(deep=True) for a in self._pending]

    def execute(self, index: int) -> ExecutionResult:
        """
        Apply pending suggestion `index` and drop it from the list.

        The rest of the pending plan was computed together with this action,
        so its basis versions are moved forward for the lines just touched.

        Raises:
            SuggestionNotFoundError: no pending suggestion at `index`
            StaleActionError: the roster changed underneath the suggestion
        """
        with self._lock:
            if not 0 <= index < len(self._pending):
                raise SuggestionNotFoundError(index)

            action = self._pending[index]
            result = self.roster.apply(action, enforce_versions=self.config.OPTIMISTIC_LOCKING)
            del self._pending[index]

            versions = self.roster.versions()
            for remaining in self._pending:
                for line_id in result.touched_lines:
                    if line_id in remaining.basis_versions:
                        remaining.basis_versions[line_id] = versions[line_id]

        return result

    def clear(self) -> None:
        with self._lock:
            self._pending = []
