# plant_ops/planners/local_solver.py
"""
Local fallback solver - deterministic Continuity / Productivity allocation.
"""

from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, List, Optional, Sequence

from ..models.labor import ActionType, LineSnapshot, ProposedAction
from .base_planner import LaborPlanner
from .config import get_config


@dataclass(frozen=True)
class _Donor:
    worker_id: str
    name: str
    line_id: str
    line_name: str


def build_donor_queue(snapshots: List[LineSnapshot]) -> Deque[_Donor]:
    """
    Surplus workers available to move, in line order.

    Each line with surplus gives up the *last* `surplus` names of its present
    list (main crew is listed before buffers, so buffers go first).
    """
    donors: Deque[_Donor] = deque()
    for snap in snapshots:
        if snap.surplus <= 0:
            continue
        names = snap.present_worker_names[-snap.surplus:]
        ids = snap.present_worker_ids[-snap.surplus:]
        for wid, name in zip(ids, names):
            donors.append(_Donor(wid, name, snap.line_id, snap.name))
    return donors


class LocalFallbackSolver(LaborPlanner):
    """
    Heuristic solver used whenever the delegated planner is unavailable.

    1. Continuity: fill every deficit line, in input order, one MOVE per
       donor worker, until the line is at required or donors run out.
    2. Productivity: whatever donors remain are grouped (at most
       `max_group` per action) into ASSIGN_TASK actions, cycling the
       task catalog.
    """

    name = "local"

    def __init__(self, task_categories: Optional[Sequence[str]] = None, max_group: Optional[int] = None):
        config = get_config()
        self.task_categories = tuple(task_categories or config.TASK_CATEGORIES)
        self.max_group = max_group or config.MAX_TASK_GROUP

    def propose(
        self,
        snapshots: List[LineSnapshot],
        event: str = "",
        should_abort: Optional[Callable[[], bool]] = None,
    ) -> List[ProposedAction]:
        suggestions: List[ProposedAction] = []
        donors = build_donor_queue(snapshots)

        # Priority 1: continuity
        for line in (s for s in snapshots if s.deficit > 0):
            missing = line.deficit
            while missing > 0 and donors:
                donor = donors.popleft()
                suggestions.append(ProposedAction(
                    title=f"Continuity Principle: Gap Coverage for {line.name}",
                    description=(
                        f"CRITICAL: Line {line.name} is below required manpower ({line.required}). "
                        f"Moving {donor.name} from {donor.line_name} to ensure continuity."
                    ),
                    action=ActionType.MOVE,
                    worker_names=[donor.name],
                    worker_ids=[donor.worker_id],
                    from_line=donor.line_id,
                    to_line=line.line_id,
                ))
                missing -= 1

        # Priority 2: productivity
        task_index = 0
        while donors:
            group = [donors.popleft() for _ in range(min(self.max_group, len(donors)))]
            task = self.task_categories[task_index % len(self.task_categories)]
            names = [d.name for d in group]
            suggestions.append(ProposedAction(
                title=f"Productivity Principle: {task}",
                description=(
                    f"OPTIMIZATION: All lines stabilized. Re-assigning surplus manpower "
                    f"({', '.join(names)}) to {task} for value addition."
                ),
                action=ActionType.ASSIGN_TASK,
                worker_names=names,
                worker_ids=[d.worker_id for d in group],
                from_line=group[0].line_id,
                task_category=task,
            ))
            task_index += 1

        return suggestions
