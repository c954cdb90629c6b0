# plant_ops/services/executor.py
"""
Action Executor - applies one proposed action to the roster.

Never raises on stale or unmatched input: suggestion lists go stale quickly
after re-solves, so unmatched workers are skipped with a warning.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from ..models.labor import ActionType, ProductionLine, ProposedAction, Worker, WorkerStatus

logger = logging.getLogger(__name__)


# Task category (normalized) -> worker status. Anything else becomes Support.
TASK_STATUS_MAP: Dict[str, WorkerStatus] = {
    "tpm": WorkerStatus.TPM,
    "5s": WorkerStatus.FIVE_S,
    "maintenance": WorkerStatus.MAINTENANCE,
    "training": WorkerStatus.TRAINING,
    "on job training": WorkerStatus.TRAINING,
    "audit": WorkerStatus.AUDIT_PREP,
    "audit prep": WorkerStatus.AUDIT_PREP,
    "auditprep": WorkerStatus.AUDIT_PREP,
    "support": WorkerStatus.SUPPORT,
    "logistics": WorkerStatus.SUPPORT,
    "logistics support": WorkerStatus.SUPPORT,
}


def normalize_name(name: str) -> str:
    """Trim, collapse internal whitespace and case-fold."""
    return " ".join((name or "").split()).casefold()


def task_status(category: Optional[str]) -> WorkerStatus:
    return TASK_STATUS_MAP.get(normalize_name(category or ""), WorkerStatus.SUPPORT)


@dataclass
class ExecutionResult:
    action: ActionType
    applied: bool
    matched_worker_ids: List[str] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)
    touched_lines: List[str] = field(default_factory=list)
    message: str = ""

    def to_dict(self) -> Dict:
        return {
            "action": self.action.value,
            "applied": self.applied,
            "matched_worker_ids": self.matched_worker_ids,
            "unmatched": self.unmatched,
            "touched_lines": self.touched_lines,
            "message": self.message,
        }


def _build_matcher(action: ProposedAction) -> Callable[[Worker], bool]:
    if action.worker_ids:
        wanted_ids = set(action.worker_ids)
        return lambda w: w.is_present and w.id in wanted_ids
    wanted_names = {normalize_name(n) for n in action.worker_names}
    return lambda w: w.is_present and normalize_name(w.name) in wanted_names


def _unmatched(action: ProposedAction, matched: List[Worker]) -> List[str]:
    if action.worker_ids:
        found = {w.id for w in matched}
        return [wid for wid in action.worker_ids if wid not in found]
    found = {normalize_name(w.name) for w in matched}
    return [n for n in action.worker_names if normalize_name(n) not in found]


def _apply_move(action: ProposedAction, lines: List[ProductionLine], matches) -> ExecutionResult:
    target = next((l for l in lines if l.id == action.to_line), None)
    if target is None:
        logger.warning("MOVE skipped: destination line %r not found", action.to_line)
        return ExecutionResult(
            action=ActionType.MOVE,
            applied=False,
            unmatched=list(action.worker_ids or action.worker_names),
            message=f"Destination line {action.to_line} not found",
        )

    moved: List[Worker] = []
    touched: List[str] = []
    for line in lines:
        keep_main = [w for w in line.current_workers if not matches(w)]
        keep_buffers = [w for w in line.buffers if not matches(w)]
        leaving = [w for w in line.all_workers() if matches(w)]
        if leaving:
            line.current_workers = keep_main
            line.buffers = keep_buffers
            moved.extend(leaving)
            touched.append(line.id)

    for worker in moved:
        worker.status = WorkerStatus.PRESENT
        worker.assigned_line = target.id
    target.current_workers.extend(moved)
    if moved and target.id not in touched:
        touched.append(target.id)

    return ExecutionResult(
        action=ActionType.MOVE,
        applied=bool(moved),
        matched_worker_ids=[w.id for w in moved],
        unmatched=_unmatched(action, moved),
        touched_lines=touched,
        message=f"Moved {len(moved)} worker(s) to {target.id}",
    )


def _apply_task(action: ProposedAction, lines: List[ProductionLine], matches) -> ExecutionResult:
    status = task_status(action.task_category)
    assigned: List[Worker] = []
    touched: List[str] = []
    for line in lines:
        hits = [w for w in line.all_workers() if matches(w)]
        for worker in hits:
            worker.status = status
        if hits:
            assigned.extend(hits)
            touched.append(line.id)

    return ExecutionResult(
        action=ActionType.ASSIGN_TASK,
        applied=bool(assigned),
        matched_worker_ids=[w.id for w in assigned],
        unmatched=_unmatched(action, assigned),
        touched_lines=touched,
        message=f"Assigned {len(assigned)} worker(s) to {status.value}",
    )


def apply_action(action: ProposedAction, lines: List[ProductionLine]) -> ExecutionResult:
    """
    Apply `action` to `lines` in place.

    MOVE: every matching Present worker is pulled out of whichever line
    holds it and appended to the destination's main crew as Present.
    ASSIGN_TASK: matching Present workers get the task's status and stay
    on their line.
    """
    matches = _build_matcher(action)

    if action.action == ActionType.MOVE:
        result = _apply_move(action, lines, matches)
    else:
        result = _apply_task(action, lines, matches)

    if not result.matched_worker_ids:
        logger.warning(
            "Execute %s: no workers matched current floor state %s",
            action.action.value, action.worker_ids or action.worker_names,
        )
    elif result.unmatched:
        logger.warning("Execute %s: stale references skipped %s", action.action.value, result.unmatched)

    return result
