# plant_ops/planners/contract.py
"""
Allocation contract checks shared by every planner strategy.

The delegated planner's output is replayed against the snapshot it was
asked about; any violation is reported as a SchemaViolation so the advisor
falls back to the local solver.
"""

from typing import Dict, List, Optional, Tuple

from ..models.labor import ActionType, LineSnapshot, ProposedAction
from ..services.executor import normalize_name
from .errors import SchemaViolation


def _resolve(
    action: ProposedAction,
    by_id: Dict[str, Tuple[str, str]],
    by_name: Dict[str, List[Tuple[str, str]]],
    used: set,
) -> Tuple[List[Tuple[str, str]], List[str]]:
    """Return ([(worker_id, line_id)], [unresolved references])."""
    resolved, missing = [], []
    if action.worker_ids:
        for wid in action.worker_ids:
            if wid in by_id and wid not in used:
                resolved.append((wid, by_id[wid][1]))
                used.add(wid)
            else:
                missing.append(wid)
        return resolved, missing

    for name in action.worker_names:
        candidates = [c for c in by_name.get(normalize_name(name), []) if c[0] not in used]
        if candidates:
            resolved.append(candidates[0])
            used.add(candidates[0][0])
        else:
            missing.append(name)
    return resolved, missing


def check_plan(
    snapshots: List[LineSnapshot],
    actions: List[ProposedAction],
    max_group: int = 2,
) -> List[str]:
    """Replay `actions` against `snapshots` and list every contract breach."""
    problems: List[str] = []
    required = {s.line_id: s.required for s in snapshots}
    present = {s.line_id: s.present for s in snapshots}

    by_id: Dict[str, Tuple[str, str]] = {}
    by_name: Dict[str, List[Tuple[str, str]]] = {}
    for snap in snapshots:
        for wid, name in zip(snap.present_worker_ids, snap.present_worker_names):
            by_id[wid] = (name, snap.line_id)
            by_name.setdefault(normalize_name(name), []).append((wid, snap.line_id))

    used: set = set()
    seen_task = False

    for idx, action in enumerate(actions):
        workers, missing = _resolve(action, by_id, by_name, used)
        if missing:
            problems.append(f"#{idx}: unknown or reused worker(s) {missing}")
        if not workers and not missing:
            problems.append(f"#{idx}: no workers named")

        if action.action == ActionType.MOVE:
            if seen_task:
                problems.append(f"#{idx}: MOVE after ASSIGN_TASK")
            if action.to_line not in required:
                problems.append(f"#{idx}: unknown destination line {action.to_line!r}")
                continue
            for wid, src in workers:
                if action.from_line and action.from_line != src:
                    problems.append(f"#{idx}: {wid} is on {src}, not {action.from_line}")
                if present[src] - 1 < required[src]:
                    problems.append(f"#{idx}: moving {wid} would leave {src} below required")
                    continue
                present[src] -= 1
                present[action.to_line] += 1
        else:
            seen_task = True
            if len(action.worker_names or action.worker_ids) > max_group:
                problems.append(f"#{idx}: task group larger than {max_group}")
            short = [lid for lid in required if present[lid] < required[lid]]
            if short:
                problems.append(f"#{idx}: ASSIGN_TASK while {short} still short")
            for wid, src in workers:
                if present[src] - 1 < required[src]:
                    problems.append(f"#{idx}: assigning {wid} would leave {src} below required")
                    continue
                present[src] -= 1

    short = [lid for lid in required if present[lid] < required[lid]]
    spare = [lid for lid in required if present[lid] > required[lid]]
    if short and spare:
        problems.append(f"deficit on {short} left open while {spare} has surplus")

    return problems


def validate_plan(
    snapshots: List[LineSnapshot],
    actions: List[ProposedAction],
    max_group: int = 2,
) -> None:
    problems = check_plan(snapshots, actions, max_group)
    if problems:
        raise SchemaViolation(f"Plan breaks allocation contract ({len(problems)} problem(s))", problems)


def resolve_worker_ids(snapshots: List[LineSnapshot], names: List[str], used: Optional[set] = None) -> List[str]:
    """Map planner-supplied names to snapshot worker ids (first unused match)."""
    used = used if used is not None else set()
    ids = []
    for name in names:
        key = normalize_name(name)
        for snap in snapshots:
            match = next(
                (wid for wid, n in zip(snap.present_worker_ids, snap.present_worker_names)
                 if normalize_name(n) == key and wid not in used),
                None,
            )
            if match:
                ids.append(match)
                used.add(match)
                break
    return ids
