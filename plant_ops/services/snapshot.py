# plant_ops/services/snapshot.py
"""
Snapshot Builder - projects the roster into the planner's decision input.
"""

from typing import Any, Dict, List

from ..models.labor import ABSENT_STATUSES, LineSnapshot, ProductionLine, WorkerStatus


def build_snapshot(line: ProductionLine) -> LineSnapshot:
    present = line.present_workers()
    count = len(present)
    return LineSnapshot(
        line_id=line.id,
        name=line.name,
        required=line.required_manpower,
        present=count,
        surplus=max(0, count - line.required_manpower),
        deficit=max(0, line.required_manpower - count),
        present_worker_names=[w.name for w in present],
        present_worker_ids=[w.id for w in present],
    )


def build_snapshots(lines: List[ProductionLine]) -> List[LineSnapshot]:
    """
    One LineSnapshot per line, in line declaration order.

    Only Present workers (main crew then buffers) are counted; absent or
    task-assigned workers never show up as available manpower.
    """
    return [build_snapshot(line) for line in lines]


_TASK_KEYS = {
    WorkerStatus.MAINTENANCE: "maintenance",
    WorkerStatus.TPM: "tpm",
    WorkerStatus.FIVE_S: "fives",
    WorkerStatus.TRAINING: "training",
    WorkerStatus.AUDIT_PREP: "auditprep",
    WorkerStatus.SUPPORT: "support",
}


def summarize_allocation(lines: List[ProductionLine]) -> Dict[str, Any]:
    """
    Plant-wide labor allocation: direct operations, absenteeism and
    secondary-task buckets, plus per-line shortage and surplus flags.
    """
    allocation = {key: 0 for key in ("present", "absent", *_TASK_KEYS.values())}

    for line in lines:
        for worker in line.all_workers():
            if worker.status == WorkerStatus.PRESENT:
                allocation["present"] += 1
            elif worker.status in ABSENT_STATUSES:
                allocation["absent"] += 1
            else:
                allocation[_TASK_KEYS[worker.status]] += 1

    line_stats = []
    for snap in build_snapshots(lines):
        line_stats.append({
            "line_id": snap.line_id,
            "name": snap.name,
            "required": snap.required,
            "actual_present": snap.present,
            "is_short": snap.present < snap.required,
            "surplus": snap.surplus,
        })

    return {
        "allocation": allocation,
        "lines": line_stats,
        "is_any_line_short": any(l["is_short"] for l in line_stats),
        "total_surplus": sum(l["surplus"] for l in line_stats),
    }
