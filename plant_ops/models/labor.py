"""
Labor roster models - workers, production lines and the decision contract.
"""

from enum import Enum
from typing import Dict, List, Optional

from sqlmodel import SQLModel, Field


class WorkerStatus(str, Enum):
    """Where a worker's time is going this shift."""
    PRESENT = "Present"
    ABSENT = "Absent"
    ON_LEAVE = "On Leave"
    EMERGENCY = "Emergency"
    MAINTENANCE = "Maintenance"
    TPM = "TPM"
    FIVE_S = "5S"
    TRAINING = "Training"
    AUDIT_PREP = "Audit Prep"
    SUPPORT = "Support"


# Statuses that count as absenteeism in the allocation summary
ABSENT_STATUSES = (WorkerStatus.ABSENT, WorkerStatus.ON_LEAVE, WorkerStatus.EMERGENCY)


class WorkerType(str, Enum):
    MAIN = "Main"
    BUFFER = "Buffer"


class ShiftCode(str, Enum):
    A = "A"
    B = "B"
    C = "C"


class Worker(SQLModel):
    id: str
    name: str
    skills: List[str] = Field(default_factory=list)
    status: WorkerStatus = WorkerStatus.PRESENT
    worker_type: WorkerType = WorkerType.MAIN
    assigned_line: str
    shift: ShiftCode = ShiftCode.A

    @property
    def is_present(self) -> bool:
        return self.status == WorkerStatus.PRESENT


class ProductionLine(SQLModel):
    id: str
    name: str
    takt_time_seconds: int = 90
    required_manpower: int = Field(gt=0)
    current_workers: List[Worker] = Field(default_factory=list)
    buffers: List[Worker] = Field(default_factory=list)

    def all_workers(self) -> List[Worker]:
        """Main crew first, then buffers - the order snapshots are built in."""
        return [*self.current_workers, *self.buffers]

    def present_workers(self) -> List[Worker]:
        return [w for w in self.all_workers() if w.is_present]


class LineSnapshot(SQLModel):
    """Minimal, derived decision input for one line. Never stored."""
    line_id: str
    name: str
    required: int
    present: int
    surplus: int
    deficit: int
    present_worker_names: List[str] = Field(default_factory=list)
    present_worker_ids: List[str] = Field(default_factory=list)


class ActionType(str, Enum):
    MOVE = "MOVE"
    ASSIGN_TASK = "ASSIGN_TASK"


class ProposedAction(SQLModel):
    """
    One reassignment proposal produced by a planner.

    MOVE actions carry `to_line`; ASSIGN_TASK actions carry `task_category`.
    `worker_ids` is filled whenever the planner could resolve names to ids,
    and the executor prefers it over name matching.
    """
    title: str
    description: str = ""
    action: ActionType
    worker_names: List[str] = Field(default_factory=list)
    worker_ids: List[str] = Field(default_factory=list)
    from_line: Optional[str] = None
    to_line: Optional[str] = None
    task_category: Optional[str] = None

    # Line versions the proposal was computed against (optimistic locking)
    basis_versions: Dict[str, int] = Field(default_factory=dict)

    def touched_lines(self) -> List[str]:
        return [line_id for line_id in (self.from_line, self.to_line) if line_id]


class SuggestionSet(SQLModel):
    event: str = ""
    source: str = "local"       # "delegated" or "local"
    generation: int = 0
    suggestions: List[ProposedAction] = Field(default_factory=list)
