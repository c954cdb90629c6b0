"""
Base planner interface shared by the delegated and local strategies.
"""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from ..models.labor import LineSnapshot, ProposedAction


class LaborPlanner(ABC):
    """
    Turns a roster snapshot plus a free-text event into an ordered list of
    proposed actions.

    Every implementation must honour the same contract (see `contract.py`):
    continuity MOVEs before productivity ASSIGN_TASKs, donors never drop
    below their required headcount, task groups of at most two, and only
    workers present in the snapshot.
    """

    name: str = "planner"

    @abstractmethod
    def propose(
        self,
        snapshots: List[LineSnapshot],
        event: str,
        should_abort: Optional[Callable[[], bool]] = None,
    ) -> List[ProposedAction]:
        pass

    def is_available(self) -> bool:
        return True
