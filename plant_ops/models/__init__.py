from .labor import (
    Worker,
    WorkerStatus,
    WorkerType,
    ShiftCode,
    ProductionLine,
    LineSnapshot,
    ActionType,
    ProposedAction,
    SuggestionSet,
)
from .machine import (
    MachineState,
    MachineStatus,
    ServiceStage,
    ServiceType,
    RiskLevel,
    RedistributionStep,
    RedistributionStrategy,
    VendorEstimate,
    ServiceRecommendation,
    ServiceAnalysis,
)

__all__ = [
    "Worker",
    "WorkerStatus",
    "WorkerType",
    "ShiftCode",
    "ProductionLine",
    "LineSnapshot",
    "ActionType",
    "ProposedAction",
    "SuggestionSet",
    "MachineState",
    "MachineStatus",
    "ServiceStage",
    "ServiceType",
    "RiskLevel",
    "RedistributionStep",
    "RedistributionStrategy",
    "VendorEstimate",
    "ServiceRecommendation",
    "ServiceAnalysis",
]
