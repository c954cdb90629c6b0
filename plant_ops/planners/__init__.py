"""
Decision-engine planners for labor rebalancing and machine service orchestration.
"""

from .base_planner import LaborPlanner
from .local_solver import LocalFallbackSolver
from .delegated_planner import DelegatedPlanner
from .advisor import LaborAdvisor
from .service_orchestrator import ServiceOrchestrator
from .llm_client import AzureOpenAIClient

__all__ = [
    "LaborPlanner",
    "LocalFallbackSolver",
    "DelegatedPlanner",
    "LaborAdvisor",
    "ServiceOrchestrator",
    "AzureOpenAIClient"
]
