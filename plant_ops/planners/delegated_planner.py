# plant_ops/planners/delegated_planner.py
"""
Delegated planner - asks the external reasoning service for a plan.

The service is a black box. Its answer is parsed against a strict schema
and replayed against the snapshot; anything malformed or contract-breaking
is a SchemaViolation. Transport and schema failures are retried with
exponential backoff inside a bounded wall-clock budget.
"""

import logging
from typing import Callable, List, Optional

from pydantic import BaseModel, Field, ValidationError
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential,
)

from ..models.labor import ActionType, LineSnapshot, ProposedAction
from .base_planner import LaborPlanner
from .config import PlannerConfig, get_config
from .contract import resolve_worker_ids, validate_plan
from .errors import PlannerUnavailable, SchemaViolation, SolveSuperseded, TransportFailure
from .llm_client import LABOR_SYSTEM_PROMPT, AzureOpenAIClient, build_labor_prompt, get_client

logger = logging.getLogger(__name__)


# ============ Wire schema ============

class ExecutionMetadata(BaseModel):
    action: ActionType
    workerNames: List[str] = Field(min_length=1)
    fromLine: Optional[str] = None
    toLine: Optional[str] = None
    taskCategory: Optional[str] = None


class PlannerSuggestion(BaseModel):
    title: str
    description: str = ""
    executionMetadata: ExecutionMetadata


class PlannerResponse(BaseModel):
    suggestions: List[PlannerSuggestion]


def parse_planner_response(raw: str, snapshots: List[LineSnapshot], max_group: int = 2) -> List[ProposedAction]:
    """
    Convert the planner's JSON text into ProposedActions.

    Raises:
        SchemaViolation: malformed JSON, missing fields, or a plan that
        breaks the allocation contract
    """
    try:
        response = PlannerResponse.model_validate_json(raw or "")
    except ValidationError as e:
        raise SchemaViolation(f"Malformed planner response: {e.error_count()} error(s)") from e

    used: set = set()
    actions = []
    for item in response.suggestions:
        meta = item.executionMetadata
        if meta.action == ActionType.MOVE and not meta.toLine:
            raise SchemaViolation(f"MOVE without toLine: {item.title!r}")
        actions.append(ProposedAction(
            title=item.title,
            description=item.description,
            action=meta.action,
            worker_names=meta.workerNames,
            worker_ids=resolve_worker_ids(snapshots, meta.workerNames, used),
            from_line=meta.fromLine,
            to_line=meta.toLine if meta.action == ActionType.MOVE else None,
            task_category=meta.taskCategory if meta.action == ActionType.ASSIGN_TASK else None,
        ))

    # Identity is checked by name so unresolvable names are reported
    for action in actions:
        if len(action.worker_ids) != len(action.worker_names):
            raise SchemaViolation(f"Unknown worker in {action.title!r}: {action.worker_names}")

    validate_plan(snapshots, actions, max_group)
    return actions


class DelegatedPlanner(LaborPlanner):
    """Planner backed by an LLM through `AzureOpenAIClient`."""

    name = "delegated"

    def __init__(self, client: Optional[AzureOpenAIClient] = None, config: Optional[PlannerConfig] = None):
        self.config = config or get_config()
        self.client = client or get_client(self.config.REQUEST_TIMEOUT_SECONDS)

    def is_available(self) -> bool:
        return self.config.LLM_ENABLED and self.client.is_available()

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.config.MAX_ATTEMPTS) | stop_after_delay(self.config.TOTAL_BUDGET_SECONDS),
            wait=wait_exponential(
                multiplier=self.config.BACKOFF_INITIAL_SECONDS,
                max=self.config.BACKOFF_MAX_SECONDS,
            ),
            retry=retry_if_exception_type((TransportFailure, SchemaViolation)),
            before_sleep=_log_retry,
            reraise=True,
        )

    def propose(
        self,
        snapshots: List[LineSnapshot],
        event: str,
        should_abort: Optional[Callable[[], bool]] = None,
    ) -> List[ProposedAction]:
        if not self.is_available():
            raise PlannerUnavailable("Delegated planner disabled or not configured")

        system_prompt = LABOR_SYSTEM_PROMPT.format(tasks=", ".join(self.config.TASK_CATEGORIES))
        user_prompt = build_labor_prompt(event, [s.model_dump() for s in snapshots])

        for attempt in self._retrying():
            with attempt:
                if should_abort and should_abort():
                    raise SolveSuperseded("Newer solve request in flight")
                raw = self.client.complete_json(system_prompt, user_prompt)
                return parse_planner_response(raw, snapshots, self.config.MAX_TASK_GROUP)


def _log_retry(retry_state) -> None:
    error = retry_state.outcome.exception()
    logger.warning(
        "Planner attempt %d failed (%s: %s); retrying",
        retry_state.attempt_number, type(error).__name__, error,
    )
