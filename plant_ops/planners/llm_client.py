# plant_ops/planners/llm_client.py
"""
Azure OpenAI client for the delegated labor planner.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

from openai import APIConnectionError, APIStatusError, AzureOpenAI, OpenAIError

from .errors import PlannerUnavailable, TransportFailure

logger = logging.getLogger(__name__)


class AzureOpenAIClient:
    """
    Azure OpenAI client wrapper for planner calls.

    Handles:
    - JSON-mode chat completions with a hard per-request timeout
    - Mapping transport errors onto TransportFailure

    Retries are owned by the caller, so the SDK's own retry loop is disabled.
    """

    def __init__(self, timeout_seconds: float = 12.0):
        """Initialize Azure OpenAI client from environment variables."""
        self.api_key = os.getenv("AZURE_OPENAI_API_KEY")
        self.endpoint = os.getenv("AZURE_OPENAI_ENDPOINT")
        self.deployment = os.getenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4o")
        self.api_version = os.getenv("AZURE_OPENAI_API_VERSION", "2024-06-01")
        self.timeout_seconds = timeout_seconds

        self.client = None
        self._init_client()

    def _init_client(self):
        """Initialize the Azure OpenAI client if credentials are available."""
        if self.api_key and self.endpoint:
            self.client = AzureOpenAI(
                api_key=self.api_key,
                api_version=self.api_version,
                azure_endpoint=self.endpoint,
                timeout=self.timeout_seconds,
                max_retries=0,
            )
        else:
            logger.warning("Azure OpenAI credentials not configured. Using local solver only.")

    def complete_json(self, system_prompt: str, user_prompt: str) -> str:
        """
        Run one chat completion in JSON mode and return the raw message text.

        Raises:
            PlannerUnavailable: no client configured
            TransportFailure: timeout, connection, rate-limit or HTTP error
        """
        if not self.client:
            raise PlannerUnavailable("Azure OpenAI client not configured")

        try:
            response = self.client.chat.completions.create(
                model=self.deployment,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=0.2,  # Lower temperature for more deterministic plans
                response_format={"type": "json_object"},
            )
        except APIStatusError as e:
            raise TransportFailure(f"HTTP {e.status_code}: {e.message}") from e
        except APIConnectionError as e:
            raise TransportFailure(f"Connection failed: {e}") from e
        except OpenAIError as e:
            raise TransportFailure(str(e)) from e

        return response.choices[0].message.content or ""

    def is_available(self) -> bool:
        """Check if LLM client is available."""
        return self.client is not None


LABOR_SYSTEM_PROMPT = """You are a production planning advisor for a vehicle assembly plant.

                GOAL: Resolve manpower issues using the Two-Tier Principle:
                1. PRIORITY 1 - CONTINUITY PRINCIPLE: Identify lines where 'present' < 'required'.
                   You MUST fill these gaps first by MOVING workers from lines where 'present' > 'required'.
                   A line may only give workers while 'present' > 'required'.
                2. PRIORITY 2 - PRODUCTIVITY PRINCIPLE: ONLY after all lines have 'present' >= 'required',
                   assign remaining surplus workers to value-add tasks: {tasks}.

                STRICT CONSTRAINTS:
                - NEVER suggest 'ASSIGN_TASK' while any line still has a gap.
                - Use the line 'line_id' (e.g., L1, L2) for 'fromLine' and 'toLine'.
                - Use EXACT names from 'present_worker_names'.
                - At most 2 workers per 'ASSIGN_TASK'.

                Respond in JSON format:
                {{
                    "suggestions": [
                        {{
                            "title": "short title",
                            "description": "reasoning",
                            "executionMetadata": {{
                                "action": "MOVE" | "ASSIGN_TASK",
                                "workerNames": ["exact name"],
                                "fromLine": "L5",
                                "toLine": "L2 (MOVE only)",
                                "taskCategory": "TPM (ASSIGN_TASK only)"
                            }}
                        }}
                    ]
                }}"""


def build_labor_prompt(event: str, snapshot: List[Dict[str, Any]]) -> str:
    """Planner request body: {event, snapshot}."""
    return json.dumps({"event": event, "snapshot": snapshot}, indent=2, default=str)


_client: Optional[AzureOpenAIClient] = None


def get_client(timeout_seconds: float = 12.0) -> AzureOpenAIClient:
    """Get or create global client."""
    global _client
    if _client is None:
        _client = AzureOpenAIClient(timeout_seconds)
    return _client
