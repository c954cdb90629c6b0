"""
Planner error taxonomy.

TransportFailure and SchemaViolation are recovered by the advisor, which
falls back to the local solver.
"""


class PlannerError(Exception):
    """Base class for delegated-planner failures."""


class PlannerUnavailable(PlannerError):
    """No credentials configured, or the planner is switched off."""


class TransportFailure(PlannerError):
    """Timeout, connection failure, rate limit or HTTP error."""


class SchemaViolation(PlannerError):
    """Malformed response, or one that breaks the allocation contract."""

    def __init__(self, message: str, problems=None):
        super().__init__(message)
        self.problems = list(problems or [])


class SolveSuperseded(PlannerError):
    """A newer solve request made this one obsolete."""
