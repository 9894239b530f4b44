"""
Pipeline errors.

Raised by the agents and translated to HTTP responses only by the exception
handlers in datasculpt.api.main.
"""

from typing import Any

from datasculpt.models.query import QueryClassification


class AgentError(Exception):
    """
    Base exception for agent errors.

    Attributes:
        agent: Name of the agent that raised the error
        message: Error description
        context: Additional context for debugging
    """

    def __init__(self, agent: str, message: str, context: dict[str, Any] | None = None):
        self.agent = agent
        self.message = message
        self.context = context or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "agent": self.agent,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }


class SafetyRejection(AgentError):
    """SQL refused by the safety gate before any connection was opened."""

    def __init__(self, classification: QueryClassification, reason: str):
        super().__init__("SafetyGate", reason, context={"classification": classification.value})
        self.classification = classification
        self.reason = reason


class ExecutionFailure(AgentError):
    """Read query accepted but the database could not run it."""

    def __init__(self, message: str = "Database query failed", details: str | None = None):
        super().__init__("SafetyGate", message, context={"details": details})
        self.details = details
