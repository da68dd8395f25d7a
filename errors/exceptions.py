"""Domain-specific exceptions for the lesson conversation service.

Only configuration bugs (``NoHandlerFoundError``, ``ChainConfigurationError``)
and caller bugs (``UnknownActionError``) are meant to leave the Orchestrator.
Everything else is caught at the handler boundary and turned into a failed
response, which the Error Observer rewrites into a friendly message.
"""

from __future__ import annotations


class OrchestrationError(Exception):
    """Base class for orchestration errors."""


class UnknownActionError(OrchestrationError):
    """The caller asked for a named action that is not in the action table."""

    def __init__(self, action: str, known: list[str] | None = None) -> None:
        self.action = action
        self.known = known or []
        hint = f" (known: {', '.join(self.known)})" if self.known else ""
        super().__init__(f"Unknown action '{action}'{hint}")


class NoHandlerFoundError(OrchestrationError):
    """No handler in the chain accepted the intent.

    Cannot happen while the chain ends with a catch-all handler, so seeing
    this means the chain was assembled incorrectly.
    """

    def __init__(self, intent: str, step: str = "") -> None:
        self.intent = intent
        self.step = step
        super().__init__(f"No handler for intent '{intent}' at step '{step}'")


class ChainConfigurationError(OrchestrationError):
    """The handler chain violates its ordering rules."""


class CollaboratorUnavailableError(OrchestrationError):
    """An external AI collaborator call failed or timed out."""

    def __init__(self, collaborator: str, message: str) -> None:
        self.collaborator = collaborator
        super().__init__(f"Collaborator '{collaborator}' unavailable: {message}")


class PlanNotFoundError(OrchestrationError):
    """A plan-dependent operation ran before any plan was produced."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"No lesson plan available for '{operation}'")
