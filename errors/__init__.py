"""Custom exception hierarchy for the lesson conversation service."""

from errors.exceptions import (
    ChainConfigurationError,
    CollaboratorUnavailableError,
    NoHandlerFoundError,
    OrchestrationError,
    PlanNotFoundError,
    UnknownActionError,
)

__all__ = [
    "ChainConfigurationError",
    "CollaboratorUnavailableError",
    "NoHandlerFoundError",
    "OrchestrationError",
    "PlanNotFoundError",
    "UnknownActionError",
]
