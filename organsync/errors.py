"""
OrganSync Errors
================

Exception taxonomy shared by the scoring core and its collaborators.

    - ValidationError: request rejected before any computation
    - ComputationError: unexpected failure while scoring
    - NotFoundError: collaborator lookup found nothing

Author: OrganSync Team
Version: 1.0.0
"""

from typing import Any, Dict, List, Optional


class ScoringError(Exception):
    """Base class for all OrganSync scoring errors."""


class ValidationError(ScoringError, ValueError):
    """A required request field is missing or out of range."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class ComputationError(ScoringError):
    """Scoring failed internally. The root cause is chained as __cause__."""

    def __init__(self, message: str = "scoring failed"):
        super().__init__(message)


class NotFoundError(ScoringError, LookupError):
    """A stored score was requested but does not exist."""
