"""
Validator component models.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.domain.entities import InvalidTimeReason


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of the validity gate.

    A failed outcome is an expected business result, not an error.
    """

    valid: bool
    reason: InvalidTimeReason | None = None
    description: str | None = None

    @classmethod
    def ok(cls) -> ValidationOutcome:
        return cls(valid=True)

    @classmethod
    def rejected(cls, reason: InvalidTimeReason, description: str) -> ValidationOutcome:
        return cls(valid=False, reason=reason, description=description)
