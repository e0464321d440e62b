from __future__ import annotations

from typing import Any, Dict, Optional


class EngineError(Exception):
    """Base error raised inside calculators; converted to a Failure at the public boundary."""

    code = "COMPUTE_FAILED"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if code:
            self.code = code


class InvalidInputError(EngineError):
    code = "INVALID_INPUT"


class NonConvergenceError(EngineError):
    """Schedule did not reach a zero balance within the safety cap."""

    code = "NON_CONVERGENCE"

    def __init__(self, periods: int, remaining_balance_cents: int) -> None:
        super().__init__(
            f"Balance of {remaining_balance_cents} cents remains after {periods} periods",
            details={"periods": periods, "remaining_balance_cents": remaining_balance_cents},
        )
        self.periods = periods
        self.remaining_balance_cents = remaining_balance_cents


def raise_for_failure(outcome, **details: Any):
    """Unwrap a Success or re-raise a Failure as an EngineError carrying ``details``."""
    if outcome.ok:
        return outcome.value
    merged = dict(outcome.error.details or {})
    if outcome.issues:
        merged["issues"] = [i.model_dump() for i in outcome.issues]
    merged.update(details)
    raise EngineError(outcome.error.message, details=merged, code=outcome.error.code)
