from __future__ import annotations

from typing import Any, Dict, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


T = TypeVar("T")


# -------------------------
# Validation
# -------------------------

class ValidationIssue(BaseModel):
    level: str  # ERROR | WARN | INFO
    message: str
    location: Optional[str] = None


class ValidationReport(BaseModel):
    ok: bool = True
    errors: List[ValidationIssue] = Field(default_factory=list)
    warnings: List[ValidationIssue] = Field(default_factory=list)
    infos: List[ValidationIssue] = Field(default_factory=list)

    def add_error(self, msg: str, location: Optional[str] = None) -> None:
        self.errors.append(ValidationIssue(level="ERROR", message=msg, location=location))

    def add_warning(self, msg: str, location: Optional[str] = None) -> None:
        self.warnings.append(ValidationIssue(level="WARN", message=msg, location=location))

    def add_info(self, msg: str, location: Optional[str] = None) -> None:
        self.infos.append(ValidationIssue(level="INFO", message=msg, location=location))

    def extend(self, other: "ValidationReport", prefix: Optional[str] = None) -> None:
        for issue in other.errors:
            loc = f"{prefix}.{issue.location}" if prefix and issue.location else (prefix or issue.location)
            self.add_error(issue.message, location=loc)
        for issue in other.warnings:
            loc = f"{prefix}.{issue.location}" if prefix and issue.location else (prefix or issue.location)
            self.add_warning(issue.message, location=loc)

    def finalize(self) -> "ValidationReport":
        self.ok = len(self.errors) == 0
        return self


# -------------------------
# Errors + outcomes
# -------------------------

ErrorCode = Literal[
    "INVALID_INPUT",
    "NON_CONVERGENCE",
    "COMPUTE_FAILED",
    "BAD_INPUT",
    "BAD_INPUT_KIND",
]


class ErrorEnvelope(BaseModel):
    code: ErrorCode
    message: str
    details: Optional[Dict[str, Any]] = None
    retriable: bool = False


class Success(BaseModel, Generic[T]):
    """A calculator result that completed."""

    model_config = ConfigDict(frozen=True)

    ok: Literal[True] = True
    value: T


class Failure(BaseModel):
    """A calculator result that did not complete.

    `issues` carries the validation errors when `error.code == "INVALID_INPUT"`.
    """

    model_config = ConfigDict(frozen=True)

    ok: Literal[False] = False
    error: ErrorEnvelope
    issues: List[ValidationIssue] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: ValidationReport, message: str = "Input validation failed") -> "Failure":
        return cls(
            error=ErrorEnvelope(code="INVALID_INPUT", message=message),
            issues=list(report.errors),
        )

    @classmethod
    def of(cls, code: str, message: str, **details: Any) -> "Failure":
        return cls(error=ErrorEnvelope(code=code, message=message, details=details or None))


Outcome = Union[Success[T], Failure]
