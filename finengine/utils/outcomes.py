from __future__ import annotations

import logging
from typing import Callable, TypeVar

from finengine.core.errors import EngineError
from finengine.core.schemas import Failure, Outcome, Success, ValidationReport
from finengine.utils.logging import calculator_context

T = TypeVar("T")


def run_guarded(
    name: str,
    report: ValidationReport,
    compute: Callable[[], T],
    logger: logging.Logger,
) -> Outcome[T]:
    """Validation gate + error boundary shared by the public calculators.

    Returns ``Success[T]`` or ``Failure``; an EngineError or arithmetic error
    raised inside ``compute`` never escapes.
    """
    with calculator_context(name):
        if not report.ok:
            logger.warning("validation failed errors=%d first=%s", len(report.errors), report.errors[0].location)
            return Failure.from_report(report)
        for w in report.warnings:
            logger.info("input warning location=%s msg=%s", w.location, w.message)

        logger.debug("compute start")
        try:
            value = compute()
        except EngineError as e:
            logger.warning("compute failed code=%s msg=%s", e.code, e.message)
            return Failure.of(e.code, e.message, **e.details)
        except ArithmeticError as e:
            logger.warning("arithmetic error: %s", e)
            return Failure.of("COMPUTE_FAILED", f"{type(e).__name__}: {e}")
        logger.debug("compute done")
        return Success[type(value)](value=value)
