"""Helpers turning gateway exceptions into Outcome values."""

import logging
from typing import Any, Awaitable, List, TypeVar

from src.models.outcome import Outcome
from src.testbench_client.errors import TestBenchError, UnexpectedStatusError

logger = logging.getLogger(__name__)

T = TypeVar('T')


async def attempt(operation: str, call: Awaitable[T], **context: Any) -> Outcome[T]:
    """Await a gateway call and classify its failure.

    A success status other than the expected one becomes WARN, every other
    TestBenchError becomes FAIL. Programming errors are not caught.
    """
    try:
        value = await call
    except UnexpectedStatusError as e:
        if e.is_alternate_success:
            outcome: Outcome[T] = Outcome.warn(operation, str(e), **context)
            logger.warning(outcome.describe())
            return outcome
        outcome = Outcome.fail(operation, str(e), **context)
        logger.error(outcome.describe())
        return outcome
    except TestBenchError as e:
        outcome = Outcome.fail(operation, str(e), **context)
        logger.error(outcome.describe())
        return outcome
    return Outcome.ok(operation, value, **context)


def report_folded(operation: str, outcomes: List[Outcome[Any]], **context: Any) -> List[Outcome[Any]]:
    """Log the result of a best-effort loop once, after the loop has finished.

    Returns the outcomes that were not OK.
    """
    failed = [outcome for outcome in outcomes if not outcome.is_ok]
    details = ", ".join(f"{key}={value}" for key, value in context.items())
    if failed:
        logger.warning(
            f"{operation}: {len(failed)} of {len(outcomes)} item(s) failed [{details}]: "
            + "; ".join(outcome.describe() for outcome in failed)
        )
    elif outcomes:
        logger.debug(f"{operation}: {len(outcomes)} item(s) succeeded [{details}]")
    return failed
