"""
Fixed-interval polling helper.

Both phases of the quality-gate check share the same loop shape: issue a
request, stop on a usable answer, otherwise sleep a constant interval and
try again until the wait budget is used up.
"""

import time
from typing import Callable, Optional, TypeVar

T = TypeVar("T")

PRINT_PREFIX = "[quality-gate]"


class TransientError(Exception):
    """An attempt failed in a way that is worth retrying."""


def warn(message: str) -> None:
    """Print a warning as a GitHub Actions workflow command."""
    print(f"::warning::{message}", flush=True)


def poll_until(
    attempt: Callable[[], Optional[T]],
    *,
    budget: int,
    interval: int,
    sleep: Callable[[float], None] = time.sleep,
    describe: str = "request",
) -> Optional[T]:
    """
    Call ``attempt`` until it returns a value or the budget runs out.

    Args:
        attempt: Issues one request. Returns the result, or None while the
            result is not available yet. May raise TransientError to be
            retried; any other exception propagates.
        budget: Maximum number of seconds to spend waiting
        interval: Seconds to sleep between attempts
        sleep: Sleep function (replaced in tests)
        describe: Short label used in log lines

    Returns:
        The first non-None value returned by ``attempt``, or None on timeout

    Raises:
        ValueError: If ``interval`` is not positive
    """
    if interval <= 0:
        raise ValueError(f"Polling interval must be positive, got {interval}")

    elapsed = 0
    while elapsed < budget:
        print(f"{PRINT_PREFIX} Attempting {describe}... (Wait time: {elapsed}s)", flush=True)
        try:
            value = attempt()
        except TransientError as e:
            warn(f"Warning: {describe} failed - {e}. Retrying...")
        else:
            if value is not None:
                return value

        sleep(interval)
        elapsed += interval

    return None
