"""
Bounded polling of an asynchronous analysis job.

The service has no push notification, so completion is awaited by querying
the job status on a back-off schedule: one immediate query, a first wait of
``initial_delay``, then waits that grow quadratically so the cumulative wait
reaches ``timeout`` on the last allowed attempt. Every wait is clamped to the
time left before the deadline.

The machine ends in one of three ways: a terminal status is returned
(finished or error), ``TimeoutExceeded`` is raised when the wall-clock budget
runs out, or ``RequestBudgetExhausted`` is raised when ``max_attempts``
re-queries were spent. It never retries beyond its own attempts; callers start
a fresh cycle if they want to keep waiting.

Typical usage:
    state = await_completion(lambda: client.query_status(uuid), 20, 180)
"""

from __future__ import annotations

import logging
import math
import threading
import time
from enum import Enum
from typing import Callable, Optional, Union

from pydantic import BaseModel, Field

from sabre.errors import Cancelled, RequestBudgetExhausted, TimeoutExceeded

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10


class PollStatus(str, Enum):
    PENDING = "pending"
    ERROR = "error"
    FINISHED = "finished"


TERMINAL_STATUSES = frozenset({PollStatus.ERROR, PollStatus.FINISHED})


class PollState(BaseModel):
    """Last observed status of a job plus how much polling it took to get there."""

    status: PollStatus = PollStatus.PENDING
    attempts_made: int = Field(0, ge=0, description="status queries issued so far")
    elapsed_time: float = Field(0.0, ge=0, description="seconds since polling started")
    vendor_status: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


PollFunction = Callable[[], Union[PollState, PollStatus]]


def default_reference_constant(max_attempts: int = DEFAULT_MAX_ATTEMPTS) -> float:
    """Sum of r**2 over the ramped attempts (285 for 10 attempts)."""
    return float(sum(r * r for r in range(1, max_attempts))) or 1.0


def backoff_interval(
    attempt: int,
    initial_delay: float,
    timeout: float,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    reference_constant: float | None = None,
) -> float:
    """
    Seconds to wait before re-query number ``attempt`` (0-indexed).

    Attempt 0 waits ``initial_delay``; attempt r > 0 waits
    ``(sqrt(max(timeout - initial_delay, 0) / reference_constant) * r) ** 2``.
    """
    if attempt <= 0:
        return initial_delay
    if reference_constant is None:
        reference_constant = default_reference_constant(max_attempts)
    ramp = math.sqrt(max(timeout - initial_delay, 0) / reference_constant)
    return (ramp * attempt) ** 2


def _wait(seconds: float, sleep: Callable[[float], None], cancel: threading.Event | None) -> None:
    """Wait ``seconds``; with the real sleep a cancel token interrupts the wait early."""
    if cancel is not None and sleep is time.sleep:
        if cancel.wait(seconds):
            raise Cancelled("Polling cancelled")
        return
    if seconds > 0:
        sleep(seconds)
    if cancel is not None and cancel.is_set():
        raise Cancelled("Polling cancelled")


def await_completion(
    poll: PollFunction,
    initial_delay: float,
    timeout: float,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    *,
    reference_constant: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    cancel: threading.Event | None = None,
) -> PollState:
    """
    Query ``poll`` until it reports a terminal status.

    Args:
        poll: Returns the job's current PollState (or bare PollStatus).
        initial_delay: Seconds to wait before the first re-query.
        timeout: Wall-clock budget in seconds, counted from the first wait.
        max_attempts: Re-queries allowed after the immediate one.
        reference_constant: Divisor of the back-off ramp; defaults to
            ``default_reference_constant(max_attempts)``.
        sleep, clock: Injected for tests; default to the real time functions.
        cancel: When set during a wait, ``Cancelled`` is raised without
            another query. An injected ``sleep`` runs the whole wait and the
            token is checked afterwards.

    Returns:
        The first terminal PollState observed, stamped with the number of
        queries issued and the elapsed time.

    Raises:
        TimeoutExceeded: the deadline passed before a terminal status.
        RequestBudgetExhausted: all attempts were used without one.
        Cancelled: ``cancel`` was set.
    """
    if initial_delay < 0 or timeout < 0:
        raise ValueError("initial_delay and timeout must not be negative")
    if max_attempts < 0:
        raise ValueError("max_attempts must not be negative")

    started = clock()
    attempts = 0

    def query() -> PollState:
        nonlocal attempts
        result = poll()
        attempts += 1
        if isinstance(result, PollStatus):
            result = PollState(status=result)
        state = result.model_copy(
            update={"attempts_made": attempts, "elapsed_time": max(clock() - started, 0.0)}
        )
        logger.debug("Poll #%d: %s after %.1fs", attempts, state.status.value, state.elapsed_time)
        return state

    state = query()
    if state.is_terminal:
        return state

    loop_started = clock()
    deadline = loop_started + timeout

    for attempt in range(max_attempts):
        interval = backoff_interval(attempt, initial_delay, timeout, max_attempts, reference_constant)
        wait = max(min(interval, deadline - clock()), 0.0)
        _wait(wait, sleep, cancel)

        if clock() - loop_started >= timeout:
            raise TimeoutExceeded(
                f"Analysis did not finish within {timeout:g}s "
                f"(last status: {state.status.value})",
                last_state=state,
            )

        state = query()
        if state.is_terminal:
            return state

    raise RequestBudgetExhausted(
        f"Analysis did not finish after {attempts} status queries "
        f"(last status: {state.status.value})",
        last_state=state,
    )
