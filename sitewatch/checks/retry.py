from __future__ import annotations

import time
from typing import Callable

from sitewatch.checks.evaluator import evaluate
from sitewatch.checks.http_check import probe
from sitewatch.checks.results import Evaluation, ProbeOutcome
from sitewatch.models import Check

BACKOFF_STEP_S = 0.5

ProbeFn = Callable[..., ProbeOutcome]


def backoff_delay(attempt: int) -> float:
    """Linear delay slept after the given failed attempt (1-based)."""
    return BACKOFF_STEP_S * attempt


def run_once(check: Check, probe_fn: ProbeFn = probe) -> Evaluation:
    outcome = probe_fn(
        check.url,
        method=check.method,
        timeout_ms=check.timeout_ms(),
        headers=check.headers,
    )
    return evaluate(check, outcome)


def run_with_retries(
    check: Check,
    probe_fn: ProbeFn = probe,
    sleep: Callable[[float], None] = time.sleep,
) -> Evaluation:
    attempt = 1
    while True:
        result = run_once(check, probe_fn=probe_fn)
        if result.ok or attempt >= check.attempts:
            return result
        sleep(backoff_delay(attempt))
        attempt += 1
