from __future__ import annotations

from sitewatch.checks.results import Evaluation, ProbeOutcome
from sitewatch.models import Check


def _failed(outcome: ProbeOutcome, reason: str) -> Evaluation:
    return Evaluation(
        ok=False,
        duration_ms=outcome.duration_ms,
        status=outcome.status,
        reason=reason,
        final_url=outcome.final_url,
        headers=outcome.headers,
        body=outcome.body,
    )


def expectation_violation(check: Check, status: int, body: str) -> str | None:
    """Return the reason of the first violated expectation, or None.

    Rules run in a fixed order and every rule that is set is applied:
    exact status, allowed set, exclusive upper bound, body substring.
    """
    if check.expect_status is not None and status != check.expect_status:
        return f"HTTP {status} (expected {check.expect_status})"
    if check.expect_status_in is not None and status not in check.expect_status_in:
        allowed = ", ".join(str(s) for s in check.expect_status_in)
        return f"HTTP {status} (expected one of: {allowed})"
    if check.expect_status_lt is not None and not status < check.expect_status_lt:
        return f"HTTP {status} (expected < {check.expect_status_lt})"
    if check.must_contain and check.must_contain not in (body or ""):
        return f'Body missing "{check.must_contain}"'
    return None


def evaluate(check: Check, outcome: ProbeOutcome) -> Evaluation:
    if not outcome.ok:
        return Evaluation(
            ok=False,
            duration_ms=outcome.duration_ms,
            status=0,
            reason=f"{outcome.error_kind}: {outcome.error}" if outcome.error else outcome.error_kind,
            final_url=check.url,
        )

    status = outcome.status or 0
    reason = expectation_violation(check, status, outcome.body)
    if reason is not None:
        return _failed(outcome, reason)

    return Evaluation(
        ok=True,
        duration_ms=outcome.duration_ms,
        status=status,
        final_url=outcome.final_url,
        headers=outcome.headers,
        body=outcome.body,
    )
