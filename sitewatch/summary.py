from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from sitewatch.models import CheckResult, RunSummary


def serialize_ts(dt: datetime | None) -> str | None:
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def utcnow_iso() -> str:
    return serialize_ts(datetime.now(timezone.utc)) or ""


def partition(results: Iterable[CheckResult]) -> tuple[list[CheckResult], list[CheckResult]]:
    passed: list[CheckResult] = []
    failed: list[CheckResult] = []
    for r in results:
        (passed if r.ok else failed).append(r)
    return passed, failed


def summarize(results: Iterable[CheckResult], now: datetime | None = None) -> RunSummary:
    items = list(results)
    passed, failed = partition(items)
    return RunSummary(
        timestamp=serialize_ts(now) if now is not None else utcnow_iso(),
        total=len(items),
        ok_count=len(passed),
        ko_count=len(failed),
        results=items,
    )


def failures(source: RunSummary | Iterable[CheckResult]) -> list[CheckResult]:
    """Failure subset handed to the notifier, in result order."""
    results = source.results if isinstance(source, RunSummary) else source
    return [r for r in results if not r.ok]
