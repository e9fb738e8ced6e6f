from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from sitewatch.checks.results import INTERNAL_ERROR, Evaluation
from sitewatch.checks.retry import run_with_retries
from sitewatch.formatting import body_snippet, format_alert, format_console_summary
from sitewatch.models import AppChecks, Check, CheckResult, RunSummary
from sitewatch.notifier import DeliveryOutcome, Notifier
from sitewatch.registry import load_sites
from sitewatch.summary import failures, summarize

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 8

Executor = Callable[[Check], Evaluation]


@dataclass(frozen=True)
class Job:
    app: str
    check: Check


@dataclass
class RunReport:
    summary: RunSummary
    delivery: DeliveryOutcome | None = None


def flatten(apps: Iterable[AppChecks]) -> list[Job]:
    return [Job(app=a.app, check=c) for a in apps for c in a.checks]


def to_check_result(job: Job, ev: Evaluation) -> CheckResult:
    snippet = body_snippet(ev.body)
    return CheckResult(
        app=job.app,
        name=job.check.name,
        url=job.check.url,
        ok=ev.ok,
        status=ev.status,
        reason=ev.reason,
        duration_ms=ev.duration_ms,
        url_final=ev.final_url,
        headers=ev.headers,
        body_snippet=snippet or None,
    )


def crashed_result(job: Job, exc: BaseException) -> CheckResult:
    return CheckResult(
        app=job.app,
        name=job.check.name,
        url=job.check.url,
        ok=False,
        status=0,
        reason=f"{INTERNAL_ERROR}: {exc.__class__.__name__}: {exc}",
        duration_ms=0,
        url_final=job.check.url,
    )


def run_all(
    apps: Sequence[AppChecks],
    pool_size: int = DEFAULT_POOL_SIZE,
    execute: Executor | None = None,
) -> list[CheckResult]:
    """Run every check of every app with at most ``pool_size`` in flight.

    Results come back in completion order. A job that raises is turned into
    a failed result; it never stops its siblings.
    """
    if pool_size < 1:
        raise ValueError(f"pool_size must be >= 1, got {pool_size}")
    execute = execute or run_with_retries

    jobs = flatten(apps)
    results: list[CheckResult] = []
    if not jobs:
        return results

    with ThreadPoolExecutor(max_workers=pool_size, thread_name_prefix="sitewatch") as pool:
        futures: dict[Future, Job] = {pool.submit(execute, job.check): job for job in jobs}
        for fut in as_completed(futures):
            job = futures[fut]
            try:
                results.append(to_check_result(job, fut.result()))
            except Exception as exc:
                logger.exception("Check %s/%s crashed", job.app, job.check.name)
                results.append(crashed_result(job, exc))
    return results


def dispatch_alert(
    summary: RunSummary, notifier: Notifier | None, tz: str = "Europe/Paris"
) -> DeliveryOutcome | None:
    if notifier is None or not failures(summary):
        return None
    text = format_alert(summary, tz=tz, as_html=notifier.markup == "html")
    try:
        outcome = notifier.notify(text)
    except Exception as exc:
        # Alerting problems never change the run result.
        logger.error("Notifier %s raised: %s", notifier.channel, exc)
        return DeliveryOutcome(ok=False, chunks_sent=0, chunks_total=0, error=str(exc))
    if not outcome.ok:
        logger.error(
            "Alert delivery via %s incomplete (%d/%d chunks): %s",
            notifier.channel,
            outcome.chunks_sent,
            outcome.chunks_total,
            outcome.error,
        )
    return outcome


def run_once(cfg, notifier: Notifier | None = None, loader=load_sites) -> RunReport:
    """Load the site list, run all checks, summarize and alert.

    Raises ``ConfigError`` when the site list cannot be loaded.
    """
    apps = loader(cfg)
    results = run_all(apps, pool_size=cfg.POOL_SIZE)
    summary = summarize(results)
    logger.info(
        "Run finished: %d checks, %d ok, %d failed",
        summary.total,
        summary.ok_count,
        summary.ko_count,
    )
    logger.debug("%s", format_console_summary(summary))
    delivery = dispatch_alert(summary, notifier, tz=cfg.ALERT_TIMEZONE)
    return RunReport(summary=summary, delivery=delivery)
