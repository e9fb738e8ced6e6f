from __future__ import annotations

import html
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sitewatch.models import CheckResult, RunSummary
from sitewatch.summary import failures

# Shared bound for result snippets and the alert excerpt.
SNIPPET_MAX = 200


def escape_html(value: object) -> str:
    return html.escape(str(value), quote=True)


def body_snippet(body: str | None, max_len: int = SNIPPET_MAX) -> str:
    if not body:
        return ""
    return body[:max_len].replace("\x00", "")


def local_time_label(tz: str, now: datetime | None = None) -> str:
    try:
        zone = ZoneInfo(tz)
    except (ZoneInfoNotFoundError, ValueError):
        zone = timezone.utc
    current = (now or datetime.now(timezone.utc)).astimezone(zone)
    return f"{current.strftime('%d/%m/%Y %H:%M:%S')} ({current.tzname()})"


def format_result_line(r: CheckResult) -> str:
    label = "OK   " if r.ok else "FAIL "
    outcome = f"HTTP {r.status}" if r.ok else r.reason
    first = f"{label} {r.app}/{r.name} -> {outcome} | {r.url}"
    if not r.ok:
        return f"{first}\n  [{r.duration_ms}ms]"
    redirect = f"-> {r.url_final} " if r.url_final and r.url_final != r.url else ""
    content_type = (r.headers or {}).get("content-type", "")
    return f"{first}\n  [{r.duration_ms}ms] {redirect}{content_type}".rstrip()


def format_console_summary(summary: RunSummary) -> str:
    lines = ["=== SUMMARY ==="]
    lines.extend(format_result_line(r) for r in summary.results)
    lines.append(f"Total: {summary.total}  OK: {summary.ok_count}  KO: {summary.ko_count}")
    return "\n".join(lines)


def _failure_block(r: CheckResult, as_html: bool) -> str:
    if not as_html:
        lines = [
            f"- {r.app}/{r.name}",
            f"URL: {r.url}",
            f"Final: {r.url_final}" if r.url_final and r.url_final != r.url else None,
            f"Status: {r.status if r.status else '—'}",
            f"Cause: {r.reason or 'Unknown'}",
            f"Latency: {r.duration_ms}ms",
        ]
        headers = r.headers or {}
        if headers.get("content-type"):
            lines.append(f"Content-Type: {headers['content-type']}")
        if headers.get("content-length"):
            lines.append(f"Content-Length: {headers['content-length']}")
        if r.body_snippet:
            lines.append(f"Body (excerpt):\n{r.body_snippet}")
        return "\n".join(line for line in lines if line)

    e = escape_html
    headers = r.headers or {}
    lines = [
        f"• <b>{e(r.app)}/{e(r.name)}</b>",
        f"URL: <code>{e(r.url)}</code>",
        f"Final: <code>{e(r.url_final)}</code>" if r.url_final and r.url_final != r.url else None,
        f"Status: <b>{r.status}</b>" if r.status else "Status: <b>—</b>",
        f"Cause: <i>{e(r.reason or 'Unknown')}</i>",
        f"Latency: <code>{r.duration_ms}ms</code>",
        f"Content-Type: <code>{e(headers['content-type'])}</code>" if headers.get("content-type") else None,
        f"Content-Length: <code>{e(headers['content-length'])}</code>" if headers.get("content-length") else None,
        f"Body (excerpt):\n<code>{e(r.body_snippet)}</code>" if r.body_snippet else None,
    ]
    return "\n".join(line for line in lines if line)


def format_alert(
    summary: RunSummary,
    tz: str = "Europe/Paris",
    as_html: bool = True,
    now: datetime | None = None,
) -> str:
    failed = failures(summary)
    when = local_time_label(tz, now)
    if as_html:
        header = (
            "🚨 <b>Site monitor</b>\n"
            f"{when}\n"
            f"Incidents: <b>{len(failed)}</b> / {summary.total}\n"
        )
    else:
        header = f"Site monitor\n{when}\nIncidents: {len(failed)} / {summary.total}\n"
    blocks = [_failure_block(r, as_html) for r in failed]
    return "\n\n".join([header, *blocks])
