from __future__ import annotations

import codecs
import threading
import time
from typing import Mapping

import requests
from urllib3.exceptions import HTTPError as Urllib3HTTPError
from urllib3.exceptions import ReadTimeoutError

from sitewatch.checks.results import NETWORK_ERROR, TIMEOUT, ProbeOutcome

CAPTURED_HEADERS = ("content-type", "content-length")
CHUNK_SIZE = 8192


class _DeadlineExceeded(Exception):
    pass


def _elapsed_ms(start: float) -> int:
    return round((time.perf_counter() - start) * 1000)


def _remaining(deadline: float) -> float:
    left = deadline - time.perf_counter()
    if left <= 0:
        raise _DeadlineExceeded()
    return left


def _codec(resp: requests.Response) -> str:
    try:
        return codecs.lookup(resp.encoding or "utf-8").name
    except LookupError:
        return "utf-8"


def _read_body(resp: requests.Response, deadline: float, cancelled: threading.Event) -> str:
    # read1 returns as soon as any bytes arrive, so a slow trickle still
    # hits the deadline check between reads.
    chunks: list[bytes] = []
    while True:
        if cancelled.is_set():
            raise _DeadlineExceeded()
        _remaining(deadline)
        chunk = resp.raw.read1(CHUNK_SIZE, decode_content=True)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks).decode(_codec(resp), errors="replace")


def _send_with_redirects(
    session: requests.Session,
    method: str,
    url: str,
    headers: Mapping[str, str] | None,
    deadline: float,
) -> requests.Response:
    """Follow redirects hop by hop, each hop bounded by the remaining budget."""
    left = _remaining(deadline)
    resp = session.request(
        method,
        url,
        headers=dict(headers or {}),
        timeout=(left, left),
        allow_redirects=False,
        stream=True,
    )
    hops = 0
    while resp.next is not None:
        hops += 1
        if hops > session.max_redirects:
            resp.close()
            raise requests.TooManyRedirects(
                f"Exceeded {session.max_redirects} redirects.", response=resp
            )
        nxt = resp.next
        resp.close()
        left = _remaining(deadline)
        send_kwargs = session.merge_environment_settings(nxt.url, {}, True, None, None)
        send_kwargs.update(stream=True, timeout=(left, left), allow_redirects=False)
        resp = session.send(nxt, **send_kwargs)
    return resp


def _fetch(
    url: str,
    method: str,
    headers: Mapping[str, str] | None,
    start: float,
    deadline: float,
    cancelled: threading.Event,
) -> ProbeOutcome:
    session = requests.Session()
    try:
        resp = _send_with_redirects(session, method, url, headers, deadline)
        try:
            body = _read_body(resp, deadline, cancelled)
        finally:
            resp.close()
        return ProbeOutcome(
            ok=True,
            duration_ms=_elapsed_ms(start),
            status=resp.status_code,
            final_url=resp.url or url,
            headers={name: resp.headers.get(name, "") for name in CAPTURED_HEADERS},
            body=body,
        )
    except (_DeadlineExceeded, requests.Timeout, ReadTimeoutError):
        return ProbeOutcome.failure(TIMEOUT, _elapsed_ms(start))
    except (requests.RequestException, Urllib3HTTPError) as e:
        return ProbeOutcome.failure(
            NETWORK_ERROR, _elapsed_ms(start), error=f"{e.__class__.__name__}: {e}"
        )
    finally:
        session.close()


def probe(
    url: str,
    method: str = "GET",
    timeout_ms: int = 10_000,
    headers: Mapping[str, str] | None = None,
) -> ProbeOutcome:
    """Single HTTP attempt bounded by ``timeout_ms`` of wall-clock time.

    The request runs on its own worker thread with its own session; the
    caller stops waiting at the deadline whatever the socket is doing
    (slow redirect chains, headers sent byte by byte). Socket timeouts are
    set to the remaining budget so an abandoned worker winds down shortly
    after. Nothing is reused between attempts.
    """
    timeout_s = timeout_ms / 1000
    start = time.perf_counter()
    deadline = start + timeout_s
    cancelled = threading.Event()
    box: dict[str, object] = {}

    def _attempt() -> None:
        try:
            box["outcome"] = _fetch(url, method, headers, start, deadline, cancelled)
        except Exception as exc:
            box["error"] = exc

    worker = threading.Thread(target=_attempt, name="sitewatch-probe", daemon=True)
    worker.start()
    worker.join(timeout_s)
    if worker.is_alive():
        cancelled.set()
        return ProbeOutcome.failure(TIMEOUT, _elapsed_ms(start))
    if "error" in box:
        raise box["error"]
    return box["outcome"]
