from __future__ import annotations

from dataclasses import dataclass, field

TIMEOUT = "TIMEOUT"
NETWORK_ERROR = "NETWORK_ERROR"
EXPECTATION_FAILED = "EXPECTATION_FAILED"
INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class ProbeOutcome:
    ok: bool
    duration_ms: int
    status: int | None = None
    final_url: str | None = None
    headers: dict[str, str] = field(default_factory=dict)
    body: str = ""
    error_kind: str | None = None
    error: str | None = None

    @classmethod
    def failure(cls, error_kind: str, duration_ms: int, error: str | None = None) -> "ProbeOutcome":
        return cls(ok=False, duration_ms=duration_ms, error_kind=error_kind, error=error)


@dataclass(frozen=True)
class Evaluation:
    ok: bool
    duration_ms: int
    status: int | None = None
    reason: str | None = None
    final_url: str | None = None
    headers: dict[str, str] | None = None
    body: str | None = None
