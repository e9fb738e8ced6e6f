from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

DEFAULT_TIMEOUT_S = 10.0
MIN_TIMEOUT_S = 1.0


class Check(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str = Field(..., min_length=1)
    url: str = Field(..., min_length=1)
    method: str = "GET"
    timeout_sec: Optional[float] = Field(default=None, alias="timeoutSec")
    retries: int = 0
    # Expectations are evaluated in this order; several may be set at once.
    expect_status: Optional[int] = Field(default=None, alias="expectStatus")
    expect_status_in: Optional[List[int]] = Field(default=None, alias="expectStatusIn")
    expect_status_lt: Optional[int] = Field(default=None, alias="expectStatusLt")
    must_contain: Optional[str] = Field(default=None, alias="mustContain")
    headers: Dict[str, str] = Field(default_factory=dict)

    @field_validator("method", mode="before")
    @classmethod
    def _method_upper(cls, v: Any) -> str:
        if not v:
            return "GET"
        return str(v).upper()

    @field_validator("timeout_sec", mode="before")
    @classmethod
    def _finite_timeout(cls, v: Any) -> Optional[float]:
        if v is None or isinstance(v, bool):
            return None
        try:
            value = float(v)
        except (TypeError, ValueError):
            return None
        return value if math.isfinite(value) else None

    @field_validator("retries", mode="before")
    @classmethod
    def _non_negative_retries(cls, v: Any) -> int:
        if v is None or isinstance(v, bool):
            return 0
        try:
            value = float(v)
        except (TypeError, ValueError):
            return 0
        if not math.isfinite(value):
            return 0
        return max(0, int(value))

    @field_validator("headers", mode="before")
    @classmethod
    def _headers_as_strings(cls, v: Any) -> Dict[str, str]:
        if not v:
            return {}
        return {str(k): str(val) for k, val in dict(v).items()}

    def timeout_ms(self, default_s: float = DEFAULT_TIMEOUT_S) -> int:
        seconds = default_s if self.timeout_sec is None else self.timeout_sec
        return int(max(MIN_TIMEOUT_S, seconds) * 1000)

    @property
    def attempts(self) -> int:
        return self.retries + 1


class AppChecks(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    app: str = Field(..., min_length=1)
    checks: List[Check] = Field(default_factory=list)


SitesConfig = TypeAdapter(List[AppChecks])


class CheckResult(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    app: str
    name: str
    url: str
    ok: bool
    status: Optional[int] = None
    reason: Optional[str] = None
    duration_ms: int = Field(default=0, alias="durationMs")
    url_final: Optional[str] = Field(default=None, alias="urlFinal")
    headers: Optional[Dict[str, str]] = None
    body_snippet: Optional[str] = Field(default=None, alias="bodySnippet")


class RunSummary(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    timestamp: str
    total: int = Field(ge=0)
    ok_count: int = Field(ge=0, alias="ok")
    ko_count: int = Field(ge=0, alias="ko")
    results: List[CheckResult] = Field(default_factory=list)

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
