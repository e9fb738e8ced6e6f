from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(description="Health status")


class ConfigResponse(BaseModel):
    sites_config_path: str
    sites_config_url: str | None = Field(default=None)
    pool_size: int = Field(ge=1)
    notifier: str | None = Field(default=None, description="Configured alert channel")


class AlertTestResponse(BaseModel):
    ok: bool
    channel: str
    chunks_sent: int = 0
    chunks_total: int = 0
