import logging

from fastapi import FastAPI, HTTPException

from sitewatch.api_schemas import AlertTestResponse, ConfigResponse, HealthResponse
from sitewatch.config import settings
from sitewatch.models import RunSummary
from sitewatch.notifier import build_notifier
from sitewatch.registry import ConfigError, load_sites
from sitewatch.runner import run_all
from sitewatch.summary import summarize

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Sitewatch",
    version="1.0.0",
    description=(
        "Synthetic uptime monitor that loads a site list, runs HTTP checks "
        "with bounded concurrency and reports pass/fail per check."
    ),
)


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["system"],
    summary="Health Check",
    description="Liveness endpoint used by probes and orchestration.",
)
def health():
    return {"status": "ok"}


@app.get(
    "/config",
    response_model=ConfigResponse,
    tags=["system"],
    summary="Current Effective Config",
    description="Returns non-secret runtime config values.",
)
def config():
    notifier = build_notifier(settings)
    return {
        "sites_config_path": settings.SITES_CONFIG_PATH,
        "sites_config_url": settings.SITES_CONFIG_URL,
        "pool_size": settings.POOL_SIZE,
        "notifier": notifier.channel if notifier else None,
    }


@app.get(
    "/api/status",
    response_model=RunSummary,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    tags=["status"],
    summary="Run All Checks",
    description="Loads the site list, runs every check once and returns the run summary.",
)
def status():
    try:
        apps = load_sites(settings)
    except ConfigError as exc:
        logger.error("Site list unavailable: %s", exc)
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    return summarize(run_all(apps, pool_size=settings.POOL_SIZE))


@app.post(
    "/api/alerts/test",
    response_model=AlertTestResponse,
    tags=["alerts"],
    summary="Send Test Alert",
    description="Sends a test message through the configured notifier.",
)
def alerts_test():
    notifier = build_notifier(settings)
    if notifier is None:
        raise HTTPException(
            status_code=400,
            detail="TELEGRAM_TOKEN/TELEGRAM_CHAT_ID or NTFY_URL/NTFY_TOPIC must be configured",
        )

    outcome = notifier.notify("This is a test notification from sitewatch.")
    if not outcome.ok:
        raise HTTPException(status_code=502, detail=outcome.error or "delivery failed")
    return {
        "ok": True,
        "channel": notifier.channel,
        "chunks_sent": outcome.chunks_sent,
        "chunks_total": outcome.chunks_total,
    }
