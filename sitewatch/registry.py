from __future__ import annotations

import base64
import binascii
import json
import logging
from pathlib import Path
from typing import Any, List

import requests
import yaml
from pydantic import ValidationError

from sitewatch.models import AppChecks, SitesConfig

logger = logging.getLogger(__name__)

GITHUB_API_PREFIX = "https://api.github.com/"


class ConfigError(RuntimeError):
    """The site list could not be loaded or parsed."""


def parse_sites(data: Any, source: str) -> List[AppChecks]:
    if data is None:
        data = []
    try:
        return SitesConfig.validate_python(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid site list from {source}: {exc}") from exc


def load_local_sites(path: Path | str) -> List[AppChecks]:
    """Read a site list from disk.

    JSON is a subset of YAML, so both ``sites.json`` and ``sites.yml`` work.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Missing site list at {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Cannot read site list at {path}: {exc}") from exc
    return parse_sites(data, str(path))


def _decode_github_payload(payload: Any) -> Any:
    if isinstance(payload, dict) and payload.get("content"):
        try:
            decoded = base64.b64decode(payload["content"]).decode("utf-8")
            return json.loads(decoded)
        except (binascii.Error, UnicodeDecodeError, ValueError) as exc:
            raise ConfigError(f"Cannot decode GitHub content: {exc}") from exc
    if isinstance(payload, list):
        return payload
    raise ConfigError("GitHub API payload has neither content nor a site list")


def load_remote_sites(
    url: str, token: str | None = None, timeout_s: float = 15
) -> List[AppChecks]:
    is_github_api = url.startswith(GITHUB_API_PREFIX)
    headers: dict[str, str] = {}
    if is_github_api:
        headers["Accept"] = "application/vnd.github.v3+json"
        if token:
            headers["Authorization"] = f"Bearer {token}"

    try:
        resp = requests.get(url, headers=headers, timeout=timeout_s)
    except requests.RequestException as exc:
        raise ConfigError(
            f"Failed to fetch site list: {exc.__class__.__name__}: {exc}"
        ) from exc

    if resp.status_code >= 400:
        label = "GitHub API" if is_github_api else "Config"
        raise ConfigError(f"{label} HTTP {resp.status_code}")

    try:
        payload = resp.json()
    except ValueError as exc:
        snippet = resp.text[:240].replace("\n", "\\n")
        raise ConfigError(f"Site list is not valid JSON: {snippet}") from exc

    if is_github_api:
        payload = _decode_github_payload(payload)
    return parse_sites(payload, url)


def load_sites(cfg) -> List[AppChecks]:
    """Remote list when configured, local file otherwise or as fallback."""
    if cfg.SITES_CONFIG_URL:
        try:
            return load_remote_sites(
                cfg.SITES_CONFIG_URL,
                token=cfg.GITHUB_TOKEN,
                timeout_s=cfg.CONFIG_FETCH_TIMEOUT_SECONDS,
            )
        except ConfigError as exc:
            logger.warning("Remote config load failed, using local file: %s", exc)
    return load_local_sites(cfg.SITES_CONFIG_PATH)
