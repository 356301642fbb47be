from __future__ import annotations

import socket
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

from dotenv import load_dotenv

from .config import load_settings


def _check_dns(host: str) -> tuple[bool, str]:
    try:
        socket.gethostbyname(host)
        return True, "resolved"
    except Exception as exc:  # pragma: no cover
        return False, str(exc)


def run_preflight(project_root: str | Path | None = None) -> dict[str, Any]:
    root = Path(project_root) if project_root else Path(__file__).resolve().parents[1]
    load_dotenv(root / ".env", override=False)
    settings = load_settings()

    checks: list[dict[str, Any]] = []

    def add(name: str, ok: bool, severity: str, detail: str) -> None:
        checks.append({"name": name, "ok": ok, "severity": severity, "detail": detail})

    add("project_root", root.exists(), "fail", str(root))
    add("auth_url", bool(settings.auth_url), "warn", "Needed for dashboard sign-in")
    add("auth_anon_key", bool(settings.auth_anon_key), "warn", "Needed for dashboard sign-in")
    add(
        "fraud_analysis_timeout",
        settings.fraud_analysis_timeout > 0,
        "fail",
        f"{settings.fraud_analysis_timeout}s",
    )

    auth_host = urlparse(settings.auth_url).hostname if settings.auth_url else None
    if auth_host:
        ok, detail = _check_dns(auth_host)
        add(f"dns:{auth_host}", ok, "warn", detail)

    failed = [c for c in checks if not c["ok"] and c["severity"] == "fail"]
    warnings = [c for c in checks if not c["ok"] and c["severity"] == "warn"]

    status = "ok"
    if failed:
        status = "fail"
    elif warnings:
        status = "warn"

    return {
        "status": status,
        "settings": {
            "app_env": settings.app_env,
            "public_base_url": settings.public_base_url,
            "dashboard_api_url": settings.dashboard_api_url,
            "fraud_analysis_timeout": settings.fraud_analysis_timeout,
        },
        "summary": {
            "passed": len([c for c in checks if c["ok"]]),
            "failed": len(failed),
            "warnings": len(warnings),
        },
        "checks": checks,
    }
