from __future__ import annotations

import argparse
import json
import os
from dataclasses import replace
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from .auth import AuthClient
from .claims import submit_claim
from .config import load_settings
from .dashboard import CATEGORY_ENDPOINTS, Dashboard
from .errors import AuthError
from .logging_setup import configure_logging
from .preflight import run_preflight


def _json_print(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=True))


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="policyhub", description="PolicyHub CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    web = sub.add_parser("serve-web", help="Run the PolicyHub web service")
    web.add_argument("--host", default="127.0.0.1")
    web.add_argument("--port", type=int, default=8000)
    web.add_argument("--reload", action="store_true")

    doctor = sub.add_parser("doctor", help="Run environment and runtime preflight checks")
    doctor.add_argument("--strict", action="store_true", help="Treat warnings as failures")

    submit = sub.add_parser("submit-claim", help="Run a claim submission against the fraud service")
    submit.add_argument("--file", required=True, help="JSON claim payload")
    submit.add_argument("--host", default=None, help="Host to derive the service URL from")

    dash = sub.add_parser("dashboard", help="Fetch one dashboard category and print it as HTML")
    dash.add_argument("--tab", choices=sorted(CATEGORY_ENDPOINTS), default="policies")
    dash.add_argument("--email", default=os.getenv("POLICYHUB_EMAIL"))
    dash.add_argument("--password", default=os.getenv("POLICYHUB_PASSWORD"))

    return parser


def main() -> None:
    project_root = Path(__file__).resolve().parents[1]
    load_dotenv(project_root / ".env", override=False)

    settings = load_settings()
    configure_logging(settings)
    parser = _build_parser()
    args = parser.parse_args()

    if args.command == "serve-web":
        import uvicorn

        uvicorn.run(
            "policyhub.web_app:create_web_app",
            host=args.host,
            port=args.port,
            reload=bool(args.reload),
            factory=True,
        )
        return

    if args.command == "doctor":
        report = run_preflight(project_root=project_root)
        if args.strict and report.get("summary", {}).get("warnings", 0) > 0 and report["status"] != "fail":
            report["status"] = "fail"
            report["strict_override"] = "warnings_promoted_to_failures"
        _json_print(report)
        return

    if args.command == "submit-claim":
        raw_body = Path(args.file).read_text(encoding="utf-8")
        if not args.host and not settings.public_base_url:
            settings = replace(settings, public_base_url=settings.dashboard_api_url)
        status_code, payload = submit_claim(raw_body, args.host, settings)
        _json_print({"status_code": status_code, "response": payload})
        return

    if args.command == "dashboard":
        try:
            auth = AuthClient.from_settings(settings)
            if args.email and args.password:
                auth.sign_in_with_password(args.email, args.password)
        except AuthError as exc:
            _json_print({"error": "sign_in_failed", "detail": str(exc)})
            return

        dashboard = Dashboard(
            session_provider=auth,
            base_url=settings.dashboard_api_url,
            timeout=settings.http_timeout,
        )
        dashboard.select_tab(args.tab)
        if dashboard.redirect_to:
            _json_print({"redirect_to": dashboard.redirect_to})
            return
        print(dashboard.render())
        return

    parser.error(f"Unknown command: {args.command}")


if __name__ == "__main__":
    main()
