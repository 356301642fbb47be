from __future__ import annotations

from pathlib import Path

import requests
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool

from .auth import BearerTokenSessions
from .claims import submit_claim
from .config import load_settings
from .dashboard import DEFAULT_TAB, Dashboard, template_env
from .logging_setup import configure_logging
from .preflight import run_preflight


def create_web_app() -> FastAPI:
    project_root = Path(__file__).resolve().parents[1]
    load_dotenv(project_root / ".env", override=False)
    settings = load_settings()
    configure_logging(settings)

    app = FastAPI(title="PolicyHub")
    app.state.settings = settings
    app.state.fraud_http = requests.Session()
    app.state.dashboard_http = requests.Session()
    templates = Jinja2Templates(env=template_env)
    web_root = Path(__file__).resolve().parent / "web"

    @app.get("/")
    async def index() -> FileResponse:
        return FileResponse(web_root / "index.html")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/doctor")
    async def api_doctor(strict: bool = False) -> JSONResponse:
        report = run_preflight(project_root=project_root)
        if strict and report.get("summary", {}).get("warnings", 0) > 0 and report["status"] != "fail":
            report["status"] = "fail"
            report["strict_override"] = "warnings_promoted_to_failures"
        return JSONResponse(report)

    @app.post("/api/claims/submit")
    async def claims_submit(request: Request) -> JSONResponse:
        # Raw body: malformed JSON must reach the handler's own failure path.
        raw_body = await request.body()
        status_code, payload = await run_in_threadpool(
            submit_claim,
            raw_body,
            request.headers.get("host"),
            app.state.settings,
            app.state.fraud_http,
        )
        return JSONResponse(payload, status_code=status_code)

    @app.get("/dashboard")
    def dashboard_view(request: Request, tab: str = DEFAULT_TAB, refresh: bool = False) -> Response:
        sessions = BearerTokenSessions.from_request(
            request.headers.get("authorization"),
            request.cookies.get("access_token"),
        )
        dashboard = Dashboard(
            session_provider=sessions,
            base_url=app.state.settings.dashboard_api_url,
            http=app.state.dashboard_http,
            timeout=app.state.settings.http_timeout,
        )
        if refresh:
            dashboard.active_tab = tab
            dashboard.refresh()
        else:
            dashboard.select_tab(tab)
        if dashboard.redirect_to:
            return RedirectResponse(dashboard.redirect_to, status_code=303)
        return templates.TemplateResponse(request, "dashboard.html", dashboard.template_context())

    return app
