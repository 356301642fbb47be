"""Policyholder dashboard: per-category fetches, cached rows and HTML rendering."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from pathlib import Path
from typing import Any, Protocol

import requests
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .schemas import AuthSession, Claim, ClaimStatus, Profile

logger = logging.getLogger(__name__)

CATEGORY_ENDPOINTS: dict[str, str] = {
    "policies": "/api/policyholder/mypolicies",
    "claims": "/api/policyholder/myclaims",
    "payments": "/api/policyholder/mypayments",
    "status": "/api/policyholder/mystatus",
    "profile": "/api/policyholder/profile/display",
    "help": "/api/support",
}
DEFAULT_TAB = "policies"

LOGIN_PATH = "/login"
HOME_PATH = "/"
SUBMIT_CLAIM_PATH = "/dashboard/claims/submit"
EDIT_PROFILE_PATH = "/dashboard/profile/edit"

INVALID_TYPE_MESSAGE = "Invalid data type requested."
FETCH_FAILED_MESSAGE = "Failed to fetch data."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred."
NO_DATA_MESSAGE = "No data found."
NO_CLAIMS_MESSAGE = 'No claims found. Click "Submit a New Claim" to file a claim.'

BADGE_SUBMITTED = "badge badge-blue"
BADGE_IN_REVIEW = "badge badge-yellow"
BADGE_DEFAULT = "badge badge-green"

DESCRIPTION_PREVIEW_CHARS = 60
MAX_AMOUNT_DIGITS = 64
CLAIM_COLUMNS = ("Claim ID", "Type", "Date", "Amount", "Status", "Description")

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


class SessionProvider(Protocol):
    def get_session(self) -> AuthSession | None: ...

    def sign_out(self) -> None: ...


def status_badge_class(status: str | None) -> str:
    if status == ClaimStatus.SUBMITTED:
        return BADGE_SUBMITTED
    if status == ClaimStatus.IN_REVIEW:
        return BADGE_IN_REVIEW
    return BADGE_DEFAULT


def status_label(status: str | None) -> str:
    if status is None:
        return ""
    return str(status).replace("_", " ", 1)


def format_claim_date(value: Any) -> str:
    if value is None:
        return ""
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        return "Invalid Date"
    return f"{parsed.month}/{parsed.day}/{parsed.year}"


def format_amount(value: Any) -> str:
    """Group thousands and keep at most three fraction digits, e.g. 12,500.75."""
    if value is None:
        return ""
    try:
        number = Decimal(str(value))
    except InvalidOperation:
        return str(value)
    if not number.is_finite() or number.adjusted() > MAX_AMOUNT_DIGITS:
        return str(value)
    try:
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, number.adjusted() + 4)
            number = number.quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return str(value)
    text = f"{number:,f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def description_preview(text: str | None) -> str:
    text = text or ""
    if len(text) <= DESCRIPTION_PREVIEW_CHARS:
        return text
    return text[: DESCRIPTION_PREVIEW_CHARS - 1].rstrip() + "…"


def cell_text(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def as_rows(payload: Any) -> list[dict[str, Any]]:
    """Coerce an endpoint payload into a list of row dicts.

    A single object becomes one row; scalars inside a list become
    ``{"value": item}``; anything else yields no rows.
    """
    if isinstance(payload, dict):
        return [payload]
    if not isinstance(payload, list):
        return []
    return [item if isinstance(item, dict) else {"value": item} for item in payload]


def _build_environment() -> Environment:
    env = Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters.update(
        badge_class=status_badge_class,
        status_label=status_label,
        claim_date=format_claim_date,
        amount=format_amount,
        preview=description_preview,
        cell=cell_text,
    )
    env.globals.update(
        no_data_message=NO_DATA_MESSAGE,
        no_claims_message=NO_CLAIMS_MESSAGE,
        claim_columns=CLAIM_COLUMNS,
    )
    return env


template_env = _build_environment()


def render_table(rows: Any) -> str:
    # Headers come from the first row only; later rows are not normalized.
    return template_env.get_template("table.html").render(rows=as_rows(rows))


def render_claims_table(claims: Any) -> str:
    rows = [Claim.from_row(row) for row in as_rows(claims)]
    return template_env.get_template("claims_table.html").render(claims=rows)


class Dashboard:
    """State of one policyholder's dashboard view.

    ``data_map`` keeps the rows of the last successful fetch per category.
    A fetch only ever replaces the entry for the category it fetched.
    """

    def __init__(
        self,
        session_provider: SessionProvider,
        base_url: str,
        http: Any | None = None,
        user: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> None:
        self.session_provider = session_provider
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()
        self.user = user or {}
        self.timeout = timeout
        self.active_tab = DEFAULT_TAB
        self.data_map: dict[str, list[dict[str, Any]]] = {}
        self.loading = False
        self.error: str | None = None
        self.redirect_to: str | None = None

    def select_tab(self, tab: str) -> None:
        self.active_tab = tab
        self.fetch_data(tab)

    def refresh(self) -> None:
        self.fetch_data(self.active_tab)

    def fetch_data(self, tab: str) -> None:
        try:
            self.loading = True
            self.error = None
            self.redirect_to = None

            endpoint = CATEGORY_ENDPOINTS.get(tab)
            if endpoint is None:
                self.error = INVALID_TYPE_MESSAGE
                return

            session = self.session_provider.get_session()
            if session is None:
                self.redirect_to = LOGIN_PATH
                return

            response = self.http.get(
                f"{self.base_url}{endpoint}",
                headers={
                    "Content-Type": "application/json",
                    "Authorization": f"Bearer {session.access_token}",
                },
                timeout=self.timeout,
            )
            if not response.ok:
                logger.warning("Fetching %s returned HTTP %s", tab, response.status_code)
                self.error = FETCH_FAILED_MESSAGE
                return

            self.data_map[tab] = as_rows(response.json())
        except Exception as exc:
            logger.error("Fetching %s failed: %s", tab, exc)
            self.error = UNEXPECTED_ERROR_MESSAGE
        finally:
            self.loading = False

    def sign_out(self) -> None:
        try:
            self.session_provider.sign_out()
            self.redirect_to = HOME_PATH
        except Exception as exc:
            logger.error("Failed to sign out: %s", exc)

    @property
    def rows(self) -> list[dict[str, Any]]:
        return self.data_map.get(self.active_tab) or []

    @property
    def display_name(self) -> str:
        if self.user.get("name"):
            return str(self.user["name"])
        profile_rows = self.data_map.get("profile") or []
        if profile_rows and profile_rows[0].get("id"):
            profile = Profile.from_row(profile_rows[0])
            if profile.full_name:
                return profile.full_name
        return "Policyholder"

    def template_context(self) -> dict[str, Any]:
        return {
            "tabs": list(CATEGORY_ENDPOINTS),
            "active_tab": self.active_tab,
            "display_name": self.display_name,
            "loading": self.loading,
            "error": self.error,
            "rows": self.rows,
            "claims": [Claim.from_row(row) for row in self.rows],
            "submit_claim_path": SUBMIT_CLAIM_PATH,
            "edit_profile_path": EDIT_PROFILE_PATH,
        }

    def render(self) -> str:
        return template_env.get_template("dashboard.html").render(**self.template_context())
