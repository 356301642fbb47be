from __future__ import annotations

from typing import Any

from policyhub.dashboard import CATEGORY_ENDPOINTS, Dashboard
from policyhub.schemas import AuthSession


class _StubResponse:
    def __init__(self, status_code: int, payload: Any = None) -> None:
        self.status_code = status_code
        self._payload = payload

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        return self._payload


class _StubHttp:
    def __init__(self, responses: dict[str, Any]) -> None:
        self.responses = responses
        self.calls: list[tuple[str, dict[str, str]]] = []

    def get(self, url: str, headers: dict[str, str], **kwargs: Any) -> _StubResponse:
        self.calls.append((url, headers))
        result = self.responses[url]
        if isinstance(result, Exception):
            raise result
        return result


class _StubSessions:
    def __init__(self, session: AuthSession | None, sign_out_error: Exception | None = None) -> None:
        self.session = session
        self.sign_out_error = sign_out_error
        self.signed_out = False

    def get_session(self) -> AuthSession | None:
        return self.session

    def sign_out(self) -> None:
        if self.sign_out_error is not None:
            raise self.sign_out_error
        self.signed_out = True


BASE = "http://api.local"
SESSION = AuthSession(
    access_token="tok-123",
    refresh_token=None,
    expires_at=None,
    user_id="u-1",
    email="pat@example.com",
)


def _url(tab: str) -> str:
    return BASE + CATEGORY_ENDPOINTS[tab]


def test_fetch_attaches_bearer_token_and_caches_rows() -> None:
    rows = [{"policy_number": "P-1", "premium": 120}]
    http = _StubHttp({_url("policies"): _StubResponse(200, rows)})
    dashboard = Dashboard(_StubSessions(SESSION), BASE, http=http)

    dashboard.fetch_data("policies")

    assert dashboard.data_map == {"policies": rows}
    assert dashboard.error is None
    assert dashboard.loading is False
    url, headers = http.calls[0]
    assert url == "http://api.local/api/policyholder/mypolicies"
    assert headers["Authorization"] == "Bearer tok-123"


def test_no_session_redirects_to_login_without_http_call() -> None:
    http = _StubHttp({})
    dashboard = Dashboard(_StubSessions(None), BASE, http=http)

    for tab in CATEGORY_ENDPOINTS:
        dashboard.fetch_data(tab)

    assert dashboard.redirect_to == "/login"
    assert http.calls == []
    assert dashboard.data_map == {}
    assert dashboard.loading is False


def test_failed_fetch_leaves_other_categories_untouched() -> None:
    policies = [{"policy_number": "P-1"}]
    claims = [{"id": "C-1", "public_status": "SUBMITTED"}]
    http = _StubHttp(
        {
            _url("policies"): _StubResponse(200, policies),
            _url("claims"): _StubResponse(200, claims),
            _url("payments"): _StubResponse(500, {"error": "boom"}),
        }
    )
    dashboard = Dashboard(_StubSessions(SESSION), BASE, http=http)
    dashboard.fetch_data("policies")
    dashboard.fetch_data("claims")

    dashboard.select_tab("payments")

    assert dashboard.error == "Failed to fetch data."
    assert dashboard.data_map == {"policies": policies, "claims": claims}


def test_failed_refresh_keeps_previous_rows_for_same_category() -> None:
    first = [{"id": "C-1"}]
    http = _StubHttp({_url("claims"): _StubResponse(200, first)})
    dashboard = Dashboard(_StubSessions(SESSION), BASE, http=http)
    dashboard.select_tab("claims")

    http.responses[_url("claims")] = _StubResponse(403)
    dashboard.refresh()

    assert dashboard.error == "Failed to fetch data."
    assert dashboard.data_map["claims"] == first


def test_exception_becomes_generic_message() -> None:
    http = _StubHttp({_url("help"): ConnectionError("network down")})
    dashboard = Dashboard(_StubSessions(SESSION), BASE, http=http)

    dashboard.select_tab("help")

    assert dashboard.error == "An unexpected error occurred."
    assert dashboard.loading is False


def test_session_lookup_error_becomes_generic_message() -> None:
    class _BrokenSessions(_StubSessions):
        def get_session(self) -> AuthSession | None:
            raise RuntimeError("auth provider down")

    http = _StubHttp({})
    dashboard = Dashboard(_BrokenSessions(None), BASE, http=http)

    dashboard.fetch_data("status")

    assert dashboard.error == "An unexpected error occurred."
    assert http.calls == []


def test_unknown_category_is_rejected() -> None:
    http = _StubHttp({})
    dashboard = Dashboard(_StubSessions(SESSION), BASE, http=http)

    dashboard.fetch_data("invoices")

    assert dashboard.error == "Invalid data type requested."
    assert http.calls == []


def test_successful_fetch_clears_previous_error() -> None:
    http = _StubHttp(
        {
            _url("status"): _StubResponse(502),
            _url("profile"): _StubResponse(200, [{"id": "u-1", "full_name": "Pat Doe"}]),
        }
    )
    dashboard = Dashboard(_StubSessions(SESSION), BASE, http=http)
    dashboard.select_tab("status")
    assert dashboard.error

    dashboard.select_tab("profile")

    assert dashboard.error is None
    assert dashboard.display_name == "Pat Doe"


def test_display_name_prefers_user_name() -> None:
    dashboard = Dashboard(_StubSessions(SESSION), BASE, http=_StubHttp({}), user={"name": "Sam"})
    assert dashboard.display_name == "Sam"
    assert Dashboard(_StubSessions(SESSION), BASE, http=_StubHttp({})).display_name == "Policyholder"


def test_sign_out_redirects_home() -> None:
    sessions = _StubSessions(SESSION)
    dashboard = Dashboard(sessions, BASE, http=_StubHttp({}))

    dashboard.sign_out()

    assert sessions.signed_out is True
    assert dashboard.redirect_to == "/"


def test_sign_out_failure_stays_on_dashboard() -> None:
    dashboard = Dashboard(_StubSessions(SESSION, RuntimeError("logout failed")), BASE, http=_StubHttp({}))

    dashboard.sign_out()

    assert dashboard.redirect_to is None


def test_single_object_payload_is_cached_as_one_row() -> None:
    profile = {"id": "u-1", "full_name": "Pat Doe"}
    http = _StubHttp({_url("profile"): _StubResponse(200, profile)})
    dashboard = Dashboard(_StubSessions(SESSION), BASE, http=http)

    dashboard.select_tab("profile")

    assert dashboard.data_map["profile"] == [profile]
    assert dashboard.display_name == "Pat Doe"
    html = dashboard.render()
    assert "Pat Doe" in html
    assert "<th>full_name</th>" in html


def test_non_list_payload_renders_no_data() -> None:
    http = _StubHttp({_url("help"): _StubResponse(200, "see FAQ")})
    dashboard = Dashboard(_StubSessions(SESSION), BASE, http=http)

    dashboard.select_tab("help")

    assert dashboard.data_map["help"] == []
    assert dashboard.error is None
    assert "No data found." in dashboard.render()


def test_login_redirect_clears_after_session_returns() -> None:
    sessions = _StubSessions(None)
    http = _StubHttp({_url("policies"): _StubResponse(200, [{"policy_number": "P-1"}])})
    dashboard = Dashboard(sessions, BASE, http=http)
    dashboard.fetch_data("policies")
    assert dashboard.redirect_to == "/login"

    sessions.session = SESSION
    dashboard.fetch_data("policies")

    assert dashboard.redirect_to is None
    assert dashboard.data_map["policies"] == [{"policy_number": "P-1"}]
