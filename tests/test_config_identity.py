"""Settings resolution and the identity acquisition policy."""

from __future__ import annotations

import json

import pytest
import requests
from metrics_dashboard import config, identity
from metrics_dashboard.errors import AuthError, ConfigError

SERVICE_ACCOUNT = {"type": "service_account", "project_id": "demo-project"}


def _source(**overrides: object) -> dict[str, object]:
    values: dict[str, object] = {
        "FIREBASE_SERVICE_ACCOUNT_JSON": json.dumps(SERVICE_ACCOUNT),
        "FIREBASE_WEB_API_KEY": "web-key",
    }
    values.update(overrides)
    return values


def test_load_settings_defaults() -> None:
    settings = config.load_settings(_source(), environ={})
    assert settings.service_account_info == SERVICE_ACCOUNT
    assert settings.app_id == config.DEFAULT_APP_ID
    assert settings.initial_auth_token is None
    assert settings.poll_seconds == config.DEFAULT_POLL_SECONDS
    assert settings.collection_path("uid-1") == "artifacts/default-app-id/users/uid-1/dashboard_data"


def test_load_settings_environment_fallback() -> None:
    source = _source(FIREBASE_WEB_API_KEY=None)
    environ = {"FIREBASE_WEB_API_KEY": "env-key", "DASHBOARD_APP_ID": "tenant-a", "DASHBOARD_POLL_SECONDS": "5"}
    settings = config.load_settings(source, environ=environ)
    assert settings.web_api_key == "env-key"
    assert settings.app_id == "tenant-a"
    assert settings.poll_seconds == 5.0


def test_load_settings_accepts_mapping_service_account() -> None:
    settings = config.load_settings(_source(FIREBASE_SERVICE_ACCOUNT_JSON=dict(SERVICE_ACCOUNT)), environ={})
    assert settings.service_account_info["project_id"] == "demo-project"


@pytest.mark.parametrize(
    "overrides, message",
    [
        ({"FIREBASE_SERVICE_ACCOUNT_JSON": None}, "FIREBASE_SERVICE_ACCOUNT_JSON is not set"),
        ({"FIREBASE_SERVICE_ACCOUNT_JSON": "{not json"}, "not valid JSON"),
        ({"FIREBASE_SERVICE_ACCOUNT_JSON": "[]"}, "project_id"),
        ({"FIREBASE_WEB_API_KEY": ""}, "FIREBASE_WEB_API_KEY is not set"),
        ({"DASHBOARD_POLL_SECONDS": "soon"}, "must be a number"),
        ({"DASHBOARD_POLL_SECONDS": "0"}, "must be positive"),
    ],
)
def test_load_settings_rejects_bad_config(overrides: dict, message: str) -> None:
    with pytest.raises(ConfigError, match=message):
        config.load_settings(_source(**overrides), environ={})


class _Response:
    def __init__(self, status_code: int, payload: dict) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = json.dumps(payload)

    def json(self) -> dict:
        return self._payload


class _Http:
    def __init__(self, response: _Response | Exception) -> None:
        self.response = response
        self.calls: list[tuple[str, dict]] = []

    def post(self, url: str, json: dict, timeout: int) -> _Response:
        self.calls.append((url, json))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def test_anonymous_branch_creates_account() -> None:
    http = _Http(_Response(200, {"localId": "anon-42", "idToken": "t"}))
    provider = identity.FirebaseIdentityProvider(app=None, web_api_key="web-key", session=http)

    assert provider.acquire_identity() == "anon-42"
    url, payload = http.calls[0]
    assert "accounts:signUp?key=web-key" in url
    assert payload == {"returnSecureToken": True}


def test_token_branch_verifies_with_admin_sdk(monkeypatch: pytest.MonkeyPatch) -> None:
    seen: list[str] = []

    def _verify(token: str, app=None) -> dict:
        seen.append(token)
        return {"uid": "user-7"}

    monkeypatch.setattr(identity.firebase_auth, "verify_id_token", _verify)
    http = _Http(_Response(500, {}))
    provider = identity.FirebaseIdentityProvider(app=None, web_api_key="web-key", session=http)

    assert provider.acquire_identity("id-token") == "user-7"
    assert seen == ["id-token"]
    assert http.calls == []


def test_token_branch_rejection_is_auth_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def _verify(token: str, app=None) -> dict:
        raise ValueError("malformed token")

    monkeypatch.setattr(identity.firebase_auth, "verify_id_token", _verify)
    provider = identity.FirebaseIdentityProvider(app=None, web_api_key="web-key", session=_Http(_Response(200, {})))

    with pytest.raises(AuthError, match="malformed token"):
        provider.acquire_identity("bad")


def test_password_login_surfaces_provider_message() -> None:
    http = _Http(_Response(400, {"error": {"message": "INVALID_PASSWORD"}}))
    provider = identity.FirebaseIdentityProvider(app=None, web_api_key="web-key", session=http)

    with pytest.raises(AuthError, match="Login failed: INVALID_PASSWORD"):
        provider.sign_in_with_password("a@example.com", "nope")


def test_register_returns_id_token() -> None:
    http = _Http(_Response(200, {"localId": "u", "idToken": "fresh-token"}))
    provider = identity.FirebaseIdentityProvider(app=None, web_api_key="web-key", session=http)

    assert provider.register_with_password("a@example.com", "secret123") == "fresh-token"
    assert http.calls[0][1]["email"] == "a@example.com"


def test_network_failure_is_auth_error() -> None:
    http = _Http(requests.ConnectionError("offline"))
    provider = identity.FirebaseIdentityProvider(app=None, web_api_key="web-key", session=http)

    with pytest.raises(AuthError, match="Anonymous sign-in failed: offline"):
        provider.acquire_identity()
