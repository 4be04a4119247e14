"""Configuration for the metrics dashboard.

Values come from Streamlit secrets first and environment variables second.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import firebase_admin
import streamlit as st
from firebase_admin import credentials

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_APP_ID = "default-app-id"
DEFAULT_POLL_SECONDS = 2.0
FIREBASE_APP_NAME = "metrics-dashboard"


@dataclass(frozen=True)
class Settings:
    service_account_info: dict[str, Any]
    web_api_key: str
    app_id: str = DEFAULT_APP_ID
    initial_auth_token: str | None = None
    poll_seconds: float = DEFAULT_POLL_SECONDS

    def collection_path(self, identity: str) -> str:
        return f"artifacts/{self.app_id}/users/{identity}/dashboard_data"


def _streamlit_secret(key: str) -> Any:
    try:
        return st.secrets.get(key)
    except Exception:
        # No secrets.toml outside a configured Streamlit deployment.
        return None


def _lookup(key: str, source: Mapping[str, Any] | None, environ: Mapping[str, str]) -> Any:
    value = source.get(key) if source is not None else _streamlit_secret(key)
    if value in (None, ""):
        value = environ.get(key)
    return value if value not in (None, "") else None


def load_settings(
    source: Mapping[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Resolve :class:`Settings`, raising :class:`ConfigError` when incomplete.

    ``source`` replaces Streamlit secrets when given; ``environ`` defaults to
    ``os.environ``.
    """

    env = os.environ if environ is None else environ

    raw_account = _lookup("FIREBASE_SERVICE_ACCOUNT_JSON", source, env)
    if raw_account is None:
        raise ConfigError("FIREBASE_SERVICE_ACCOUNT_JSON is not set. Add it to Streamlit secrets or the environment.")
    if isinstance(raw_account, Mapping):
        account = dict(raw_account)
    else:
        try:
            account = json.loads(raw_account)
        except (TypeError, ValueError) as exc:
            raise ConfigError(f"FIREBASE_SERVICE_ACCOUNT_JSON is not valid JSON: {exc}") from exc
    if not isinstance(account, dict) or "project_id" not in account:
        raise ConfigError("FIREBASE_SERVICE_ACCOUNT_JSON must be a service-account object with a project_id.")

    web_api_key = _lookup("FIREBASE_WEB_API_KEY", source, env)
    if web_api_key is None:
        raise ConfigError("FIREBASE_WEB_API_KEY is not set. Add it to Streamlit secrets or the environment.")

    poll_raw = _lookup("DASHBOARD_POLL_SECONDS", source, env)
    try:
        poll_seconds = float(poll_raw) if poll_raw is not None else DEFAULT_POLL_SECONDS
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"DASHBOARD_POLL_SECONDS must be a number, got {poll_raw!r}") from exc
    if poll_seconds <= 0:
        raise ConfigError("DASHBOARD_POLL_SECONDS must be positive.")

    return Settings(
        service_account_info=account,
        web_api_key=str(web_api_key),
        app_id=str(_lookup("DASHBOARD_APP_ID", source, env) or DEFAULT_APP_ID),
        initial_auth_token=_lookup("INITIAL_AUTH_TOKEN", source, env),
        poll_seconds=poll_seconds,
    )


def init_firebase_app(settings: Settings) -> firebase_admin.App:
    """Return the dashboard's Firebase Admin app, initialising it once per process."""

    try:
        return firebase_admin.get_app(FIREBASE_APP_NAME)
    except ValueError:
        pass

    try:
        cred = credentials.Certificate(settings.service_account_info)
        app = firebase_admin.initialize_app(cred, name=FIREBASE_APP_NAME)
    except ValueError as exc:
        raise ConfigError(f"Firebase initialisation failed: {exc}") from exc
    logger.info("Initialised Firebase app for project %s", settings.service_account_info.get("project_id"))
    return app
