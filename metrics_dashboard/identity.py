"""Identity acquisition through Firebase Authentication."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import requests
from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions

from .errors import AuthError

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1/accounts:{action}?key={key}"
REQUEST_TIMEOUT = 20


class IdentityProvider(Protocol):
    def acquire_identity(self, token: str | None = None) -> str: ...


class FirebaseIdentityProvider:
    """Two-branch identity policy.

    * A supplied ID token is verified with the Admin SDK and its ``uid`` used.
    * Without a token a fresh anonymous account is created.
    """

    def __init__(self, app: Any, web_api_key: str, session: requests.Session | None = None) -> None:
        self._app = app
        self._web_api_key = web_api_key
        self._http = session or requests.Session()

    def acquire_identity(self, token: str | None = None) -> str:
        if token:
            return self._verify_token(token)
        return self._sign_in_anonymously()

    def _verify_token(self, token: str) -> str:
        try:
            claims = firebase_auth.verify_id_token(token, app=self._app)
        except (ValueError, firebase_exceptions.FirebaseError) as exc:
            raise AuthError(f"Sign-in token was rejected: {exc}") from exc
        logger.info("Resumed identity from supplied token")
        return claims["uid"]

    def _sign_in_anonymously(self) -> str:
        data = self._post("signUp", {"returnSecureToken": True}, failure="Anonymous sign-in failed")
        logger.info("Established anonymous identity")
        return data["localId"]

    def sign_in_with_password(self, email: str, password: str) -> str:
        """Return an ID token for an existing email/password account."""

        payload = {"email": email, "password": password, "returnSecureToken": True}
        return self._post("signInWithPassword", payload, failure="Login failed")["idToken"]

    def register_with_password(self, email: str, password: str) -> str:
        """Create an email/password account and return its ID token."""

        payload = {"email": email, "password": password, "returnSecureToken": True}
        return self._post("signUp", payload, failure="Registration failed")["idToken"]

    def _post(self, action: str, payload: dict[str, Any], *, failure: str) -> dict[str, Any]:
        url = IDENTITY_TOOLKIT_URL.format(action=action, key=self._web_api_key)
        try:
            response = self._http.post(url, json=payload, timeout=REQUEST_TIMEOUT)
        except requests.RequestException as exc:
            raise AuthError(f"{failure}: {exc}") from exc
        if response.status_code != 200:
            try:
                message = response.json().get("error", {}).get("message", failure)
            except ValueError:
                message = response.text or failure
            raise AuthError(f"{failure}: {message}")
        return response.json()


class StaticIdentityProvider:
    """Offline provider returning a fixed identity; used with ``InMemoryStore``."""

    def __init__(self, identity: str = "local-user") -> None:
        self.identity = identity

    def acquire_identity(self, token: str | None = None) -> str:
        return self.identity
