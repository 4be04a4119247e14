"""Synchronization session: identity acquisition and the live record subscription."""

from __future__ import annotations

import logging
import queue
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .config import Settings, init_firebase_app, load_settings
from .errors import AuthError, ConfigError, DashboardError, NotReadyError, SubscriptionError
from .identity import FirebaseIdentityProvider, IdentityProvider
from .records import Record, order_records
from .store import Document, FirestoreStore, RecordStore, Subscription

logger = logging.getLogger(__name__)

RecordsListener = Callable[[list[Record]], None]
ErrorListener = Callable[[DashboardError], None]


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AUTHENTICATING = "authenticating"
    READY = "ready"
    SUBSCRIBED = "subscribed"
    ERROR = "error"


@dataclass(frozen=True)
class Backend:
    """The remote collaborators a session talks to."""

    store: RecordStore
    identity_provider: IdentityProvider
    collection_path: Callable[[str], str]


def firebase_connector(load: Callable[[], Settings] = load_settings) -> Callable[[], Backend]:
    """Return a connector building a Firestore-backed :class:`Backend` on demand."""

    def _connect() -> Backend:
        settings = load()
        app = init_firebase_app(settings)
        return Backend(
            store=FirestoreStore.from_app(app),
            identity_provider=FirebaseIdentityProvider(app, settings.web_api_key),
            collection_path=settings.collection_path,
        )

    return _connect


class SyncSession:
    """Owns the identity and the single live subscription for one app session.

    Store callbacks may run on a library thread, so they only enqueue
    deliveries. :meth:`pump` applies them on the caller's thread in the order
    received; every snapshot replaces the record set wholesale.
    """

    def __init__(self, connector: Callable[[], Backend]) -> None:
        self._connector = connector
        self._backend: Backend | None = None
        self._subscription: Subscription | None = None
        self._deliveries: queue.Queue[tuple[str, int, Any]] = queue.Queue()
        self._generation = 0
        self._record_listeners: list[RecordsListener] = []
        self._error_listeners: list[ErrorListener] = []

        self.state = SessionState.UNINITIALIZED
        self.identity: str | None = None
        self.records: list[Record] = []
        self.last_error: DashboardError | None = None

    @property
    def backend(self) -> Backend:
        if self._backend is None:
            raise NotReadyError()
        return self._backend

    @property
    def collection_path(self) -> str:
        if self.identity is None:
            raise NotReadyError()
        return self.backend.collection_path(self.identity)

    @property
    def is_subscribed(self) -> bool:
        return self.state is SessionState.SUBSCRIBED

    def add_listener(self, on_records: RecordsListener, on_error: ErrorListener | None = None) -> None:
        self._record_listeners.append(on_records)
        if on_error is not None:
            self._error_listeners.append(on_error)

    def require_subscribed(self) -> None:
        if not self.is_subscribed:
            raise NotReadyError()

    def start(self, token: str | None = None) -> bool:
        """Acquire an identity and open the record subscription.

        With ``token`` the identity is resumed from it; without one an
        anonymous identity is established. Returns ``False`` when the session
        ended in the error state, with the cause in :attr:`last_error`.
        """

        if self.state is not SessionState.UNINITIALIZED:
            self.release()

        self.state = SessionState.AUTHENTICATING
        self.last_error = None
        logger.info("Authenticating (%s)", "token" if token else "anonymous")

        try:
            self._backend = self._connector()
        except ConfigError as exc:
            return self._fail(exc)
        except Exception as exc:
            logger.exception("Connecting to the record store failed")
            return self._fail(ConfigError(f"Could not connect to the data store: {exc}"))

        try:
            identity = self._backend.identity_provider.acquire_identity(token)
        except AuthError as exc:
            return self._fail(exc)
        except Exception as exc:
            logger.exception("Identity acquisition failed")
            return self._fail(AuthError(f"Sign-in failed: {exc}"))

        self.identity = identity
        self.state = SessionState.READY
        logger.info("Identity ready: %s", identity)
        return self._subscribe()

    def _subscribe(self) -> bool:
        self._generation += 1
        generation = self._generation
        path = self.collection_path

        def _on_snapshot(documents: list[Document]) -> None:
            self._deliveries.put(("snapshot", generation, documents))

        def _on_error(exc: Exception) -> None:
            self._deliveries.put(("error", generation, exc))

        try:
            self._subscription = self.backend.store.subscribe(path, _on_snapshot, _on_error)
        except Exception as exc:
            logger.exception("Subscribing to %s failed", path)
            return self._fail(SubscriptionError(f"Could not load your data: {exc}"))

        self.state = SessionState.SUBSCRIBED
        logger.info("Subscribed to %s", path)
        return True

    def pump(self) -> int:
        """Apply queued deliveries in order; returns how many were applied."""

        applied = 0
        while True:
            try:
                kind, generation, payload = self._deliveries.get_nowait()
            except queue.Empty:
                break
            # Deliveries from a released subscription are stale.
            if generation != self._generation or not self.is_subscribed:
                continue
            if kind == "error":
                self._teardown_with_error(payload)
            else:
                self._apply_snapshot(payload)
            applied += 1

        self._check_stream()
        return applied

    def _check_stream(self) -> None:
        subscription = self._subscription
        if self.is_subscribed and subscription is not None and not subscription.is_active:
            self._teardown_with_error(RuntimeError("the server closed the connection"))

    def _apply_snapshot(self, documents: list[Document]) -> None:
        try:
            records = order_records(Record.from_document(doc_id, fields) for doc_id, fields in documents)
        except (TypeError, ValueError) as exc:
            self._teardown_with_error(exc)
            return
        self.records = records
        for listener in list(self._record_listeners):
            listener(list(records))

    def _teardown_with_error(self, exc: Exception) -> None:
        logger.error("Record stream failed: %s", exc)
        self._release_subscription()
        self._fail(SubscriptionError(f"Live updates stopped: {exc}. Reload to reconnect."))

    def _fail(self, error: DashboardError) -> bool:
        self.state = SessionState.ERROR
        self.last_error = error
        logger.warning("Session error: %s", error)
        for listener in list(self._error_listeners):
            listener(error)
        return False

    def _release_subscription(self) -> None:
        subscription, self._subscription = self._subscription, None
        self._generation += 1
        if subscription is not None:
            subscription.unsubscribe()

    def release(self) -> None:
        """Tear down the subscription and forget the identity."""

        self._release_subscription()
        if self.identity is not None:
            logger.info("Released session for %s", self.identity)
        self.identity = None
        self.records = []
        self.state = SessionState.UNINITIALIZED
