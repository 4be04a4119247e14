"""Remote record store contract with Firestore and in-memory implementations."""

from __future__ import annotations

import logging
import threading
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any, Protocol

from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions

from .records import FIELD_CREATED_AT

logger = logging.getLogger(__name__)

Document = tuple[str, dict[str, Any]]
SnapshotCallback = Callable[[list[Document]], None]
ErrorCallback = Callable[[Exception], None]


class Subscription(Protocol):
    @property
    def is_active(self) -> bool: ...

    def unsubscribe(self) -> None: ...


class RecordStore(Protocol):
    """Operations the dashboard needs from the remote document store."""

    def create(self, collection_path: str, fields: Mapping[str, Any]) -> str: ...

    def delete(self, collection_path: str, record_id: str) -> None: ...

    def subscribe(
        self,
        collection_path: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Subscription: ...


class FirestoreSubscription:
    def __init__(self, watch: Any) -> None:
        self._watch = watch
        self._lock = threading.Lock()
        self._released = False

    def unsubscribe(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
        self._watch.unsubscribe()

    @property
    def is_active(self) -> bool:
        # The watch closes itself without a callback on non-retryable errors.
        return not self._released and bool(self._watch.is_active)


class FirestoreStore:
    """``RecordStore`` backed by Cloud Firestore through ``firebase_admin``."""

    def __init__(self, client: Any) -> None:
        self._client = client

    @classmethod
    def from_app(cls, app: Any) -> "FirestoreStore":
        return cls(firestore.client(app))

    def create(self, collection_path: str, fields: Mapping[str, Any]) -> str:
        payload = dict(fields)
        payload[FIELD_CREATED_AT] = firestore.SERVER_TIMESTAMP
        _, ref = self._client.collection(collection_path).add(payload)
        logger.info("Created record %s in %s", ref.id, collection_path)
        return ref.id

    def delete(self, collection_path: str, record_id: str) -> None:
        try:
            self._client.collection(collection_path).document(record_id).delete()
        except gcp_exceptions.NotFound:
            logger.info("Record %s already absent from %s", record_id, collection_path)

    def subscribe(
        self,
        collection_path: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> FirestoreSubscription:
        # Firestore reports a dead stream only through the watch going
        # inactive, so on_error is never called here; see is_active.
        def _handle(col_snapshot, changes, read_time) -> None:
            on_snapshot([(doc.id, doc.to_dict() or {}) for doc in col_snapshot])

        watch = self._client.collection(collection_path).on_snapshot(_handle)
        return FirestoreSubscription(watch)


class InMemorySubscription:
    def __init__(self, store: "InMemoryStore", collection_path: str, key: int) -> None:
        self._store = store
        self._collection_path = collection_path
        self._key = key

    @property
    def is_active(self) -> bool:
        return self._key in self._store._listeners.get(self._collection_path, {})

    def unsubscribe(self) -> None:
        self._store._listeners.get(self._collection_path, {}).pop(self._key, None)


class InMemoryStore:
    """Synchronous ``RecordStore`` used by tests, scripts and local demos.

    Every mutation delivers a full snapshot to the collection's listeners.
    ``fail_next`` injects one failure into the named operation, and with
    ``pending_timestamps`` set new documents are created without ``createdAt``
    until :meth:`acknowledge` stamps them.
    """

    def __init__(self, *, pending_timestamps: bool = False, clock: Callable[[], datetime] | None = None) -> None:
        self.pending_timestamps = pending_timestamps
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._listeners: dict[str, dict[int, tuple[SnapshotCallback, ErrorCallback]]] = {}
        self._failures: dict[str, Exception] = {}
        self._next_key = 0

    def fail_next(self, operation: str, error: Exception | None = None) -> None:
        self._failures[operation] = error or RuntimeError(f"{operation} failed")

    def _maybe_fail(self, operation: str) -> None:
        error = self._failures.pop(operation, None)
        if error is not None:
            raise error

    def documents(self, collection_path: str) -> list[Document]:
        docs = self._collections.get(collection_path, {})
        return [(doc_id, dict(fields)) for doc_id, fields in docs.items()]

    def create(self, collection_path: str, fields: Mapping[str, Any]) -> str:
        self._maybe_fail("create")
        doc_id = uuid.uuid4().hex[:20]
        payload = dict(fields)
        payload[FIELD_CREATED_AT] = None if self.pending_timestamps else self._clock()
        self._collections.setdefault(collection_path, {})[doc_id] = payload
        self._notify(collection_path)
        return doc_id

    def delete(self, collection_path: str, record_id: str) -> None:
        self._maybe_fail("delete")
        removed = self._collections.get(collection_path, {}).pop(record_id, None)
        if removed is not None:
            self._notify(collection_path)

    def acknowledge(self, collection_path: str, record_id: str) -> None:
        """Resolve a pending server timestamp."""

        self._collections[collection_path][record_id][FIELD_CREATED_AT] = self._clock()
        self._notify(collection_path)

    def subscribe(
        self,
        collection_path: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> InMemorySubscription:
        self._maybe_fail("subscribe")
        key = self._next_key
        self._next_key += 1
        self._listeners.setdefault(collection_path, {})[key] = (on_snapshot, on_error)
        on_snapshot(self.documents(collection_path))
        return InMemorySubscription(self, collection_path, key)

    def break_stream(self, collection_path: str, error: Exception | None = None) -> None:
        """Fail every live subscription on ``collection_path``."""

        listeners = self._listeners.pop(collection_path, {})
        for _, on_error in listeners.values():
            on_error(error or RuntimeError("stream interrupted"))

    def listener_count(self, collection_path: str) -> int:
        return len(self._listeners.get(collection_path, {}))

    def _notify(self, collection_path: str) -> None:
        snapshot = self.documents(collection_path)
        for on_snapshot, _ in list(self._listeners.get(collection_path, {}).values()):
            on_snapshot(list(snapshot))
