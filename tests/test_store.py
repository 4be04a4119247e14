"""Firestore adapter behaviour against a fake client."""

from __future__ import annotations

from firebase_admin import firestore
from google.api_core import exceptions as gcp_exceptions
from metrics_dashboard.controller import DashboardController
from metrics_dashboard.identity import StaticIdentityProvider
from metrics_dashboard.session import Backend, SessionState, SyncSession
from metrics_dashboard.store import FirestoreStore, InMemoryStore


class _Ref:
    def __init__(self, doc_id: str) -> None:
        self.id = doc_id


class _Doc:
    def __init__(self, doc_id: str, fields: dict) -> None:
        self.id = doc_id
        self._fields = fields

    def to_dict(self) -> dict:
        return dict(self._fields)


class _DocumentHandle:
    def __init__(self, collection: "_Collection", doc_id: str) -> None:
        self._collection = collection
        self._doc_id = doc_id

    def delete(self) -> None:
        if self._collection.missing_raises and self._doc_id not in self._collection.docs:
            raise gcp_exceptions.NotFound("no such document")
        self._collection.docs.pop(self._doc_id, None)


class _Watch:
    def __init__(self) -> None:
        self.unsubscribed = 0
        self.is_active = True

    def unsubscribe(self) -> None:
        self.unsubscribed += 1


class _Collection:
    def __init__(self) -> None:
        self.docs: dict[str, dict] = {}
        self.missing_raises = False
        self.callback = None
        self.watch = _Watch()

    def add(self, payload: dict):
        doc_id = f"doc-{len(self.docs) + 1}"
        self.docs[doc_id] = payload
        return None, _Ref(doc_id)

    def document(self, doc_id: str) -> _DocumentHandle:
        return _DocumentHandle(self, doc_id)

    def on_snapshot(self, callback):
        self.callback = callback
        return self.watch


class _Client:
    def __init__(self) -> None:
        self.collections: dict[str, _Collection] = {}

    def collection(self, path: str) -> _Collection:
        return self.collections.setdefault(path, _Collection())


PATH = "artifacts/app/users/u1/dashboard_data"


def test_create_adds_server_timestamp() -> None:
    client = _Client()
    store = FirestoreStore(client)

    doc_id = store.create(PATH, {"dmCount": 3})
    assert doc_id == "doc-1"
    assert client.collection(PATH).docs[doc_id]["createdAt"] is firestore.SERVER_TIMESTAMP


def test_delete_missing_document_is_noop() -> None:
    client = _Client()
    client.collection(PATH).missing_raises = True
    store = FirestoreStore(client)

    store.delete(PATH, "gone")


def test_subscribe_converts_snapshot_and_unsubscribes_once() -> None:
    client = _Client()
    store = FirestoreStore(client)
    delivered: list = []
    errors: list = []

    subscription = store.subscribe(PATH, delivered.append, errors.append)
    client.collection(PATH).callback([_Doc("a", {"dmCount": 1})], [], None)

    assert delivered == [[("a", {"dmCount": 1})]]
    assert errors == []

    subscription.unsubscribe()
    subscription.unsubscribe()
    assert client.collection(PATH).watch.unsubscribed == 1
    assert not subscription.is_active


def test_closed_watch_moves_session_to_error() -> None:
    client = _Client()
    backend = Backend(
        store=FirestoreStore(client),
        identity_provider=StaticIdentityProvider("u1"),
        collection_path=lambda identity: PATH,
    )
    controller = DashboardController(SyncSession(lambda: backend))
    assert controller.start()

    collection = client.collection(PATH)
    collection.callback([_Doc("a", {"dmCount": 1})], [], None)
    assert controller.refresh() == 1
    assert controller.session.state is SessionState.SUBSCRIBED

    # A non-retryable RPC error closes the watch without any callback.
    collection.watch.is_active = False
    controller.refresh()

    assert controller.session.state is SessionState.ERROR
    assert "the server closed the connection" in controller.error
    assert collection.watch.unsubscribed == 1
    assert not controller.submit({"dm_count": "1"})


def test_in_memory_subscription_goes_inactive() -> None:
    store = InMemoryStore()
    subscription = store.subscribe(PATH, lambda documents: None, lambda exc: None)
    assert subscription.is_active

    store.break_stream(PATH)
    assert not subscription.is_active
