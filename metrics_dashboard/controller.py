"""Dashboard orchestration: submit and remove entries, keep the derived view current."""

from __future__ import annotations

import logging
from collections.abc import Iterable, MutableMapping
from dataclasses import dataclass
from typing import Any

import pandas as pd

from . import features, insights, viz
from .errors import DashboardError, PersistenceError
from .records import Record
from .session import SyncSession
from .validate import FORM_FIELDS, validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardView:
    records: tuple[Record, ...]
    metrics: tuple[insights.SummaryMetric, ...]
    presentation: viz.Presentation
    history: pd.DataFrame


def build_view(records: Iterable[Record]) -> DashboardView:
    """Re-derive every downstream value from one snapshot."""

    items = tuple(records)
    metrics = tuple(insights.aggregate(items))
    return DashboardView(
        records=items,
        metrics=metrics,
        presentation=viz.present(metrics),
        history=features.history_frame(items),
    )


class DashboardController:
    """Validator, store requests and subscription-driven refresh for one session.

    Failures never raise out of :meth:`submit` or :meth:`remove`; they land in
    :attr:`error`, which holds only the latest message.
    """

    def __init__(self, session: SyncSession) -> None:
        self.session = session
        self.error: str | None = None
        self.view = build_view([])
        self.refresh_count = 0
        session.add_listener(self._on_records, self._on_session_error)

    def start(self, token: str | None = None) -> bool:
        self.view = build_view([])
        return self.session.start(token)

    def refresh(self) -> int:
        """Apply pending subscription deliveries."""

        return self.session.pump()

    def _on_records(self, records: list[Record]) -> None:
        self.view = build_view(records)
        self.refresh_count += 1

    def _on_session_error(self, error: DashboardError) -> None:
        self._report(error)

    def _report(self, error: DashboardError | str) -> None:
        self.error = str(error)

    def acknowledge_error(self) -> None:
        self.error = None

    def submit(self, form: MutableMapping[str, Any]) -> bool:
        """Validate ``form`` and create a record from it.

        The form fields are cleared only after the store accepted the create;
        on any failure they are left untouched for correction or retry.
        """

        try:
            self.session.require_subscribed()
            candidate = validate(form)
        except DashboardError as exc:
            self._report(exc)
            return False

        path = self.session.collection_path
        try:
            record_id = self.session.backend.store.create(path, candidate.to_fields())
        except Exception as exc:
            logger.exception("Creating record in %s failed", path)
            self._report(PersistenceError(f"Could not save entry: {exc}"))
            return False

        logger.info("Submitted record %s", record_id)
        for name in FORM_FIELDS:
            form[name] = ""
        self.error = None
        return True

    def remove(self, record_id: str) -> bool:
        """Delete a record; the displayed list changes only through the subscription."""

        try:
            self.session.require_subscribed()
        except DashboardError as exc:
            self._report(exc)
            return False

        path = self.session.collection_path
        try:
            self.session.backend.store.delete(path, record_id)
        except Exception as exc:
            logger.exception("Deleting record %s from %s failed", record_id, path)
            self._report(PersistenceError(f"Could not delete entry: {exc}"))
            return False

        logger.info("Deleted record %s", record_id)
        return True
