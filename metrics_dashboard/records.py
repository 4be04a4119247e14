"""Record model and snapshot ordering."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

# Document field names as stored remotely.
FIELD_DM_COUNT = "dmCount"
FIELD_AD_SPEND = "adSpend"
FIELD_SALES_COUNT = "salesCount"
FIELD_REVENUE = "revenue"
FIELD_CREATED_AT = "createdAt"


@dataclass(frozen=True)
class RecordInput:
    """Validated numeric fields, ready to be persisted."""

    dm_count: int
    ad_spend: float
    sales_count: int
    revenue: float

    def to_fields(self) -> dict[str, Any]:
        return {
            FIELD_DM_COUNT: self.dm_count,
            FIELD_AD_SPEND: self.ad_spend,
            FIELD_SALES_COUNT: self.sales_count,
            FIELD_REVENUE: self.revenue,
        }


@dataclass(frozen=True)
class Record:
    """One persisted metric entry.

    ``created_at`` is ``None`` while the server timestamp is still pending.
    """

    id: str
    dm_count: int
    ad_spend: float
    sales_count: int
    revenue: float
    created_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.created_at is None

    @property
    def sort_key(self) -> float:
        # Pending writes sort as time 0, i.e. oldest.
        if self.created_at is None:
            return 0.0
        created = self.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return created.timestamp()

    @classmethod
    def from_document(cls, doc_id: str, fields: Mapping[str, Any]) -> "Record":
        created = fields.get(FIELD_CREATED_AT)
        if created is not None and not isinstance(created, datetime):
            created = None
        return cls(
            id=str(doc_id),
            dm_count=int(fields.get(FIELD_DM_COUNT) or 0),
            ad_spend=float(fields.get(FIELD_AD_SPEND) or 0.0),
            sales_count=int(fields.get(FIELD_SALES_COUNT) or 0),
            revenue=float(fields.get(FIELD_REVENUE) or 0.0),
            created_at=created,
        )


def order_records(records: Iterable[Record]) -> list[Record]:
    """Return records ascending by creation time, pending writes first."""

    return sorted(records, key=lambda record: record.sort_key)
