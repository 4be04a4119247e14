"""Submission rules applied to raw form input before anything is persisted."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from .errors import AllZeroError, NegativeCountError
from .records import RecordInput

FORM_FIELDS = ("dm_count", "ad_spend", "sales_count", "revenue")


def parse_decimal(raw: Any) -> float:
    """Parse a form value as a decimal, defaulting to 0 when blank or unparseable."""

    if raw is None or isinstance(raw, bool):
        return 0.0
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip().replace(",", "")
        if not text:
            return 0.0
        try:
            value = float(text)
        except ValueError:
            return 0.0
    if not math.isfinite(value):
        return 0.0
    return value


def parse_integer(raw: Any) -> int:
    """Parse a form value as an integer, truncating decimals and defaulting to 0."""

    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str):
        text = raw.strip().replace(",", "")
        try:
            return int(text)
        except ValueError:
            pass
    return int(parse_decimal(raw))


def validate(form: Mapping[str, Any]) -> RecordInput:
    """Validate raw form input.

    Rules are applied in order: parse every field, reject an all-zero
    submission, then reject negative DM or sales counts. Ad spend and revenue
    have no lower bound here; a negative revenue is a loss.

    Raises:
        AllZeroError: every parsed value is zero.
        NegativeCountError: ``dm_count`` or ``sales_count`` is negative.
    """

    candidate = RecordInput(
        dm_count=parse_integer(form.get("dm_count")),
        ad_spend=parse_decimal(form.get("ad_spend")),
        sales_count=parse_integer(form.get("sales_count")),
        revenue=parse_decimal(form.get("revenue")),
    )

    if (
        candidate.dm_count == 0
        and candidate.ad_spend == 0
        and candidate.sales_count == 0
        and candidate.revenue == 0
    ):
        raise AllZeroError()
    if candidate.dm_count < 0 or candidate.sales_count < 0:
        raise NegativeCountError()
    return candidate
