"""Shared utilities for the metrics dashboard."""

from __future__ import annotations

from typing import Iterable, Mapping

import pandas as pd


def ensure_dataframe(rows: Iterable[Mapping], columns: Iterable[str] | None = None) -> pd.DataFrame:
    """Normalise row mappings to a :class:`pandas.DataFrame` with fixed columns."""

    return pd.DataFrame(list(rows), columns=list(columns) if columns is not None else None)


def format_count(value: float) -> str:
    """Return a grouped-thousands integer string."""

    return f"{int(round(value)):,}"


def format_currency(value: float, currency: str = "$") -> str:
    """Return a human-readable currency string.

    Negative amounts are parenthesised and keep their sign, e.g. ``(-$50.00)``.
    """

    if value < 0:
        return f"(-{currency}{abs(value):,.2f})"
    return f"{currency}{value:,.2f}"
