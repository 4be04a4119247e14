"""Tabular helpers turning record snapshots into pandas frames."""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np
import pandas as pd

from . import utils
from .records import Record

RECORD_COLUMNS = ["id", "dm_count", "ad_spend", "sales_count", "revenue", "created_at"]


def records_frame(records: Iterable[Record]) -> pd.DataFrame:
    """Return one row per record, with stable dtypes even when empty."""

    rows = [
        {
            "id": record.id,
            "dm_count": record.dm_count,
            "ad_spend": record.ad_spend,
            "sales_count": record.sales_count,
            "revenue": record.revenue,
            "created_at": record.created_at,
        }
        for record in records
    ]
    df = utils.ensure_dataframe(rows, columns=RECORD_COLUMNS)
    df["dm_count"] = df["dm_count"].astype("int64")
    df["sales_count"] = df["sales_count"].astype("int64")
    df["ad_spend"] = df["ad_spend"].astype("float64")
    df["revenue"] = df["revenue"].astype("float64")
    return df


def history_frame(records: Iterable[Record]) -> pd.DataFrame:
    """Build the display table for the history view, newest entry first."""

    df = records_frame(records)
    df["net"] = (df["revenue"] - df["ad_spend"]).round(2)
    df["is_pending"] = df["created_at"].isna()
    created = pd.to_datetime(df["created_at"], utc=True)
    df["created"] = np.where(
        df["is_pending"],
        "Pending",
        created.dt.strftime("%Y-%m-%d %H:%M"),
    )
    df["dms"] = df["dm_count"].map(utils.format_count)
    df["sales"] = df["sales_count"].map(utils.format_count)
    df["spend"] = df["ad_spend"].map(utils.format_currency)
    df["revenue_display"] = df["revenue"].map(utils.format_currency)
    df["net_display"] = df["net"].map(utils.format_currency)

    # Input order is ascending; reverse so the latest entry is on top.
    return df.iloc[::-1].reset_index(drop=True)
