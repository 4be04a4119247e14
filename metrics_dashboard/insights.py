"""Aggregation of record snapshots into summary metrics."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from . import features
from .records import Record


class MetricKind(str, Enum):
    COUNT = "count"
    CURRENCY_SPEND = "currency_spend"
    CURRENCY_REVENUE = "currency_revenue"
    CURRENCY_NET = "currency_net"


@dataclass(frozen=True)
class SummaryMetric:
    title: str
    value: float
    kind: MetricKind


TITLE_DMS = "Total DMs"
TITLE_AD_SPEND = "Total Ad Spend"
TITLE_SALES = "Total Sales"
TITLE_REVENUE = "Total Revenue"
TITLE_NET_PROFIT = "Net Profit"


def calculate_totals(records: Iterable[Record]) -> dict[str, float]:
    """Return raw column sums plus the derived net profit."""

    df = features.records_frame(records)

    dm_total = int(df["dm_count"].sum())
    sales_total = int(df["sales_count"].sum())
    ad_spend_total = float(df["ad_spend"].sum())
    revenue_total = float(df["revenue"].sum())

    return {
        "dm_count": dm_total,
        "ad_spend": ad_spend_total,
        "sales_count": sales_total,
        "revenue": revenue_total,
        "net_profit": revenue_total - ad_spend_total,
    }


def aggregate(records: Iterable[Record]) -> list[SummaryMetric]:
    """Compute the summary metrics for the full record set.

    Output order is fixed (DMs, ad spend, sales, revenue, net profit) and any
    metric whose total is exactly zero is dropped afterwards.
    """

    totals = calculate_totals(records)
    metrics = [
        SummaryMetric(TITLE_DMS, totals["dm_count"], MetricKind.COUNT),
        SummaryMetric(TITLE_AD_SPEND, totals["ad_spend"], MetricKind.CURRENCY_SPEND),
        SummaryMetric(TITLE_SALES, totals["sales_count"], MetricKind.COUNT),
        SummaryMetric(TITLE_REVENUE, totals["revenue"], MetricKind.CURRENCY_REVENUE),
        SummaryMetric(TITLE_NET_PROFIT, totals["net_profit"], MetricKind.CURRENCY_NET),
    ]
    return [metric for metric in metrics if metric.value != 0]
