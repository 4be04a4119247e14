"""Presentation of summary metrics: chart series, colors and display strings."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

import pandas as pd
import plotly.graph_objects as go

from . import utils
from .insights import MetricKind, SummaryMetric

COLOR_GREEN = "#22c55e"
COLOR_RED = "#ef4444"
COLOR_EMERALD = "#10b981"
COLOR_AMBER = "#f59e0b"
COLOR_TEAL = "#14b8a6"


@dataclass(frozen=True)
class ChartSeries:
    labels: list[str] = field(default_factory=list)
    values: list[float] = field(default_factory=list)
    colors: list[str] = field(default_factory=list)
    kinds: list[MetricKind] = field(default_factory=list)

    def to_dict(self) -> dict[str, list]:
        return {"labels": list(self.labels), "values": list(self.values), "colors": list(self.colors)}


@dataclass(frozen=True)
class Presentation:
    chart_series: ChartSeries
    formatted_table: pd.DataFrame

    @property
    def is_empty(self) -> bool:
        return not self.chart_series.labels


def metric_color(metric: SummaryMetric) -> str:
    if metric.kind is MetricKind.CURRENCY_NET:
        return COLOR_GREEN if metric.value >= 0 else COLOR_RED
    if metric.kind is MetricKind.CURRENCY_SPEND:
        return COLOR_RED
    if metric.kind is MetricKind.CURRENCY_REVENUE:
        return COLOR_EMERALD if metric.value >= 0 else COLOR_AMBER
    return COLOR_TEAL


def format_metric_value(kind: MetricKind, value: float) -> str:
    """Tooltip and table formatter keyed by metric kind."""

    if kind is MetricKind.COUNT:
        return utils.format_count(value)
    if kind is MetricKind.CURRENCY_SPEND:
        # Spend is shown as an outflow; a negative total (refund) shows as an inflow.
        return utils.format_currency(-value)
    return utils.format_currency(value)


def present(metrics: Iterable[SummaryMetric]) -> Presentation:
    """Derive the chart series and the formatted summary table from ``metrics``."""

    items = list(metrics)
    series = ChartSeries(
        labels=[metric.title for metric in items],
        values=[metric.value for metric in items],
        colors=[metric_color(metric) for metric in items],
        kinds=[metric.kind for metric in items],
    )
    table = pd.DataFrame(
        {
            "metric": series.labels,
            "value": series.values,
            "display": [format_metric_value(metric.kind, metric.value) for metric in items],
            "kind": [metric.kind.value for metric in items],
        },
        columns=["metric", "value", "display", "kind"],
    )
    return Presentation(chart_series=series, formatted_table=table)


def _empty_figure(message: str) -> go.Figure:
    fig = go.Figure()
    fig.add_annotation(
        text=message,
        showarrow=False,
        x=0.5,
        y=0.5,
        xref="paper",
        yref="paper",
        font=dict(size=14, color="#6c757d"),
    )
    fig.update_layout(margin=dict(l=0, r=0, t=20, b=20))
    return fig


def plot_summary_bar(presentation: Presentation) -> go.Figure:
    """Return a fresh Plotly bar figure for the presented summary."""

    if presentation.is_empty:
        return _empty_figure("No data yet. Add an entry to see your totals.")

    series = presentation.chart_series
    hover = [format_metric_value(kind, value) for kind, value in zip(series.kinds, series.values)]

    fig = go.Figure()
    fig.add_bar(
        x=series.labels,
        y=series.values,
        marker_color=series.colors,
        hovertext=hover,
        hovertemplate="%{x}: %{hovertext}<extra></extra>",
    )
    fig.update_layout(
        title="Totals",
        yaxis_title="Value",
        showlegend=False,
        margin=dict(l=0, r=0, t=45, b=0),
    )
    return fig
