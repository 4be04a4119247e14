"""Utility script to print the presented summary for a seeded in-memory dashboard."""

from __future__ import annotations

import argparse
import json
import logging

from metrics_dashboard import synth
from metrics_dashboard.controller import DashboardController
from metrics_dashboard.identity import StaticIdentityProvider
from metrics_dashboard.session import Backend, SyncSession
from metrics_dashboard.store import InMemoryStore


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--rows", type=int, default=synth.DEFAULT_SAMPLE_ROWS)
    parser.add_argument("--seed", type=int, default=synth.DEFAULT_SEED)
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)

    store = InMemoryStore()
    backend = Backend(
        store=store,
        identity_provider=StaticIdentityProvider(),
        collection_path=lambda identity: f"artifacts/demo/users/{identity}/dashboard_data",
    )
    controller = DashboardController(SyncSession(lambda: backend))
    if not controller.start():
        raise SystemExit(controller.error)

    for form in synth.generate_sample_inputs(rows=args.rows, seed=args.seed):
        controller.submit(form)
    controller.refresh()

    table = controller.view.presentation.formatted_table
    payload = {
        "records": len(controller.view.records),
        "summary": table.to_dict(orient="records"),
        "chart": controller.view.presentation.chart_series.to_dict(),
    }
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
