"""Deterministic sample form inputs for demos and the summary script."""

from __future__ import annotations

import numpy as np

DEFAULT_SAMPLE_ROWS = 14
DEFAULT_SEED = 7
LOSS_DAY_PROBABILITY = 0.15


def generate_sample_inputs(rows: int = DEFAULT_SAMPLE_ROWS, seed: int = DEFAULT_SEED) -> list[dict[str, str]]:
    """Return ``rows`` form payloads shaped like the dashboard entry form.

    DMs follow a Poisson draw, sales convert from DMs, and a share of days
    record a refund-driven loss (negative revenue).
    """

    rng = np.random.default_rng(seed)
    inputs: list[dict[str, str]] = []

    for _ in range(rows):
        dm_count = int(rng.poisson(40))
        ad_spend = round(float(rng.uniform(10.0, 120.0)), 2)
        sales_count = int(rng.binomial(dm_count, 0.12))
        revenue = round(sales_count * float(rng.uniform(25.0, 60.0)), 2)
        if rng.random() < LOSS_DAY_PROBABILITY:
            revenue = -round(float(rng.uniform(5.0, 80.0)), 2)

        inputs.append(
            {
                "dm_count": str(dm_count),
                "ad_spend": f"{ad_spend:.2f}",
                "sales_count": str(sales_count),
                "revenue": f"{revenue:.2f}",
            }
        )

    return inputs
