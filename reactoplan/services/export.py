"""Tabular export of occupancy metrics."""

from __future__ import annotations

import csv
import io
from typing import Sequence

from reactoplan.domain.models import OccupancyMetric

HEADER = [
    "Reactor",
    "Plant",
    "Block",
    "Available Hours",
    "Proposed Hours",
    "Actual Hours",
    "Downtime Hours",
    "Actual %",
]


def _hours(value: float) -> str:
    # Whole hours print without a trailing ".0"
    return f"{value:.0f}" if value == int(value) else f"{value:.2f}"


def occupancy_rows(metrics: Sequence[OccupancyMetric]) -> list[list[str]]:
    return [
        [
            m.reactor_serial_no,
            m.plant_name,
            m.block_name,
            _hours(m.available_hours),
            _hours(m.proposed_hours),
            _hours(m.actual_hours),
            _hours(m.downtime_hours),
            f"{m.actual_percent:.1f}",
        ]
        for m in metrics
    ]


def occupancy_csv(metrics: Sequence[OccupancyMetric]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(HEADER)
    writer.writerows(occupancy_rows(metrics))
    return buffer.getvalue()
