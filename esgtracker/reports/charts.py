"""
charts.py — PNG trend charts for the dashboard and the PDF report.

Entry point:
    render_metric_chart(records, metric) -> bytes

Years whose ratio is None are left out of the line rather than plotted as 0.
Figures are built with matplotlib.figure.Figure directly (no pyplot state),
so rendering is safe from the threadpool.
"""
from __future__ import annotations

import logging
from io import BytesIO
from typing import Mapping

import matplotlib

matplotlib.use("Agg")

from matplotlib.figure import Figure  # noqa: E402
from matplotlib.ticker import MaxNLocator  # noqa: E402

from esgtracker.questionnaire.schemas import YearRecord  # noqa: E402
from esgtracker.reports.summary import METRICS, metric_series  # noqa: E402

logger = logging.getLogger(__name__)

LINE_COLOUR = "#2E8B57"
X_LABEL = "Financial Year"
PERCENT_LABEL = "Percentage (%)"


def chart_title(metric: str) -> str:
    return f"{METRICS[metric].title} Trend"


def _y_label(metric: str) -> str:
    info = METRICS[metric]
    return PERCENT_LABEL if info.percent else info.unit


def render_metric_chart(
    records: Mapping[int, YearRecord],
    metric: str,
    width_in: float = 6.0,
    height_in: float = 3.2,
) -> bytes:
    """
    Line chart of one derived metric over the stored years.

    Raises:
        KeyError: metric is not one of summary.METRICS.
    """
    points = [p for p in metric_series(records, metric) if p.value is not None]

    fig = Figure(figsize=(width_in, height_in), dpi=100)
    ax = fig.add_subplot(1, 1, 1)
    if points:
        ax.plot(
            [p.year for p in points],
            [p.value for p in points],
            marker="o",
            color=LINE_COLOUR,
        )
    else:
        ax.text(0.5, 0.5, "No data", ha="center", va="center", transform=ax.transAxes)

    ax.set_title(chart_title(metric), fontsize=11, fontweight="bold")
    ax.set_xlabel(X_LABEL)
    ax.set_ylabel(_y_label(metric))
    ax.xaxis.set_major_locator(MaxNLocator(integer=True))
    ax.grid(True, linestyle=":", linewidth=0.5)
    fig.tight_layout()

    buffer = BytesIO()
    fig.savefig(buffer, format="png")
    logger.debug("Rendered chart metric=%s points=%d", metric, len(points))
    return buffer.getvalue()
