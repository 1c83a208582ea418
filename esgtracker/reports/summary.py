"""
summary.py — dashboard data assembled from stored year records.

Pure functions, no I/O. Input is the dict returned by store.list_years().

Trends keep None values so the UI can show a gap; charts.py drops them.
Breakdowns use the latest year only and are None when an input is missing
or the split would be negative (e.g. renewable > total in legacy rows).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from esgtracker.questionnaire.schemas import YearRecord
from esgtracker.reports.schemas import Breakdown, DashboardSummary, TrendPoint


@dataclass(frozen=True)
class MetricInfo:
    attribute: str     # YearRecord attribute
    title: str
    unit: str
    percent: bool


# Keyed by wire name; order is the dashboard / report order
METRICS: dict[str, MetricInfo] = {
    "carbonIntensity": MetricInfo(
        "carbon_intensity", "Carbon Intensity", "T CO2e/INR", percent=False,
    ),
    "renewableElectricityRatio": MetricInfo(
        "renewable_electricity_ratio", "Renewable Electricity Ratio", "%", percent=True,
    ),
    "diversityRatio": MetricInfo(
        "diversity_ratio", "Diversity Ratio", "%", percent=True,
    ),
    "communitySpendRatio": MetricInfo(
        "community_spend_ratio", "Community Spend Ratio", "%", percent=True,
    ),
}


def metric_series(records: Mapping[int, YearRecord], metric: str) -> list[TrendPoint]:
    """Year-ascending samples of one derived metric. KeyError for unknown metric names."""
    info = METRICS[metric]
    return [
        TrendPoint(year=year, value=getattr(records[year], info.attribute))
        for year in sorted(records)
    ]


def _split(
    title: str,
    part: Optional[float],
    whole: Optional[float],
    labels: tuple[str, str],
) -> Optional[Breakdown]:
    if part is None or whole is None:
        return None
    rest = whole - part
    if part < 0 or rest < 0:
        return None
    return Breakdown(title=title, labels=list(labels), values=[float(part), float(rest)])


def latest_breakdowns(record: YearRecord) -> dict[str, Optional[Breakdown]]:
    return {
        "renewableElectricity": _split(
            "Renewable vs. Non-Renewable Electricity",
            record.renewable_electricity_consumption,
            record.total_electricity_consumption,
            ("Renewable", "Non-Renewable"),
        ),
        "workforceDiversity": _split(
            "Workforce Diversity",
            record.female_employees,
            record.total_employees,
            ("Female", "Other"),
        ),
        "communitySpend": _split(
            "Community Spend vs. Total Revenue",
            record.community_investment,
            record.total_revenue,
            ("Community Investment", "Other Revenue"),
        ),
    }


def build_summary(records: Mapping[int, YearRecord]) -> DashboardSummary:
    """Everything the summary page needs. An empty mapping gives an empty summary."""
    if not records:
        return DashboardSummary()

    years = sorted(records)
    latest = records[years[-1]]
    return DashboardSummary(
        years=years,
        latest_year=years[-1],
        kpis=latest.metrics,
        trends={metric: metric_series(records, metric) for metric in METRICS},
        breakdowns=latest_breakdowns(latest),
    )
