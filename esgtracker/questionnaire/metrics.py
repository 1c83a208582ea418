"""
ESG Metrics Engine — derived ratios for one financial year.
Pure Python, deterministic. Same input → same output.

Formulas:
  carbon_intensity            = carbon_emissions / total_revenue
  renewable_electricity_ratio = 100 * (renewable_electricity_consumption / total_electricity_consumption)
  diversity_ratio             = 100 * (female_employees / total_employees)
  community_spend_ratio       = 100 * (community_investment / total_revenue)

A missing operand and a zero divisor both yield None. Historical reports were
stored under exactly this rule, so it must not be refined into separate states.
The percentage is computed as scale * (a / b), never (scale * a) / b: the two
orders differ in the last bit and stored values must match.
"""
from __future__ import annotations

import math
from typing import Optional

from esgtracker.questionnaire.schemas import DerivedMetrics, ESGRawData

PERCENT = 100.0


def safe_ratio(
    numerator: Optional[float],
    denominator: Optional[float],
    scale: float = 1.0,
) -> Optional[float]:
    """Return scale * (numerator / denominator), or None if either is missing or denominator is 0."""
    if numerator is None or denominator is None or denominator == 0:
        return None
    ratio = numerator / denominator
    if scale != 1.0:
        ratio = scale * ratio
    # overflow on extreme inputs is reported the same way as an undefined ratio
    return ratio if math.isfinite(ratio) else None


def compute_metrics(data: ESGRawData) -> DerivedMetrics:
    """Derive the four ESG ratios from one year's raw answers. Never raises."""
    return DerivedMetrics(
        carbon_intensity=safe_ratio(data.carbon_emissions, data.total_revenue),
        renewable_electricity_ratio=safe_ratio(
            data.renewable_electricity_consumption,
            data.total_electricity_consumption,
            PERCENT,
        ),
        diversity_ratio=safe_ratio(data.female_employees, data.total_employees, PERCENT),
        community_spend_ratio=safe_ratio(
            data.community_investment, data.total_revenue, PERCENT,
        ),
    )
