"""
schemas.py — Dashboard contracts.

  TrendPoint        one (year, value) sample of a derived metric
  Breakdown         two-segment split behind a doughnut visual
  DashboardSummary  everything the summary page renders, in one payload
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from esgtracker.questionnaire.schemas import DerivedMetrics

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TrendPoint(BaseModel):
    model_config = _CAMEL

    year: int
    value: Optional[float] = None     # None: ratio undefined for that year


class Breakdown(BaseModel):
    model_config = _CAMEL

    title: str
    labels: List[str]
    values: List[float]


class DashboardSummary(BaseModel):
    model_config = _CAMEL

    years: List[int] = Field(default_factory=list)          # ascending
    latest_year: Optional[int] = None
    kpis: Optional[DerivedMetrics] = None                   # latest year's derived metrics
    trends: Dict[str, List[TrendPoint]] = Field(default_factory=dict)
    breakdowns: Dict[str, Optional[Breakdown]] = Field(default_factory=dict)
