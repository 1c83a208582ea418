"""
schemas.py — Questionnaire Pydantic v2 data contracts.

Defines:
  - ESGRawData        (one financial year's questionnaire answers)
  - DerivedMetrics    (the four ratios computed from ESGRawData)
  - YearRecord        (raw + derived, as stored and returned)
  - SaveResponsesRequest
  - ErrorDetail, ErrorBody, ErrorResponse  (cross-cutting error envelope)

Wire format is camelCase (totalElectricityConsumption, hasDataPrivacyPolicy, ...).
Python attributes are snake_case; populate_by_name lets tests and the store build
models with either spelling.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


_WIRE_CONFIG = dict(
    alias_generator=to_camel,
    populate_by_name=True,
    allow_inf_nan=False,
)


# ---------------------------------------------------------------------------
# ESGRawData: questionnaire answers for one year
# ---------------------------------------------------------------------------

class ESGRawData(BaseModel):
    """
    Raw questionnaire inputs for one financial year. Every field is nullable
    until the user supplies it; completeness is checked by validator.py, not here.

    Employee counts are typed float so that 12.5 reaches the integer rule in
    validator.py and is reported with a readable message instead of a parse error.

    extra='ignore' drops derived fields a client may echo back — the server
    always recomputes them.
    """
    model_config = ConfigDict(extra="ignore", **_WIRE_CONFIG)

    # --- Environmental ---
    total_electricity_consumption: Optional[float] = Field(default=None, description="kWh")
    renewable_electricity_consumption: Optional[float] = Field(default=None, description="kWh")
    total_fuel_consumption: Optional[float] = Field(default=None, description="liters")
    carbon_emissions: Optional[float] = Field(default=None, description="T CO2e")

    # --- Social ---
    total_employees: Optional[float] = Field(default=None, description="Headcount")
    female_employees: Optional[float] = Field(default=None, description="Headcount")
    average_training_hours: Optional[float] = Field(
        default=None, description="Hours per employee per year",
    )
    community_investment: Optional[float] = Field(default=None, description="Currency")

    # --- Governance ---
    independent_board_members: Optional[float] = Field(
        default=None, description="Percentage of independent board members (0-100)",
    )
    has_data_privacy_policy: Optional[bool] = Field(
        default=None, description="Yes / No; null means unanswered",
    )
    total_revenue: Optional[float] = Field(default=None, description="Currency")

    def has_data(self) -> bool:
        """True if at least one answer is filled in."""
        return any(value is not None for value in self.model_dump().values())


RAW_FIELDS: tuple = tuple(ESGRawData.model_fields)


# ---------------------------------------------------------------------------
# DerivedMetrics: output of metrics.compute_metrics()
# ---------------------------------------------------------------------------

class DerivedMetrics(BaseModel):
    """None means the ratio cannot be computed (missing operand or zero divisor)."""
    model_config = ConfigDict(frozen=True, **_WIRE_CONFIG)

    carbon_intensity: Optional[float] = None             # T CO2e / revenue
    renewable_electricity_ratio: Optional[float] = None  # %
    diversity_ratio: Optional[float] = None              # %
    community_spend_ratio: Optional[float] = None        # %


DERIVED_FIELDS: tuple = tuple(DerivedMetrics.model_fields)


# ---------------------------------------------------------------------------
# YearRecord: stored row as returned to clients
# ---------------------------------------------------------------------------

class YearRecord(ESGRawData):
    year: int = Field(exclude=True)

    # Stored as INTEGER columns, so validated counts come back whole
    total_employees: Optional[int] = None
    female_employees: Optional[int] = None

    carbon_intensity: Optional[float] = None
    renewable_electricity_ratio: Optional[float] = None
    diversity_ratio: Optional[float] = None
    community_spend_ratio: Optional[float] = None

    @property
    def raw(self) -> ESGRawData:
        return ESGRawData.model_validate(self.model_dump(include=set(RAW_FIELDS)))

    @property
    def metrics(self) -> DerivedMetrics:
        return DerivedMetrics.model_validate(self.model_dump(include=set(DERIVED_FIELDS)))

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True)


class SaveResponsesRequest(BaseModel):
    """Body of POST /api/responses: {"responses": {"2023": {...}, "2024": {...}}}."""
    model_config = ConfigDict(extra="forbid")

    responses: Dict[str, ESGRawData]


# ---------------------------------------------------------------------------
# Error response models: used by main.py exception handlers (cross-cutting)
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    """Single field-level validation or business-rule error."""
    model_config = ConfigDict(extra="forbid")

    field: Optional[str] = None   # Dot-notation path, e.g. "2023.femaleEmployees"
    issue: str                     # Human-readable description of the problem


class ErrorBody(BaseModel):
    """Error envelope body."""
    model_config = ConfigDict(extra="forbid")

    code: str                                      # VALIDATION_ERROR, NOT_FOUND, etc.
    message: str                                   # High-level error description
    details: List[ErrorDetail] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    Standard error response format for all endpoints.

    Structure: {"error": {"code": "...", "message": "...", "details": [...]}}
    """
    model_config = ConfigDict(extra="forbid")

    error: ErrorBody


__all__ = [
    "ESGRawData",
    "DerivedMetrics",
    "YearRecord",
    "SaveResponsesRequest",
    "RAW_FIELDS",
    "DERIVED_FIELDS",
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
]
