"""
pdf_generator.py — ESG Summary Report generator.

Builds the downloadable PDF with reportlab PLATYPUS. Output is a BytesIO
buffer (no temp file on disk).

Entry point:
    generate_esg_report(records, user_name, include_charts=False) -> BytesIO

buffer.seek(0) is called after doc.build(story); reportlab leaves the
position at end-of-write and StreamingResponse reads from the current position.

PDF sections:
  1. Header (title, prepared for, generation date)
  2. Overview (reporting years newest first, total years tracked)
  3. Key metrics table for the latest year
  4. Environmental / Social / Governance tables, one column per year
  5. Performance Trends chart images (include_charts=True only)
  Footer on every page: "Page i of n"

Missing answers and undefined ratios print as "-".
"""
from __future__ import annotations

import datetime
import logging
from io import BytesIO
from typing import Mapping, Optional

from markupsafe import escape
from reportlab.lib.colors import HexColor, black
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import (
    Image,
    KeepTogether,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from esgtracker.questionnaire.schemas import YearRecord
from esgtracker.reports.charts import render_metric_chart
from esgtracker.reports.summary import METRICS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Colour constants
# ---------------------------------------------------------------------------

GREEN_LIGHT = HexColor("#D5F5E3")   # Table headers
GREY_LIGHT  = HexColor("#F2F2F2")   # Section label column

MISSING = "-"
CONTENT_WIDTH = 170 * mm

# (attribute, label) per section; row order matches the questionnaire
ENVIRONMENTAL_ROWS = [
    ("total_electricity_consumption", "Total Electricity Consumption (kWh)"),
    ("renewable_electricity_consumption", "Renewable Electricity Consumption (kWh)"),
    ("total_fuel_consumption", "Total Fuel Consumption (liters)"),
    ("carbon_emissions", "Carbon Emissions (T CO2e)"),
    ("renewable_electricity_ratio", "Renewable Electricity Ratio"),
    ("carbon_intensity", "Carbon Intensity (T CO2e/INR)"),
]
SOCIAL_ROWS = [
    ("total_employees", "Total Employees"),
    ("female_employees", "Female Employees"),
    ("average_training_hours", "Average Training Hours"),
    ("community_investment", "Community Investment (INR)"),
    ("diversity_ratio", "Diversity Ratio"),
    ("community_spend_ratio", "Community Spend Ratio"),
]
GOVERNANCE_ROWS = [
    ("independent_board_members", "% Independent Board Members"),
    ("has_data_privacy_policy", "Data Privacy Policy"),
    ("total_revenue", "Total Revenue (INR)"),
]

_PERCENT_ATTRIBUTES = {info.attribute for info in METRICS.values() if info.percent}

# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def format_value(attribute: str, value) -> str:
    """Render one stored value for the report. None is always "-"."""
    if value is None:
        return MISSING
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if attribute in _PERCENT_ATTRIBUTES:
        return f"{value:.2f}%"
    if attribute == "carbon_intensity":
        return f"{value:.6f}"
    if isinstance(value, int) or float(value).is_integer():
        return f"{value:,.0f}"
    return f"{value:,.2f}"


class _NumberedCanvas(canvas.Canvas):
    """Defers page output until the page count is known, then stamps "Page i of n"."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(total)
            super().showPage()
        super().save()

    def _draw_footer(self, total: int) -> None:
        self.setFont("Helvetica", 8)
        self.drawCentredString(A4[0] / 2, 10 * mm, f"Page {self._pageNumber} of {total}")


# ---------------------------------------------------------------------------
# Private section builders
# ---------------------------------------------------------------------------

def _header_style_cmds() -> list:
    return [
        ("BACKGROUND", (0, 0), (-1, 0), GREEN_LIGHT),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("GRID", (0, 0), (-1, -1), 0.5, black),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("ALIGN", (0, 0), (0, -1), "LEFT"),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
        ("LEFTPADDING", (0, 0), (0, -1), 6),
    ]


def _build_kpi_table(latest_year: int, record: YearRecord) -> Table:
    """Metric | FY <latest> | Status. Status is "Reported" or "Not available"."""
    data = [["Metric", f"FY {latest_year}", "Status"]]
    for info in METRICS.values():
        value = getattr(record, info.attribute)
        data.append([
            info.title,
            format_value(info.attribute, value),
            "Reported" if value is not None else "Not available",
        ])

    t = Table(data, colWidths=[80 * mm, 45 * mm, 45 * mm])
    t.setStyle(TableStyle(_header_style_cmds()))
    return t


def _build_section_table(
    rows: list[tuple[str, str]],
    records: Mapping[int, YearRecord],
    years: list[int],
) -> Table:
    """Label column plus one column per year (newest first)."""
    data = [["Indicator"] + [f"FY {year}" for year in years]]
    for attribute, label in rows:
        data.append(
            [label] + [format_value(attribute, getattr(records[year], attribute)) for year in years]
        )

    label_width = 70 * mm
    year_width = (CONTENT_WIDTH - label_width) / max(len(years), 1)
    style_cmds = _header_style_cmds() + [
        ("BACKGROUND", (0, 1), (0, -1), GREY_LIGHT),
        ("FONTSIZE", (0, 0), (-1, -1), 8 if len(years) > 3 else 9),
    ]
    t = Table(data, colWidths=[label_width] + [year_width] * len(years), repeatRows=1)
    t.setStyle(TableStyle(style_cmds))
    return t


def _build_chart_section(records: Mapping[int, YearRecord], styles) -> list:
    flowables = [Paragraph("Performance Trends", styles["Heading2"]), Spacer(1, 2 * mm)]
    for metric in METRICS:
        png = render_metric_chart(records, metric)
        image = Image(BytesIO(png), width=150 * mm, height=80 * mm)
        flowables.append(KeepTogether([image, Spacer(1, 4 * mm)]))
    return flowables


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------

def generate_esg_report(
    records: Mapping[int, YearRecord],
    user_name: Optional[str] = None,
    include_charts: bool = False,
    generated_on: Optional[datetime.date] = None,
) -> BytesIO:
    """
    Generate the ESG Summary Report.

    Args:
        records: year -> YearRecord, as returned by store.list_years().
        user_name: printed under the title when given.
        include_charts: append the Performance Trends section.
        generated_on: report date; defaults to today.

    Returns:
        BytesIO buffer at position 0, ready for StreamingResponse.

    Raises:
        ValueError: records is empty (the route answers 404 before calling).
    """
    if not records:
        raise ValueError("No ESG data to export.")

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=20 * mm,
        rightMargin=20 * mm,
        topMargin=20 * mm,
        bottomMargin=20 * mm,
        title="ESG Summary Report",
    )

    styles = getSampleStyleSheet()
    story = []
    years_desc = sorted(records, reverse=True)
    latest_year = years_desc[0]

    # 1. Header
    title_style = ParagraphStyle(
        "report_title",
        parent=styles["Heading1"],
        fontSize=18,
        fontName="Helvetica-Bold",
    )
    story.append(Paragraph("ESG Summary Report", title_style))
    story.append(Spacer(1, 2 * mm))
    if user_name:
        story.append(Paragraph(f"Prepared for: {str(escape(user_name))}", styles["Normal"]))
    report_date = generated_on or datetime.date.today()
    story.append(
        Paragraph(f"Generated on: {report_date.strftime('%d %B %Y')}", styles["Normal"])
    )
    story.append(Spacer(1, 6 * mm))

    # 2. Overview
    story.append(Paragraph("Overview", styles["Heading2"]))
    story.append(
        Paragraph(
            "Reporting years: " + ", ".join(f"FY {year}" for year in years_desc),
            styles["Normal"],
        )
    )
    story.append(Paragraph(f"Total years tracked: {len(years_desc)}", styles["Normal"]))
    story.append(Spacer(1, 6 * mm))

    # 3. Key metrics
    kpi_heading = Paragraph("Key Performance Indicators", styles["Heading2"])
    kpi_table = _build_kpi_table(latest_year, records[latest_year])
    story.append(KeepTogether([kpi_heading, Spacer(1, 2 * mm), kpi_table]))
    story.append(Spacer(1, 6 * mm))

    # 4. Per-pillar tables
    for heading, rows in (
        ("Environmental", ENVIRONMENTAL_ROWS),
        ("Social", SOCIAL_ROWS),
        ("Governance", GOVERNANCE_ROWS),
    ):
        section_heading = Paragraph(heading, styles["Heading2"])
        table = _build_section_table(rows, records, years_desc)
        story.append(KeepTogether([section_heading, Spacer(1, 2 * mm), table]))
        story.append(Spacer(1, 6 * mm))

    # 5. Charts
    if include_charts:
        story.extend(_build_chart_section(records, styles))

    doc.build(story, canvasmaker=_NumberedCanvas)
    buffer.seek(0)
    logger.info("ESG report generated years=%d charts=%s", len(years_desc), include_charts)
    return buffer
