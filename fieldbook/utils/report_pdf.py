"""
Utility: PDF report for a field record.
"""
from __future__ import annotations

from datetime import datetime, timezone
from io import BytesIO
from typing import List, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from fieldbook.domain.models import Client, FieldRecord, Project

REPORT_TITLE = "XAMU Wetlands Field Data Report"
BRAND_GREEN = colors.HexColor("#22c55e")
NOT_AVAILABLE = "N/A"

BIOPHYSICAL_ROWS = [
    ("Elevation", "elevation"),
    ("Ecoregion", "ecoregion"),
    ("Mean Annual Precipitation", "mean_annual_precipitation"),
    ("Rainfall Seasonality", "rainfall_seasonality"),
    ("Evapotranspiration", "evapotranspiration"),
    ("Geology", "geology"),
    ("Water Management Area", "water_management_area"),
    ("Soil Erodibility", "soil_erodibility"),
    ("Vegetation Type", "vegetation_type"),
    ("Conservation Status", "conservation_status"),
    ("FEPA Features", "fepa_features"),
]

IMPACT_ROWS = [
    ("Runoff Hard Surfaces", "runoff_hard_surfaces"),
    ("Runoff Septic Tanks", "runoff_septic_tanks"),
    ("Sediment Input", "sediment_input"),
    ("Flood Peaks", "flood_peaks"),
    ("Pollution", "pollution"),
    ("Weeds / IAP", "weeds_iap"),
]


def _date(millis: int) -> str:
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc).strftime("%d/%m/%Y")


def _table(header: Sequence[str], rows: Sequence[Sequence[str]], style: ParagraphStyle, col_widths) -> Table:
    data = [[Paragraph(escape(cell), style) for cell in header]]
    data.extend([Paragraph(escape(cell or NOT_AVAILABLE), style) for cell in row] for row in rows)
    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), BRAND_GREEN),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("BOX", (0, 0), (-1, -1), 0.35, colors.HexColor("#c3cbd6")),
                ("INNERGRID", (0, 0), (-1, -1), 0.25, colors.HexColor("#d7dde7")),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LEFTPADDING", (0, 0), (-1, -1), 5),
                ("RIGHTPADDING", (0, 0), (-1, -1), 6),
                ("TOPPADDING", (0, 0), (-1, -1), 3),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
            ]
        )
    )
    return table


def _section(story: List, title: str, heading_style: ParagraphStyle) -> None:
    story.append(Spacer(1, 6 * mm))
    story.append(Paragraph(title, heading_style))
    story.append(Spacer(1, 2 * mm))


def _footer(canvas, doc) -> None:
    canvas.saveState()
    canvas.setFont("Helvetica", 8)
    canvas.setFillColor(colors.HexColor("#5f6c7b"))
    canvas.drawString(
        14 * mm,
        10 * mm,
        f"Generated by XAMU Wetlands Field Data App - Page {doc.page}",
    )
    canvas.restoreState()


def render_field_record_report(
    record: FieldRecord,
    *,
    project: Optional[Project] = None,
    client: Optional[Client] = None,
) -> bytes:
    """Render a single field record as a PDF document."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
        title=REPORT_TITLE,
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "ReportTitle",
        parent=styles["Title"],
        fontSize=20,
        leading=24,
        textColor=BRAND_GREEN,
        alignment=0,
    )
    heading_style = ParagraphStyle(
        "Heading",
        parent=styles["Heading2"],
        fontSize=14,
        textColor=BRAND_GREEN,
    )
    subtitle_style = ParagraphStyle(
        "Subtitle",
        parent=styles["Normal"],
        fontSize=10,
        textColor=colors.HexColor("#5f6c7b"),
    )
    cell_style = ParagraphStyle(
        "Cell",
        parent=styles["Normal"],
        fontSize=8,
        leading=10,
    )

    story: List = []
    story.append(Paragraph(REPORT_TITLE, title_style))
    story.append(
        Paragraph(
            f"Generated: {datetime.now(timezone.utc).strftime('%d/%m/%Y %H:%M')} UTC",
            subtitle_style,
        )
    )

    two_col = [55 * mm, None]

    if client:
        _section(story, "Client Information", heading_style)
        story.append(_table(["Field", "Value"], [
            ("Company Name", client.company_name),
            ("Registration Number", client.company_reg_num),
            ("Company Type", client.company_type),
            ("Contact Person", client.contact_person),
            ("Email", client.contact_email),
            ("Phone", client.contact_phone),
            ("Address", client.address),
        ], cell_style, two_col))

    if project:
        _section(story, "Project Information", heading_style)
        story.append(_table(["Field", "Value"], [
            ("Project Name", project.project_name),
            ("Created Date", _date(project.created_at)),
            ("Client", client.company_name if client else project.company_name),
        ], cell_style, two_col))

    location = record.location
    _section(story, "Field Data Entry", heading_style)
    story.append(_table(["Field", "Value"], [
        ("Entry Date", _date(record.created_at)),
        ("Location", location.description),
        ("Latitude", str(location.lat)),
        ("Longitude", str(location.lng)),
    ], cell_style, two_col))

    _section(story, "Biophysical Attributes", heading_style)
    story.append(_table(["Attribute", "Value"], [
        (label, getattr(record.biophysical, field)) for label, field in BIOPHYSICAL_ROWS
    ], cell_style, two_col))

    _section(story, "Phase Impacts", heading_style)
    if record.impacts is None:
        story.append(Paragraph("No impact assessment recorded for this entry.", cell_style))
    else:
        story.append(_table(["Impact Type", "Value"], [
            (label, getattr(record.impacts, field)) for label, field in IMPACT_ROWS
        ], cell_style, two_col))

    if record.images:
        _section(story, "Field Images", heading_style)
        story.append(Paragraph(f"Total Images: {len(record.images)}", subtitle_style))
        story.append(
            Paragraph(
                "Note: Images are referenced by URL. View the web application to see actual images.",
                subtitle_style,
            )
        )
        story.append(Spacer(1, 2 * mm))
        image_rows: List[Tuple[str, str, str]] = [
            (str(index), image.name, image.url)
            for index, image in enumerate(record.images, start=1)
        ]
        story.append(_table(["#", "Name", "URL"], image_rows, cell_style, [10 * mm, 50 * mm, None]))

    doc.build(story, onFirstPage=_footer, onLaterPages=_footer)
    return buffer.getvalue()
