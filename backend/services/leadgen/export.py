"""Spreadsheet export of a job's enriched records.

One row per record under a fixed header. The research context column joins
the uploaded extra columns with the news items the messages were built from.
"""

import io
from typing import Any

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

# (header, column width)
EXPORT_COLUMNS: list[tuple[str, int]] = [
    ("Company Name", 20),
    ("LinkedIn Link", 40),
    ("First Name", 15),
    ("Last Name", 15),
    ("Job Title", 25),
    ("LinkedIn Message 1", 100),
    ("LinkedIn Message 2", 100),
    ("LinkedIn Message 3", 100),
    ("Company Region", 20),
    ("Company Industry", 25),
    ("Matched Cases", 60),
    ("Research Context", 80),
    ("Processing Status", 15),
    ("Error Message", 40),
    ("Research Summary", 60),
]
EXPORT_HEADERS = [header for header, _ in EXPORT_COLUMNS]

# Long-text columns (0-indexed): messages, cases, context, error, summary
WRAPPED_COLUMNS = {5, 6, 7, 10, 11, 13, 14}

STANDARD_FIELDS = {"Company Name", "LinkedIn Link", "First Name", "Last Name", "Job Title"}


def format_matched_cases(cases: list[Any] | None) -> str:
    """One case per line as ``title: link``; bare titles for cases without a link."""
    lines = []
    for case in cases or []:
        if isinstance(case, str):
            lines.append(case)
            continue
        title = case.get("title", "")
        link = case.get("link")
        lines.append(f"{title}: {link}" if link else title)
    return "\n".join(lines)


def build_research_context(raw_data: dict[str, Any] | None, news: list[dict[str, Any]] | None) -> str:
    sections = []

    extra = [
        f"{key}: {value}" for key, value in (raw_data or {}).items() if key not in STANDARD_FIELDS
    ]
    if extra:
        sections.append("=== CLIENT SPECIFICATION ===\n" + "\n".join(extra))

    items = [
        f"{item.get('title') or 'Untitled'} - {item.get('summary') or ''} [{item.get('source') or ''}]"
        for item in news or []
    ]
    if items:
        sections.append("=== RECENT NEWS ===\n" + "\n\n".join(items))

    return "\n\n".join(sections)


def research_summary(research_data: Any) -> str:
    if not research_data:
        return ""
    if isinstance(research_data, str):
        return research_data
    return research_data.get("researchSummary") or research_data.get("error") or ""


def export_row(record: Any) -> list[str]:
    return [
        record.company_name,
        record.linkedin_link or "",
        record.first_name,
        record.last_name,
        record.job_title or "",
        record.message1 or "",
        record.message2 or "",
        record.message3 or "",
        record.company_region or "",
        record.company_industry or "",
        format_matched_cases(record.matched_cases),
        build_research_context(record.raw_data, record.company_news),
        record.status,
        record.error_message or "",
        research_summary(record.research_data),
    ]


def build_workbook(records: list[Any]) -> bytes:
    """Render the records as an xlsx document."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Results"
    sheet.append(EXPORT_HEADERS)
    for record in records:
        # xlsx cells cannot hold control characters
        sheet.append([ILLEGAL_CHARACTERS_RE.sub("", value or "") for value in export_row(record)])

    header_font = Font(bold=True)
    header_fill = PatternFill(fill_type="solid", fgColor="D3D3D3")
    for cell in sheet[1]:
        cell.font = header_font
        cell.fill = header_fill

    wrap = Alignment(wrap_text=True, vertical="top")
    for row in sheet.iter_rows(min_row=2):
        for index in WRAPPED_COLUMNS:
            row[index].alignment = wrap

    for index, (_, width) in enumerate(EXPORT_COLUMNS, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = width

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_filename(upload_filename: str | None) -> str:
    """``<upload stem>_results.xlsx``, or ``results.xlsx`` without an upload name."""
    stem = (upload_filename or "").rsplit(".", 1)[0].replace('"', "").strip()
    return f"{stem}_results.xlsx" if stem else "results.xlsx"
