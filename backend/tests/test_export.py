"""Tests for the spreadsheet export of job results."""

import io
from types import SimpleNamespace

from openpyxl import load_workbook

from services.leadgen.export import (
    EXPORT_HEADERS,
    build_research_context,
    build_workbook,
    export_filename,
    export_row,
    format_matched_cases,
    research_summary,
)


def _record(**overrides) -> SimpleNamespace:
    values = {
        "company_name": "Acme",
        "linkedin_link": None,
        "first_name": "Ada",
        "last_name": "Lovelace",
        "job_title": "CTO",
        "message1": "One",
        "message2": "Two",
        "message3": None,
        "company_region": "Germany",
        "company_industry": "Automotive",
        "matched_cases": [{"title": "Fleet telematics", "link": "https://cases/1"}],
        "raw_data": {},
        "company_news": [],
        "status": "completed",
        "error_message": None,
        "research_data": {"researchSummary": "Munich supplier"},
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def test_matched_cases_one_per_line() -> None:
    cases = [
        {"title": "Fleet telematics", "link": "https://cases/1"},
        {"title": "Dealer network app", "link": ""},
        "Claims automation",
    ]
    assert format_matched_cases(cases) == (
        "Fleet telematics: https://cases/1\nDealer network app\nClaims automation"
    )
    assert format_matched_cases(None) == ""


def test_research_context_sections() -> None:
    context = build_research_context(
        {"Deal Size": "50k", "Company Name": "Acme", "Owner": "Sam"},
        [
            {"title": "Acme raises Series B", "summary": "EUR 40m round", "source": "Handelsblatt"},
            {"title": None, "summary": None, "source": None},
        ],
    )
    assert context == (
        "=== CLIENT SPECIFICATION ===\nDeal Size: 50k\nOwner: Sam"
        "\n\n=== RECENT NEWS ===\nAcme raises Series B - EUR 40m round [Handelsblatt]"
        "\n\nUntitled -  []"
    )


def test_research_context_empty() -> None:
    assert build_research_context(None, None) == ""
    assert build_research_context({}, [{"title": "Only news"}]) == "=== RECENT NEWS ===\nOnly news -  []"


def test_research_summary_prefers_summary_then_error() -> None:
    assert research_summary({"researchSummary": "notes", "error": "x"}) == "notes"
    assert research_summary({"error": "model unavailable"}) == "model unavailable"
    assert research_summary(None) == ""
    assert research_summary("legacy text") == "legacy text"


def test_export_row_follows_headers() -> None:
    row = export_row(_record(status="failed", error_message="disk full"))

    assert len(row) == len(EXPORT_HEADERS)
    values = dict(zip(EXPORT_HEADERS, row))
    assert values["LinkedIn Link"] == ""
    assert values["LinkedIn Message 3"] == ""
    assert values["Matched Cases"] == "Fleet telematics: https://cases/1"
    assert values["Processing Status"] == "failed"
    assert values["Error Message"] == "disk full"
    assert values["Research Summary"] == "Munich supplier"


def test_workbook_layout() -> None:
    content = build_workbook([_record(message1="Hi\x07 there"), _record(company_name="Globex")])

    sheet = load_workbook(io.BytesIO(content)).active
    assert sheet.title == "Results"
    assert [cell.value for cell in sheet[1]] == EXPORT_HEADERS
    assert sheet["A1"].font.bold
    assert sheet["A3"].value == "Globex"
    assert sheet["F2"].value == "Hi there"
    assert sheet["F2"].alignment.wrap_text
    assert sheet.column_dimensions["F"].width == 100


def test_export_filename() -> None:
    assert export_filename("leads.csv") == "leads_results.xlsx"
    assert export_filename("q3.leads.xlsx") == "q3.leads_results.xlsx"
    assert export_filename("") == "results.xlsx"
