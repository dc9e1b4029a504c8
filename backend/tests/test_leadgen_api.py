"""HTTP tests for the lead enrichment and settings services."""

import io
from datetime import datetime
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from openpyxl import load_workbook

from services.auth import User, get_current_user
from services.container import get_container
from services.leadgen.app import app as leadgen_app
from services.leadgen.export import XLSX_MEDIA_TYPE
from services.leadgen.store import InvalidJobStateError, JobNotFoundError, RecordNotFoundError
from services.settings.app import app as settings_app
from shared.config import config as service_config
from shared.models import MatchedCase, ProcessingSummary, RegenerateResponse, SettingView

NOW = datetime(2025, 6, 1, 12, 0, 0)
OPERATOR = User(id=1, username="operator")
ADMIN = User(id=2, username="admin", is_admin=True)


def _job(**overrides) -> SimpleNamespace:
    values = {
        "id": "job-1",
        "user_id": OPERATOR.id,
        "filename": "leads.xlsx",
        "status": "processing",
        "total_records": 10,
        "processed_records": 4,
        "error_message": None,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


def _record(**overrides) -> SimpleNamespace:
    values = {
        "id": "rec-1",
        "job_id": "job-1",
        "status": "completed",
        "company_name": "Acme",
        "first_name": "Ada",
        "last_name": "Lovelace",
        "linkedin_link": None,
        "job_title": "CTO",
        "raw_data": {"Deal Size": "50k"},
        "company_region": "Germany",
        "company_industry": "Automotive",
        "company_news": [{"title": "Acme raises Series B", "date": "2025-05-10", "source": None, "summary": None}],
        "matched_cases": [{"title": "Fleet telematics", "link": ""}],
        "selected_news_indices": [0],
        "selected_case_indices": [0],
        "applied_regional_tone": "regional_tone_dach",
        "message1": "One",
        "message2": "Two",
        "message3": "Three",
        "research_data": {"researchSummary": "notes"},
        "is_degraded": False,
        "processing_time_ms": 900,
        "error_message": None,
        "retry_count": 0,
        "created_at": NOW,
        "updated_at": NOW,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def container() -> SimpleNamespace:
    store = MagicMock()
    store.create_job = AsyncMock(return_value=_job(status="pending", processed_records=0))
    store.get_job = AsyncMock(return_value=_job())
    store.list_jobs = AsyncMock(return_value=[_job()])
    store.record_counts = AsyncMock(
        return_value={
            "average_processing_time_ms": 6000.0,
            "pending": 5,
            "processing": 1,
            "completed": 4,
            "failed": 0,
        }
    )
    store.queue_position = AsyncMock(return_value=0)
    store.cancel_job = AsyncMock(return_value=_job(status="cancelled"))
    store.delete_job = AsyncMock(return_value=None)
    store.records_for_job = AsyncMock(return_value=[_record()])
    store.get_record = AsyncMock(return_value=_record())

    scheduler = MagicMock()
    scheduler.process_pending_records = AsyncMock(
        return_value=ProcessingSummary(jobs_processed=1, records_processed=5)
    )
    regenerator = MagicMock()
    regenerator.regenerate_message = AsyncMock(
        return_value=RegenerateResponse(
            record_id="rec-1",
            message_number=1,
            messages={"message1": "Fresh one"},
            applied_regional_tone="regional_tone_dach",
            region_name="DACH",
            selected_news_indices=[0],
            selected_case_indices=[],
        )
    )
    case_matcher = MagicMock()
    case_matcher.match_cases_for_opportunity = AsyncMock(
        return_value=[MatchedCase(title="Fleet telematics", link="https://cases/1")]
    )
    settings = MagicMock()
    settings.get_all = AsyncMock(
        return_value=[
            SettingView(key="message1_prompt", value="Hi {{firstName}}", category="prompts"),
            SettingView(key="regional_tone_uk", value="Be polite.", category="regional_tones"),
        ]
    )
    settings.get_by_category = AsyncMock(
        return_value=[SettingView(key="regional_tone_uk", value="Be polite.", category="regional_tones")]
    )
    settings.update = AsyncMock(return_value=True)
    return SimpleNamespace(
        store=store,
        scheduler=scheduler,
        regenerator=regenerator,
        case_matcher=case_matcher,
        settings=settings,
    )


@pytest.fixture
def current_user() -> dict:
    return {"user": OPERATOR}


@pytest.fixture
def client(container, current_user):
    for service_app in (leadgen_app, settings_app):
        service_app.dependency_overrides[get_container] = lambda: container
        service_app.dependency_overrides[get_current_user] = lambda: current_user["user"]
    try:
        yield TestClient(leadgen_app)
    finally:
        for service_app in (leadgen_app, settings_app):
            service_app.dependency_overrides.clear()


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["success"] is True


def test_create_job(client, container) -> None:
    response = client.post(
        "/jobs",
        json={
            "filename": "leads.xlsx",
            "rows": [
                {"Company Name": "Acme", "First Name": "Ada", "Last Name": "Lovelace", "Deal Size": "50k"}
            ],
        },
    )

    assert response.status_code == 201
    assert response.json()["status"] == "pending"
    filename, rows = container.store.create_job.await_args.args
    assert filename == "leads.xlsx"
    assert rows[0].company_name == "Acme"
    assert rows[0].extra_columns() == {"Deal Size": "50k"}
    assert container.store.create_job.await_args.kwargs == {"user_id": OPERATOR.id}


def test_create_job_requires_lead_columns(client) -> None:
    response = client.post(
        "/jobs", json={"filename": "leads.xlsx", "rows": [{"Company Name": "Acme", "First Name": "Ada"}]}
    )
    assert response.status_code == 422


def test_create_job_rejects_empty_upload(client) -> None:
    response = client.post("/jobs", json={"filename": "leads.xlsx", "rows": []})
    assert response.status_code == 422


def test_create_job_rejects_oversized_upload(client, container) -> None:
    original = service_config.get("max_upload_rows")
    service_config.set("max_upload_rows", 2)
    try:
        row = {"Company Name": "Acme", "First Name": "Ada", "Last Name": "Lovelace"}
        response = client.post("/jobs", json={"filename": "leads.xlsx", "rows": [row] * 3})
    finally:
        service_config.set("max_upload_rows", original)

    assert response.status_code == 400
    container.store.create_job.assert_not_awaited()


def test_list_jobs_is_scoped_to_caller(client, container) -> None:
    response = client.get("/jobs")
    assert response.status_code == 200
    assert [job["id"] for job in response.json()] == ["job-1"]
    container.store.list_jobs.assert_awaited_once_with(OPERATOR.id)


def test_admin_sees_all_jobs(client, container, current_user) -> None:
    current_user["user"] = ADMIN
    client.get("/jobs")
    container.store.list_jobs.assert_awaited_once_with(None)


def test_job_detail_includes_stats(client) -> None:
    response = client.get("/jobs/job-1")

    assert response.status_code == 200
    stats = response.json()["stats"]
    assert stats["pending_records"] == 5
    assert stats["estimated_time_remaining_ms"] == 6 * 6000
    assert stats["records_per_minute"] == 10.0


def test_unknown_job_is_404(client, container) -> None:
    container.store.get_job.side_effect = JobNotFoundError("Job nope not found")
    assert client.get("/jobs/nope").status_code == 404
    assert client.get("/jobs/nope/results").status_code == 404


def test_delete_processing_job_is_refused(client, container) -> None:
    container.store.delete_job.side_effect = InvalidJobStateError("currently processing")
    response = client.delete("/jobs/job-1")
    assert response.status_code == 400


def test_delete_job(client, container) -> None:
    response = client.delete("/jobs/job-1")
    assert response.status_code == 200
    container.store.delete_job.assert_awaited_once_with("job-1", OPERATOR.id)


def test_cancel_job(client, container) -> None:
    response = client.post("/jobs/job-1/cancel")
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    container.store.cancel_job.side_effect = InvalidJobStateError("already completed")
    assert client.post("/jobs/job-1/cancel").status_code == 400


def test_job_results(client) -> None:
    response = client.get("/jobs/job-1/results")

    assert response.status_code == 200
    record = response.json()["records"][0]
    assert record["message1"] == "One"
    assert record["company_news"][0]["source"] == ""
    assert record["raw_data"] == {"Deal Size": "50k"}


def test_get_record_checks_job_ownership(client, container) -> None:
    assert client.get("/records/rec-1").status_code == 200
    container.store.get_job.assert_awaited_with("job-1", OPERATOR.id)

    container.store.get_job.side_effect = JobNotFoundError("Job job-1 not found")
    assert client.get("/records/rec-1").status_code == 404


def test_unknown_record_is_404(client, container) -> None:
    container.store.get_record.side_effect = RecordNotFoundError("Record nope not found")
    assert client.get("/records/nope").status_code == 404
    response = client.post("/records/nope/regenerate", json={"message_number": 1})
    assert response.status_code == 404


def test_regenerate(client, container) -> None:
    response = client.post(
        "/records/rec-1/regenerate",
        json={
            "message_number": "all",
            "selected_news_indices": [0],
            "selected_case_ids": ["case-0"],
            "regional_tone_key": "regional_tone_uk",
        },
    )

    assert response.status_code == 200
    assert response.json()["messages"] == {"message1": "Fresh one"}
    container.regenerator.regenerate_message.assert_awaited_once_with(
        "rec-1",
        "all",
        [0],
        ["case-0"],
        tone_override="regional_tone_uk",
        current_message_text=None,
    )


def test_regenerate_rejects_unknown_message_number(client) -> None:
    response = client.post("/records/rec-1/regenerate", json={"message_number": 4})
    assert response.status_code == 422


def test_regenerate_failure_is_500(client, container) -> None:
    container.regenerator.regenerate_message.side_effect = RuntimeError("model down")
    response = client.post("/records/rec-1/regenerate", json={"message_number": 2})
    assert response.status_code == 500
    assert "model down" in response.json()["detail"]


def test_match_cases(client, container) -> None:
    response = client.post(
        "/cases/match", json={"company_name": "Acme", "industry": "Automotive", "country": "Germany"}
    )
    assert response.status_code == 200
    assert response.json() == [{"title": "Fleet telematics", "link": "https://cases/1"}]


def test_cron_requires_secret(client, container) -> None:
    assert client.post("/cron/process").status_code == 401
    assert client.post("/cron/process", headers={"X-Cron-Secret": "wrong"}).status_code == 401
    container.scheduler.process_pending_records.assert_not_awaited()


def test_cron_runs_one_tick(client) -> None:
    response = client.post(
        "/cron/process", headers={"X-Cron-Secret": service_config.get("cron_secret")}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["jobsProcessed"] == 1
    assert body["recordsProcessed"] == 5
    assert "timestamp" in body


def test_settings_list_and_get(client, container) -> None:
    settings_client = TestClient(settings_app)

    assert len(settings_client.get("/").json()) == 2
    assert settings_client.get("/", params={"category": "regional_tones"}).json()[0]["key"] == (
        "regional_tone_uk"
    )
    assert settings_client.get("/regional_tone_uk").json()["value"] == "Be polite."
    assert settings_client.get("/missing").status_code == 404


def test_settings_update_requires_admin(client, container, current_user) -> None:
    settings_client = TestClient(settings_app)

    response = settings_client.put("/regional_tone_uk", json={"value": "Be brief."})
    assert response.status_code == 403

    current_user["user"] = ADMIN
    response = settings_client.put("/regional_tone_uk", json={"value": "Be brief."})
    assert response.status_code == 200
    container.settings.update.assert_awaited_once_with("regional_tone_uk", "Be brief.")


def test_unified_app_mounts_services() -> None:
    from app import app as backend_app

    paths = {getattr(route, "path", None) for route in backend_app.routes}
    assert {
        "/api/v1/leadgen/jobs",
        "/api/v1/leadgen/cron/process",
        "/api/v1/leadgen/jobs/{job_id}/export",
        "/api/v1/leadgen/records/{record_id}/regenerate",
        "/api/v1/settings/{key}",
        "/token",
    } <= paths
    assert "/api/v1/leadgen/docs" not in paths

    response = TestClient(backend_app).get("/")
    assert response.json()["services"]["leadgen"]["base_url"] == "/api/v1/leadgen"


@pytest.mark.parametrize(("connected", "status"), [(True, "healthy"), (False, "degraded")])
def test_unified_health_reports_database(monkeypatch, connected, status) -> None:
    import app as backend

    monkeypatch.setattr(backend, "check_connection", AsyncMock(return_value=connected))
    monkeypatch.setattr(
        backend, "get_container", lambda: SimpleNamespace(worker=SimpleNamespace(running=False))
    )

    body = TestClient(backend.app).get("/health").json()

    assert body["status"] == status
    assert body["database"] == ("connected" if connected else "unavailable")
    assert body["services"]["scheduler"] == "stopped"


def test_export_job_results(client, container) -> None:
    response = client.get("/jobs/job-1/export")

    assert response.status_code == 200
    assert response.headers["content-type"] == XLSX_MEDIA_TYPE
    assert 'filename="leads_results.xlsx"' in response.headers["content-disposition"]
    sheet = load_workbook(io.BytesIO(response.content)).active
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0][0] == "Company Name"
    assert rows[1][0] == "Acme"
    assert rows[1][10] == "Fleet telematics"
    container.store.get_job.assert_awaited_once_with("job-1", OPERATOR.id)


def test_export_unknown_job(client, container) -> None:
    container.store.get_job.side_effect = JobNotFoundError("Job job-9 not found")
    response = client.get("/jobs/job-9/export")
    assert response.status_code == 404
    container.store.records_for_job.assert_not_awaited()
