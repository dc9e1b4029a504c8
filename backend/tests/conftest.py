import sys
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio

ROOT_DIR = Path(__file__).resolve().parents[1]
PROJECT_ROOT = ROOT_DIR.parent
for path in (PROJECT_ROOT, ROOT_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from database import configure_database, get_engine, init_database
from services.container import set_container
from services.leadgen.schemas import (
    CaseSelection,
    CompanyClassification,
    GeneratedMessage,
    NewsSearchResult,
)
from services.leadgen.store import JobRecordStore
from services.llm import LanguageModelDriver, LanguageModelError, TokenLimitError, set_language_model
from services.settings import SettingsService
from services.settings.defaults import DEFAULT_PROMPTS
from shared.cache import Cache
from shared.config import config as service_config
from shared.models import LeadRow, SettingView

TEST_SETTINGS: dict[str, str] = {
    "message1_prompt": "First message for {{firstName}} at {{companyName}}\nNews: {{enrichedNews}}",
    "message2_prompt": "Second message for {{firstName}} at {{companyName}}\nCases: {{matchedCasesText}}",
    "message3_prompt": "Third message for {{firstName}} at {{companyName}} in {{country}}",
    "message_system_prompt": "You write LinkedIn messages.",
    "regional_tone_dach": "Be formal and precise.",
    "regional_tone_usa": "Be direct and energetic.",
    "regional_tone_uk": "Be understated and polite.",
}


class FakeLanguageModel(LanguageModelDriver):
    """In-memory driver returning canned answers and recording every call.

    Generated messages echo the first line of the rendered prompt so tests can
    see which template and variables were used.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str]] = []
        self.classification: dict[str, Any] = {
            "country": "Germany",
            "industry": "Automotive",
            "news": [{"title": "Acme opens Berlin plant", "date": "2025-03-01"}],
        }
        self.search_results = "Acme raised a Series B round."
        self.searched_news: list[dict[str, Any]] = [
            {"title": "Acme raises Series B", "date": "2025-05-10", "source": "example.com"}
        ]
        self.case_ids: list[str] = []
        self.fail_on: set[str] = set()
        self.truncate_on: set[str] = set()

    def _maybe_fail(self, name: str) -> None:
        if name in self.truncate_on:
            raise TokenLimitError(f"{name} response hit the length limit")
        if name in self.fail_on:
            raise LanguageModelError(f"{name} unavailable")

    def calls_to(self, name: str) -> list[tuple[str, str, str]]:
        return [call for call in self.calls if call[0] == name]

    async def complete(self, system_prompt, user_prompt, max_tokens=None):
        self.calls.append(("complete", system_prompt, user_prompt))
        self._maybe_fail("complete")
        return "Acme is a growing automotive supplier headquartered in Munich."

    async def complete_structured(self, system_prompt, user_prompt, schema, max_tokens=None):
        name = schema.__name__
        self.calls.append((name, system_prompt, user_prompt))
        self._maybe_fail(name)
        if schema is CompanyClassification:
            return CompanyClassification.model_validate(self.classification)
        if schema is NewsSearchResult:
            return NewsSearchResult.model_validate({"news": self.searched_news})
        if schema is CaseSelection:
            return CaseSelection(selected_case_ids=self.case_ids)
        if schema is GeneratedMessage:
            return GeneratedMessage(content=user_prompt.splitlines()[0])
        raise AssertionError(f"Unexpected schema {name}")

    async def web_search(self, query, location_hint=None, system_prompt=None):
        self.calls.append(("web_search", location_hint or "", query))
        self._maybe_fail("web_search")
        return self.search_results


class StubSettingsStore:
    """Dictionary-backed stand-in for ``SettingsStore``."""

    def __init__(self, values: dict[str, str] | None = None) -> None:
        self.values = dict(values or {})
        self.reads = 0
        self.fail = False

    async def get_all(self) -> list[SettingView]:
        self.reads += 1
        if self.fail:
            raise RuntimeError("settings table unavailable")
        return [SettingView(key=key, value=value) for key, value in sorted(self.values.items())]

    async def set(self, key: str, value: str, description=None, category="general") -> None:
        if self.fail:
            raise RuntimeError("settings table unavailable")
        self.values[key] = value

    async def seed(self, entries: list[dict[str, Any]]) -> int:
        inserted = 0
        for entry in entries:
            if entry["key"] not in self.values:
                self.values[entry["key"]] = entry["value"]
                inserted += 1
        return inserted


def make_rows(count: int, company: str = "Acme") -> list[LeadRow]:
    return [
        LeadRow(
            company_name=f"{company} {index}",
            first_name=f"Ada{index}",
            last_name="Lovelace",
            linkedin_link=f"https://linkedin.com/in/ada{index}",
        )
        for index in range(count)
    ]


@pytest.fixture(autouse=True)
def reset_globals():
    """Keep process-wide singletons from leaking between tests."""
    set_language_model(None)
    set_container(None)
    yield
    set_language_model(None)
    set_container(None)


@pytest.fixture
def fake_llm() -> FakeLanguageModel:
    return FakeLanguageModel()


@pytest.fixture
def settings_store() -> StubSettingsStore:
    return StubSettingsStore(TEST_SETTINGS)


@pytest.fixture
def settings(settings_store: StubSettingsStore) -> SettingsService:
    return SettingsService(store=settings_store, cache=Cache(), defaults=DEFAULT_PROMPTS, ttl=300)


@pytest_asyncio.fixture
async def session_factory(tmp_path: Path) -> AsyncIterator[Any]:
    """Fresh SQLite database per test."""
    factory = configure_database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_database()
    try:
        yield factory
    finally:
        await get_engine().dispose()


@pytest.fixture
def job_store(session_factory) -> JobRecordStore:
    return JobRecordStore(session_factory)


@pytest.fixture
def pipeline_config():
    """Restore pipeline tunables changed by a test."""
    original = dict(service_config.pipeline_config)
    yield service_config
    service_config.set_pipeline_config(original)
