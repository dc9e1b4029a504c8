"""Wiring of the lead enrichment services.

One container per process holds the settings cache, the case catalog cache
and the language model driver so every request and scheduler tick share them.
"""

from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from database import async_session
from services.leadgen.case_matcher import CaseMatcher
from services.leadgen.pipeline import RecordEnrichmentPipeline
from services.leadgen.regeneration import MessageRegenerator
from services.leadgen.scheduler import JobScheduler
from services.leadgen.store import JobRecordStore
from services.leadgen.worker import SchedulerLoop
from services.llm import LanguageModelDriver
from services.settings import SettingsService, SettingsStore
from shared.config import config


class ServiceContainer:
    """Lazily builds and caches the service graph."""

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = async_session,
        llm: LanguageModelDriver | None = None,
    ):
        self.session_factory = session_factory
        self.llm = llm
        self._settings: SettingsService | None = None
        self._store: JobRecordStore | None = None
        self._case_matcher: CaseMatcher | None = None
        self._pipeline: RecordEnrichmentPipeline | None = None
        self._scheduler: JobScheduler | None = None
        self._regenerator: MessageRegenerator | None = None
        self._worker: SchedulerLoop | None = None

    @property
    def settings(self) -> SettingsService:
        if self._settings is None:
            self._settings = SettingsService(SettingsStore(self.session_factory))
        return self._settings

    @settings.setter
    def settings(self, service: SettingsService) -> None:
        self._settings = service

    @property
    def store(self) -> JobRecordStore:
        if self._store is None:
            self._store = JobRecordStore(self.session_factory)
        return self._store

    @property
    def case_matcher(self) -> CaseMatcher:
        if self._case_matcher is None:
            self._case_matcher = CaseMatcher(
                self.settings, llm=self.llm, session_factory=self.session_factory
            )
        return self._case_matcher

    @case_matcher.setter
    def case_matcher(self, matcher: CaseMatcher) -> None:
        self._case_matcher = matcher

    @property
    def pipeline(self) -> RecordEnrichmentPipeline:
        if self._pipeline is None:
            self._pipeline = RecordEnrichmentPipeline(self.settings, self.case_matcher, llm=self.llm)
        return self._pipeline

    @property
    def scheduler(self) -> JobScheduler:
        if self._scheduler is None:
            self._scheduler = JobScheduler(self.store, self.pipeline)
        return self._scheduler

    @property
    def regenerator(self) -> MessageRegenerator:
        if self._regenerator is None:
            self._regenerator = MessageRegenerator(self.store, self.pipeline, self.settings)
        return self._regenerator

    @property
    def worker(self) -> SchedulerLoop:
        if self._worker is None:
            self._worker = SchedulerLoop(
                self.scheduler, interval=float(config.get("scheduler_interval_seconds", 20))
            )
        return self._worker


_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """FastAPI dependency returning the process-wide container."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def set_container(container: ServiceContainer | None) -> None:
    global _container
    _container = container
