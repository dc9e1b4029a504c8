"""Case study matching for sales opportunities.

Loads the reference case catalog (remote JSON first, local table as
fallback), narrows it by industry and asks the language model to pick the
two most relevant cases.
"""

from collections.abc import Callable
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import async_session
from models.database import Case
from services.leadgen.constants import INDUSTRY_GROUPS, OTHER_INDUSTRY, UNKNOWN_COUNTRY
from services.leadgen.schemas import CaseSelection
from services.llm import LanguageModelDriver, get_language_model
from services.settings import SettingsService
from shared.cache import Cache
from shared.config import config
from shared.http_client import AsyncHTTPClient
from shared.logging_utils import setup_logging
from shared.models import CaseData, MatchedCase

logger = setup_logging("case-matcher")

CATALOG_CACHE_KEY = "case_catalog"
CASE_DATA_URL_KEY = "case_data_url"
MAX_SELECTED_CASES = 2

CASE_SELECTION_SYSTEM_PROMPT = (
    "You are a case study selection expert. Select the most relevant case studies "
    "for sales outreach based on industry match and business relevance."
)


class CaseCatalogError(Exception):
    """Raised when the remote case catalog cannot be loaded."""


def parse_case_catalog(payload: Any) -> list[CaseData]:
    """Convert a catalog payload into cases.

    Accepts either a bare list of case objects or the CMS export shape
    ``{"data": {"allProjectPreview": {"nodes": [...]}}}``.
    """
    if isinstance(payload, dict):
        nodes = (payload.get("data") or {}).get("allProjectPreview", {}).get("nodes")
    else:
        nodes = payload
    if not isinstance(nodes, list):
        raise CaseCatalogError("Unexpected case catalog format")

    cases = []
    for node in nodes:
        if not isinstance(node, dict) or node.get("id") is None:
            continue
        cases.append(
            CaseData(
                id=str(node["id"]),
                title=node.get("title") or node.get("name") or "Untitled Case",
                industry=node.get("industry") or node.get("sector") or OTHER_INDUSTRY,
                country=node.get("country") or node.get("location") or node.get("region") or UNKNOWN_COUNTRY,
                link=node.get("project_url") or node.get("link") or node.get("url") or "",
            )
        )
    return cases


def filter_by_industry(cases: list[CaseData], industry: str, min_matches: int = 3) -> list[CaseData]:
    """Cases whose industry overlaps ``industry``.

    Direct matches are substring containment in either direction. Fewer than
    ``min_matches`` direct matches widens the search with the related terms of
    the first industry group the target belongs to. An empty result returns
    the whole catalog.
    """
    target = (industry or "").strip().lower()

    def _overlaps(case: CaseData) -> bool:
        case_industry = case.industry.lower()
        return case_industry in target or target in case_industry

    matches = [case for case in cases if _overlaps(case)]

    if len(matches) < min_matches:
        terms = _related_terms(target)
        if terms:
            widened = {
                case.id
                for case in cases
                if any(term in case.industry.lower() for term in terms)
            }
            direct = {case.id for case in matches}
            matches = [case for case in cases if case.id in direct or case.id in widened]

    return matches or list(cases)


def _related_terms(target: str) -> tuple[str, ...]:
    if not target:
        return ()
    for group, synonyms in INDUSTRY_GROUPS.items():
        if group in target or any(synonym in target for synonym in synonyms):
            return (*synonyms, group)
    return ()


class CaseMatcher:
    """Finds the reference cases to cite for an opportunity."""

    def __init__(
        self,
        settings: SettingsService,
        llm: LanguageModelDriver | None = None,
        session_factory: Callable[[], AsyncSession] = async_session,
        cache: Cache | None = None,
        http_client_factory: Callable[..., AsyncHTTPClient] = AsyncHTTPClient,
    ):
        self.settings = settings
        self._llm = llm
        self._session_factory = session_factory
        self.cache_ttl = config.get("case_cache_ttl", 3600)
        self.cache = cache or Cache(default_ttl=self.cache_ttl)
        self.http_client_factory = http_client_factory
        self.fetch_timeout = config.get("case_catalog_timeout", 10)
        self.min_direct_matches = config.get_pipeline_value("leadgen.cases.min_direct_matches", 3)
        self.max_selected = config.get_pipeline_value(
            "leadgen.cases.max_selected", MAX_SELECTED_CASES
        )

    @property
    def llm(self) -> LanguageModelDriver:
        if self._llm is None:
            self._llm = get_language_model()
        return self._llm

    @llm.setter
    def llm(self, value: LanguageModelDriver | None) -> None:
        self._llm = value

    async def fetch_case_catalog(self) -> list[CaseData]:
        """All known cases, remote catalog first and local table on failure."""
        cached = self.cache.get(CATALOG_CACHE_KEY)
        if cached is not None:
            return cached

        try:
            cases = await self._fetch_remote_catalog()
        except Exception as e:
            logger.warning(f"Remote case catalog unavailable, using local cases: {e}")
            return await self.fetch_local_cases()

        self.cache.set(CATALOG_CACHE_KEY, cases, ttl=self.cache_ttl)
        logger.info(f"Loaded {len(cases)} cases from remote catalog")
        return cases

    async def _fetch_remote_catalog(self) -> list[CaseData]:
        url = await self.settings.get(CASE_DATA_URL_KEY) or config.get("case_data_url")
        if not url:
            raise CaseCatalogError("case_data_url is not configured")
        async with self.http_client_factory(timeout=self.fetch_timeout) as client:
            payload = await client.get(url)
        return parse_case_catalog(payload)

    async def fetch_local_cases(self) -> list[CaseData]:
        """Active cases from the local table; empty when the table cannot be read."""
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(Case).where(Case.is_active.is_(True)).order_by(Case.created_at)
                )
                rows = result.scalars().all()
        except Exception as e:
            logger.error(f"Failed to load local cases: {e}")
            return []
        return [
            CaseData(
                id=str(row.id),
                title=row.title,
                industry=row.industry or OTHER_INDUSTRY,
                country=row.country or UNKNOWN_COUNTRY,
                link=row.link or "",
            )
            for row in rows
        ]

    def filter_by_industry(self, cases: list[CaseData], industry: str) -> list[CaseData]:
        return filter_by_industry(cases, industry, self.min_direct_matches)

    async def select_best(
        self, candidates: list[CaseData], company: str, industry: str, country: str
    ) -> list[CaseData]:
        """Rank candidates with the language model and keep the best ``max_selected``."""
        if len(candidates) <= self.max_selected:
            return list(candidates)

        fallback = list(candidates[: self.max_selected])
        try:
            instructions = await self.settings.get_prompts(["case_selection_prompt"])
            case_list = "\n".join(
                f"{i + 1}. [ID: {case.id}] {case.title} ({case.industry}, {case.country})"
                for i, case in enumerate(candidates)
            )
            prompt = (
                f"{instructions.get('case_selection_prompt', '')}\n\n"
                f"Opportunity:\n- Company: {company}\n- Industry: {industry}\n- Country: {country}\n\n"
                f"Available case studies:\n{case_list}\n\n"
                "Prioritize industry relevance first, then problem alignment, then geography, "
                f"then technology fit. Return the IDs of at most {self.max_selected} cases."
            )
            selection = await self.llm.complete_structured(
                CASE_SELECTION_SYSTEM_PROMPT,
                prompt,
                CaseSelection,
                max_tokens=config.get_pipeline_value("leadgen.case_selection.max_completion_tokens", 4000),
            )
        except Exception as e:
            logger.warning(f"Case ranking failed, using first {self.max_selected} candidates: {e}")
            return fallback

        by_id = {case.id: case for case in candidates}
        selected: list[CaseData] = []
        for case_id in selection.selected_case_ids:
            case = by_id.get(case_id.strip())
            if case is not None and case not in selected:
                selected.append(case)
            if len(selected) == self.max_selected:
                break

        if not selected:
            logger.warning("Case ranking returned no known ids, using first candidates")
            return fallback
        return selected

    async def match_cases_for_opportunity(
        self, company: str, industry: str, country: str
    ) -> list[MatchedCase]:
        """Up to two {title, link} cases for the opportunity; empty on any failure."""
        try:
            catalog = await self.fetch_case_catalog()
            if not catalog:
                logger.info("Case catalog is empty, no cases to match")
                return []
            candidates = self.filter_by_industry(catalog, industry)
            best = await self.select_best(candidates, company, industry, country)
            return [case.to_match() for case in best]
        except Exception as e:
            logger.error(f"Case matching failed for {company}: {e}")
            return []
