"""Record enrichment pipeline.

One lead goes through research, classification, an optional dedicated news
search, regional tone resolution, case matching and finally three outreach
messages generated concurrently. Any unhandled error turns into a degraded
fallback result instead of propagating to the scheduler.
"""

import asyncio
import re
from collections.abc import Mapping
from datetime import UTC, datetime

from services.leadgen.case_matcher import CaseMatcher
from services.leadgen.constants import (
    COUNTRIES,
    COUNTRY_TO_ISO,
    DEFAULT_ISO_CODE,
    INDUSTRIES,
    OTHER_INDUSTRY,
    UNKNOWN_COUNTRY,
)
from services.leadgen.region_mapper import country_to_tone_key, get_region_display_name
from services.leadgen.schemas import CompanyClassification, GeneratedMessage, NewsSearchResult
from services.llm import LanguageModelDriver, TokenLimitError, get_language_model
from services.settings import SettingsService, interpolate
from shared.config import config
from shared.logging_utils import setup_logging
from shared.models import EnrichmentResult, LeadInput, MatchedCase, NewsItem

logger = setup_logging("enrichment-pipeline")

MESSAGE_PROMPT_KEYS = ("message1_prompt", "message2_prompt", "message3_prompt")
PIPELINE_PROMPT_KEYS = (
    "research_prompt",
    "research_system_prompt",
    "classification_prompt",
    "classification_system_prompt",
    "news_search_prompt",
    *MESSAGE_PROMPT_KEYS,
    "message_system_prompt",
)

FALLBACK_TONE_KEY = "regional_tone_usa"

NEWS_EXTRACTION_SYSTEM_PROMPT = (
    "You are a news analyst. Extract structured news items from web search results. "
    "Only include items with a title and, when available, the publication date, source URL "
    "and a one-sentence summary."
)

PLACEHOLDER_PATTERN = re.compile(
    r"\[(Your Name|Name|Position|Title|Company|Contact)\]|\{(Name|Position|Company)\}",
    re.IGNORECASE,
)
_NON_WORD = re.compile(r"[^a-z0-9\s]+")
_WHITESPACE = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    """Lower-case, strip punctuation and collapse whitespace."""
    return _WHITESPACE.sub(" ", _NON_WORD.sub("", title.lower())).strip()


def merge_news(
    classified: list[NewsItem], searched: list[NewsItem], limit: int = 10
) -> list[NewsItem]:
    """Prepend searched news that is not already known and cap the list.

    Two titles are duplicates when one normalized title contains the other.
    """
    seen = [normalize_title(item.title) for item in classified]
    fresh: list[NewsItem] = []
    for item in searched:
        title = normalize_title(item.title)
        if not title:
            continue
        if any(known and (title in known or known in title) for known in seen):
            continue
        fresh.append(item)
        seen.append(title)
    return (fresh + list(classified))[:limit]


def format_news(news: list[NewsItem], empty: str = "(No recent news found)") -> str:
    if not news:
        return empty
    return "\n".join(f"- {item.title} ({item.date}): {item.summary or 'No summary'}" for item in news)


def format_cases(
    cases: list[MatchedCase],
    heading: str = "Relevant Case Studies:",
    empty: str = "(No specific case studies matched - use general capabilities)",
) -> str:
    if not cases:
        return empty
    lines = [f"- {case.title}" + (f" (URL: {case.link})" if case.link else "") for case in cases]
    return heading + "\n" + "\n".join(lines)


def with_tone_guidance(system_prompt: str, country: str, region_name: str, tone_text: str) -> str:
    """Append regional communication guidelines to the message system prompt."""
    if not tone_text:
        return system_prompt
    return (
        f"{system_prompt}\n\nIMPORTANT - Regional Communication Guidelines for "
        f"{country} ({region_name} region):\n{tone_text}"
    )


def message_variables(
    lead: LeadInput,
    country: str,
    industry: str,
    research: str,
    news_text: str,
    cases_text: str,
) -> dict[str, str]:
    return {
        "firstName": lead.first_name,
        "lastName": lead.last_name,
        "companyName": lead.company_name,
        "country": country,
        "industry": industry,
        "researchContent": research,
        "enrichedNews": news_text,
        "matchedCasesText": cases_text,
    }


def fallback_messages(first_name: str, company_name: str) -> tuple[str, str, str]:
    return (
        f"Hi {first_name},\n\nI hope this message finds you well. I'm reaching out to explore "
        f"potential partnership opportunities with {company_name}.\n\nOur team specializes in "
        "delivering innovative software solutions that drive measurable business results.\n\n"
        "Would love to connect and share more about how we might help.",
        f"Hi {first_name},\n\nI wanted to share more about how we've helped companies similar to "
        f"{company_name} achieve their technology goals.\n\nLooking forward to connecting!",
        f"Hi {first_name},\n\nI wanted to share a relevant case study that might interest you.\n\n"
        f"Would be great to discuss how similar results could apply to {company_name}.",
    )


class RecordEnrichmentPipeline:
    """Turns one lead into classification, context and three drafted messages."""

    def __init__(
        self,
        settings: SettingsService,
        case_matcher: CaseMatcher,
        llm: LanguageModelDriver | None = None,
    ):
        self.settings = settings
        self.case_matcher = case_matcher
        self._llm = llm
        self.news_limit = config.get_pipeline_value("leadgen.news.max_items", 10)
        self.news_search_enabled = config.get_pipeline_value("leadgen.news.enabled", True)
        self.research_max_chars = config.get_pipeline_value("leadgen.research.summary_max_chars", 10000)
        self.message_max_tokens = config.get_pipeline_value(
            "leadgen.messages.max_completion_tokens", config.get("llm_max_completion_tokens", 8000)
        )

    @property
    def llm(self) -> LanguageModelDriver:
        if self._llm is None:
            self._llm = get_language_model()
        return self._llm

    @llm.setter
    def llm(self, value: LanguageModelDriver | None) -> None:
        self._llm = value

    async def enrich(self, lead: LeadInput) -> EnrichmentResult:
        """Run every stage.

        Pipeline errors produce the degraded fallback result, except a
        truncated response, which is raised so the record is marked failed.
        """
        try:
            return await self._run(lead)
        except TokenLimitError as e:
            logger.error(
                f"Token limit reached for {lead.company_name}, increase max_completion_tokens"
            )
            raise TokenLimitError(
                f"Message generation exceeded token limit for {lead.company_name}"
            ) from e
        except Exception as e:
            logger.error(f"Enrichment failed for {lead.company_name}, using fallback content: {e}")
            return self.fallback_result(lead, e)

    async def _run(self, lead: LeadInput) -> EnrichmentResult:
        prompts = await self.settings.get_prompts(PIPELINE_PROMPT_KEYS)

        research = await self.research(lead, prompts)
        classification = await self.classify(lead, research, prompts)
        country, industry = classification.country, classification.industry
        logger.info(f"{lead.company_name} classified as {country} / {industry}")

        news = list(classification.news)[: self.news_limit]
        searched: list[NewsItem] = []
        news_search_ran = False
        if self.news_search_enabled and country != UNKNOWN_COUNTRY and industry != OTHER_INDUSTRY:
            news_search_ran = True
            searched = await self.search_news(lead.company_name, country, industry, prompts)
            news = merge_news(news, searched, self.news_limit)

        tone_key, tone_text = await self.resolve_tone(country)

        cases = await self.case_matcher.match_cases_for_opportunity(
            lead.company_name, industry, country
        )

        system_prompt = with_tone_guidance(
            prompts["message_system_prompt"], country, get_region_display_name(country), tone_text
        )
        variables = message_variables(
            lead, country, industry, research, format_news(news), format_cases(cases)
        )
        message1, message2, message3 = await self.generate_messages(
            system_prompt, [prompts[key] for key in MESSAGE_PROMPT_KEYS], variables
        )
        check_message_quality(lead.company_name, (message1, message2, message3))

        return EnrichmentResult(
            company_region=country,
            company_industry=industry,
            company_news=news,
            matched_cases=cases,
            message1=message1,
            message2=message2,
            message3=message3,
            applied_regional_tone=tone_key,
            selected_news_indices=list(range(len(news))),
            selected_case_indices=list(range(len(cases))),
            research_data={
                "researchSummary": research[: self.research_max_chars],
                "searchesPerformed": 2 if news_search_ran else 1,
                "webSearchNewsCount": len(searched),
                "timestamp": datetime.now(UTC).isoformat(),
            },
        )

    async def research(self, lead: LeadInput, prompts: Mapping[str, str]) -> str:
        """Free-text research notes about the company."""
        prompt = interpolate(
            prompts["research_prompt"],
            {"companyName": lead.company_name, "linkedinLink": lead.linkedin_link or "Not provided"},
        )
        return await self.llm.complete(prompts.get("research_system_prompt", ""), prompt)

    async def classify(
        self, lead: LeadInput, research: str, prompts: Mapping[str, str]
    ) -> CompanyClassification:
        """Structured country, industry and news."""
        prompt = interpolate(
            prompts["classification_prompt"],
            {
                "companyName": lead.company_name,
                "COUNTRIES": ", ".join(c for c in COUNTRIES if c != UNKNOWN_COUNTRY),
                "INDUSTRIES": ", ".join(i for i in INDUSTRIES if i != OTHER_INDUSTRY),
                "researchContent": research,
            },
        )
        return await self.llm.complete_structured(
            prompts.get("classification_system_prompt", ""), prompt, CompanyClassification
        )

    async def search_news(
        self, company_name: str, country: str, industry: str, prompts: Mapping[str, str]
    ) -> list[NewsItem]:
        """Location-aware web search, then structured extraction.

        Degrades to no news on any failure.
        """
        iso_code = COUNTRY_TO_ISO.get(country, DEFAULT_ISO_CODE)
        query = interpolate(
            prompts["news_search_prompt"],
            {"companyName": company_name, "country": country, "industry": industry},
        )
        query += (
            f"\n\nNote: Focus on news sources and business publications from {country} "
            f"(ISO: {iso_code}) when available."
        )
        try:
            results = await self.llm.web_search(query, location_hint=iso_code)
            if not results:
                return []
            extracted = await self.llm.complete_structured(
                NEWS_EXTRACTION_SYSTEM_PROMPT,
                f"Extract news items from these web search results about {company_name}:\n\n"
                f"{results}\n\nReturn up to {self.news_limit} most relevant news items, "
                "sorted by date (newest first).",
                NewsSearchResult,
            )
        except Exception as e:
            logger.warning(f"News search failed for {company_name}, continuing without it: {e}")
            return []
        logger.info(f"News search found {len(extracted.news)} items for {company_name}")
        return extracted.news[: self.news_limit]

    async def resolve_tone(self, country: str) -> tuple[str, str]:
        """Tone key for the country and its guideline text ('' when missing)."""
        tone_key = country_to_tone_key(country)
        try:
            tone_text = await self.settings.get_or_default(tone_key, "")
        except Exception as e:
            logger.warning(f"Tone lookup failed for {tone_key}: {e}")
            tone_text = ""
        return tone_key, tone_text

    async def generate_message(
        self, system_prompt: str, template: str, variables: Mapping[str, str]
    ) -> str:
        result = await self.llm.complete_structured(
            system_prompt,
            interpolate(template, variables),
            GeneratedMessage,
            max_tokens=self.message_max_tokens,
        )
        return result.content

    async def generate_messages(
        self, system_prompt: str, templates: list[str], variables: Mapping[str, str]
    ) -> list[str]:
        """All templates concurrently; the first failure fails the stage."""
        return list(
            await asyncio.gather(
                *(self.generate_message(system_prompt, template, variables) for template in templates)
            )
        )

    def fallback_result(self, lead: LeadInput, error: Exception) -> EnrichmentResult:
        message1, message2, message3 = fallback_messages(lead.first_name, lead.company_name)
        return EnrichmentResult(
            company_region=UNKNOWN_COUNTRY,
            company_industry=OTHER_INDUSTRY,
            message1=message1,
            message2=message2,
            message3=message3,
            applied_regional_tone=FALLBACK_TONE_KEY,
            research_data={"error": str(error) or type(error).__name__},
            degraded=True,
        )


def check_message_quality(company_name: str, messages: tuple[str, ...]) -> None:
    """Log word counts and warn about leftover signature placeholders."""
    for number, message in enumerate(messages, start=1):
        words = len(message.split())
        logger.info(f"{company_name} message {number}: {words} words")
        if PLACEHOLDER_PATTERN.search(message):
            logger.warning(f"{company_name} message {number} contains placeholder text")
