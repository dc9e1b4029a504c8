"""Operator-driven regeneration of outreach messages.

Re-runs message generation only, against a chosen subset of the news and
cases stored on a record, optionally with a different regional tone.
"""

import re
from typing import Any, Literal

from services.leadgen.constants import OTHER_INDUSTRY
from services.leadgen.pipeline import (
    MESSAGE_PROMPT_KEYS,
    RecordEnrichmentPipeline,
    format_cases,
    format_news,
    message_variables,
    with_tone_guidance,
)
from services.leadgen.region_mapper import (
    country_to_tone_key,
    get_region_display_name,
    tone_key_display_name,
)
from services.leadgen.store import JobRecordStore
from services.settings import SettingsService
from shared.logging_utils import setup_logging
from shared.models import LeadInput, MatchedCase, NewsItem, RegenerateResponse

logger = setup_logging("message-regeneration")

MessageNumber = Literal[1, 2, 3, "all"]

DEFAULT_REGENERATION_COUNTRY = "USA"
_CASE_ID_PATTERN = re.compile(r"^(?:case|legacy)-(\d+)$")


def parse_case_ids(case_ids: list[str], case_count: int) -> list[int]:
    """Map ``case-<n>`` / ``legacy-<n>`` ids to valid, unique indices."""
    indices: list[int] = []
    for case_id in case_ids:
        match = _CASE_ID_PATTERN.match(case_id.strip())
        if not match:
            continue
        index = int(match.group(1))
        if index < case_count and index not in indices:
            indices.append(index)
    return indices


def valid_indices(indices: list[int], size: int) -> list[int]:
    return list(dict.fromkeys(i for i in indices if 0 <= i < size))


def stored_cases(raw: Any) -> list[MatchedCase]:
    """Stored matched cases; bare strings from older rows become title-only cases."""
    cases = []
    for item in raw or []:
        if isinstance(item, str):
            cases.append(MatchedCase(title=item))
        elif isinstance(item, dict):
            cases.append(MatchedCase(title=item.get("title") or "Unknown", link=item.get("link") or ""))
    return cases


def regeneration_prompt(
    template: str,
    tone_label: str,
    news_count: int,
    case_count: int,
    news_text: str,
    cases_text: str,
    previous_message: str | None = None,
) -> str:
    """Extend a message template with the operator's selection.

    The previous-version block is only added when ``previous_message`` is given.
    """
    prompt = (
        f"{template}\n\nREGENERATION CONTEXT:\n"
        "The sales person has selected specific context for this message regeneration.\n"
        f"Regional tone: {tone_label}\n"
        f"Selected: {news_count} news item(s), {case_count} case study(ies)\n"
        "Focus SPECIFICALLY on the selected news and case studies provided.\n\n"
        f"SELECTED NEWS ITEMS:\n{news_text}\n\n{cases_text}\n\n"
    )
    if previous_message is None:
        return prompt + (
            "Instructions for regeneration:\n"
            "1. Focus on the SELECTED news and cases above (not general research)\n"
            "2. Maintain the same message type structure and tone requirements\n"
            "3. Follow regional communication guidelines"
        )
    return prompt + (
        "PREVIOUS MESSAGE VERSION (may contain sales person's edits, notes, or talking points "
        f"to incorporate):\n---\n{previous_message or '(No previous version)'}\n---\n\n"
        "Instructions for regeneration:\n"
        "1. Focus on the SELECTED news and cases above (not general research)\n"
        "2. Incorporate any specific talking points or edits from the previous version\n"
        "3. Maintain the same message type structure and tone requirements\n"
        "4. Follow regional communication guidelines"
    )


class MessageRegenerator:
    def __init__(
        self,
        store: JobRecordStore,
        pipeline: RecordEnrichmentPipeline,
        settings: SettingsService,
    ):
        self.store = store
        self.pipeline = pipeline
        self.settings = settings

    async def regenerate_message(
        self,
        record_id: str,
        message_number: MessageNumber,
        selected_news_indices: list[int],
        selected_case_ids: list[str],
        tone_override: str | None = None,
        current_message_text: str | None = None,
    ) -> RegenerateResponse:
        """Regenerate one message (or all three) and persist only what changed.

        Regenerating all messages also stores the applied tone key; a single
        message keeps the record's tone.
        """
        record = await self.store.get_record(record_id)

        news = [NewsItem.model_validate(item) for item in record.company_news or []]
        cases = stored_cases(record.matched_cases)
        news_indices = valid_indices(selected_news_indices, len(news))
        case_indices = parse_case_ids(selected_case_ids, len(cases))

        country = record.company_region or DEFAULT_REGENERATION_COUNTRY
        industry = record.company_industry or OTHER_INDUSTRY
        tone_key = tone_override or country_to_tone_key(country)
        region_name = tone_key_display_name(tone_key) if tone_override else get_region_display_name(country)
        tone_text = await self.settings.get_or_default(tone_key, "")

        numbers = [1, 2, 3] if message_number == "all" else [message_number]
        prompts = await self.settings.get_prompts([*MESSAGE_PROMPT_KEYS, "message_system_prompt"])
        system_prompt = with_tone_guidance(
            prompts["message_system_prompt"], country, region_name, tone_text
        )

        news_text = format_news([news[i] for i in news_indices], empty="(No specific news selected)")
        cases_text = format_cases(
            [cases[i] for i in case_indices],
            heading="Selected Case Studies:",
            empty="(No specific case studies selected)",
        )
        variables = message_variables(
            LeadInput.model_validate(record), country, industry, "", news_text, cases_text
        )
        previous = None if message_number == "all" else current_message_text
        templates = [
            regeneration_prompt(
                prompts[f"message{number}_prompt"],
                f"{region_name} ({tone_key})",
                len(news_indices),
                len(case_indices),
                news_text,
                cases_text,
                previous,
            )
            for number in numbers
        ]

        logger.info(f"Regenerating message(s) {message_number} for record {record_id} with {tone_key}")
        generated = await self.pipeline.generate_messages(system_prompt, templates, variables)
        messages = dict(zip(numbers, generated))

        await self.store.update_record_messages(
            record_id,
            messages,
            selected_news_indices=news_indices,
            selected_case_indices=case_indices,
            applied_regional_tone=tone_key if message_number == "all" else None,
        )

        return RegenerateResponse(
            record_id=record_id,
            message_number=message_number,
            messages={f"message{number}": text for number, text in messages.items()},
            applied_regional_tone=tone_key if message_number == "all" else (record.applied_regional_tone or tone_key),
            region_name=region_name,
            selected_news_indices=news_indices,
            selected_case_indices=case_indices,
        )
