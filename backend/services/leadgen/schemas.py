"""Structured output schemas requested from the language model."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from services.leadgen.constants import (
    COUNTRIES,
    INDUSTRIES,
    OTHER_INDUSTRY,
    UNKNOWN_COUNTRY,
    canonical_choice,
)
from shared.models import NewsItem


class CompanyClassification(BaseModel):
    """Country, industry and news extracted from research notes.

    Values outside the closed enumerations collapse to Unknown / Other
    rather than failing validation.
    """

    country: str = Field(default=UNKNOWN_COUNTRY, json_schema_extra={"enum": list(COUNTRIES)})
    industry: str = Field(default=OTHER_INDUSTRY, json_schema_extra={"enum": list(INDUSTRIES)})
    news: list[NewsItem] = Field(default_factory=list)

    @field_validator("country", mode="before")
    @classmethod
    def _coerce_country(cls, value: Any) -> str:
        return canonical_choice(value if isinstance(value, str) else None, COUNTRIES, UNKNOWN_COUNTRY)

    @field_validator("industry", mode="before")
    @classmethod
    def _coerce_industry(cls, value: Any) -> str:
        return canonical_choice(value if isinstance(value, str) else None, INDUSTRIES, OTHER_INDUSTRY)

    @field_validator("news", mode="before")
    @classmethod
    def _coerce_news(cls, value: Any) -> Any:
        return value or []


class NewsSearchResult(BaseModel):
    news: list[NewsItem] = Field(default_factory=list)

    @field_validator("news", mode="before")
    @classmethod
    def _coerce_news(cls, value: Any) -> Any:
        return value or []


class GeneratedMessage(BaseModel):
    content: str = Field(..., min_length=1)


class CaseSelection(BaseModel):
    selected_case_ids: list[str] = Field(default_factory=list)

    @field_validator("selected_case_ids", mode="before")
    @classmethod
    def _coerce_ids(cls, value: Any) -> Any:
        if not value:
            return []
        return [str(item) for item in value]
