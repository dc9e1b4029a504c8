from abc import ABC, abstractmethod
from typing import TypeVar

from pydantic import BaseModel

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class LanguageModelError(Exception):
    """Raised when the language model call itself fails."""


class StructuredOutputError(LanguageModelError):
    """Raised when a structured response is empty or does not match its schema."""


class TokenLimitError(LanguageModelError):
    """Raised when a response was cut off at the completion token limit."""


class LanguageModelDriver(ABC):
    """Abstract base class for language model drivers."""

    @abstractmethod
    async def complete(
        self, system_prompt: str, user_prompt: str, max_tokens: int | None = None
    ) -> str:
        """Return an unconstrained chat completion."""

    @abstractmethod
    async def complete_structured(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: type[SchemaT],
        max_tokens: int | None = None,
    ) -> SchemaT:
        """Return a completion parsed into ``schema``.

        Raises StructuredOutputError when the model output cannot be parsed.
        """

    @abstractmethod
    async def web_search(
        self, query: str, location_hint: str | None = None, system_prompt: str | None = None
    ) -> str:
        """Return a search-augmented completion for ``query``.

        ``location_hint`` is an ISO 3166-1 alpha-2 country code.
        """
