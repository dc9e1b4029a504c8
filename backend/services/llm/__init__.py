"""Language model access shared by the enrichment components."""

from shared.config import config
from shared.logging_utils import setup_logging

from .drivers import (
    AzureOpenAIDriver,
    LanguageModelDriver,
    LanguageModelError,
    OpenAIDriver,
    StructuredOutputError,
    TokenLimitError,
)

logger = setup_logging("llm")

_driver: LanguageModelDriver | None = None


def get_language_model() -> LanguageModelDriver:
    """Return the process-wide driver, building it from config on first use."""
    global _driver
    if _driver is None:
        if config.get("use_azure_openai"):
            logger.info("Initializing Azure OpenAI language model driver")
            _driver = AzureOpenAIDriver()
        else:
            logger.info(f"Initializing OpenAI language model driver ({config.get('llm_model')})")
            _driver = OpenAIDriver()
    return _driver


def set_language_model(driver: LanguageModelDriver | None) -> None:
    """Replace the process-wide driver; ``None`` forces a rebuild on next use."""
    global _driver
    _driver = driver


__all__ = [
    "LanguageModelDriver",
    "LanguageModelError",
    "StructuredOutputError",
    "TokenLimitError",
    "get_language_model",
    "set_language_model",
]
