"""Language model driver implementations."""

from .azure_driver import AzureOpenAIDriver
from .base import LanguageModelDriver, LanguageModelError, StructuredOutputError, TokenLimitError
from .openai_driver import OpenAIDriver

__all__ = [
    "AzureOpenAIDriver",
    "LanguageModelDriver",
    "LanguageModelError",
    "OpenAIDriver",
    "StructuredOutputError",
    "TokenLimitError",
]
