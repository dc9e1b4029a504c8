"""Tests for the OpenAI and Azure OpenAI language model drivers."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from openai import OpenAIError

from services.leadgen.schemas import CaseSelection, CompanyClassification, GeneratedMessage
from services.llm import get_language_model, set_language_model
from services.llm.drivers import (
    AzureOpenAIDriver,
    LanguageModelError,
    OpenAIDriver,
    StructuredOutputError,
    TokenLimitError,
)


def _response(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _client(content: str | None = "ok") -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=_response(content))
    return client


@pytest.mark.asyncio
async def test_complete_sends_system_and_user_messages() -> None:
    client = _client("  Research notes  ")
    driver = OpenAIDriver(client=client, model="gpt-test", web_search_model="search-test", max_tokens=100)

    assert await driver.complete("Be factual.", "Research Acme") == "Research notes"

    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "gpt-test"
    assert kwargs["max_completion_tokens"] == 100
    assert kwargs["messages"] == [
        {"role": "system", "content": "Be factual."},
        {"role": "user", "content": "Research Acme"},
    ]


@pytest.mark.asyncio
async def test_complete_structured_requests_json_schema() -> None:
    client = _client('{"country": "germany", "industry": "Basket weaving", "news": []}')
    driver = OpenAIDriver(client=client, model="gpt-test", web_search_model="search-test")

    result = await driver.complete_structured("", "Classify Acme", CompanyClassification, max_tokens=50)

    assert result.country == "Germany"
    assert result.industry == "Other"
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["messages"] == [{"role": "user", "content": "Classify Acme"}]
    response_format = kwargs["response_format"]
    assert response_format["type"] == "json_schema"
    assert response_format["json_schema"]["name"] == "company_classification"
    assert "country" in response_format["json_schema"]["schema"]["properties"]


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [None, "", "not json", '["not", "an", "object"]'])
async def test_structured_output_errors(content) -> None:
    driver = OpenAIDriver(client=_client(content), model="m", web_search_model="s")
    with pytest.raises(StructuredOutputError):
        await driver.complete_structured("", "Pick cases", CaseSelection)


@pytest.mark.asyncio
async def test_api_errors_are_wrapped() -> None:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(side_effect=OpenAIError("rate limited"))
    driver = OpenAIDriver(client=client, model="m", web_search_model="s")

    with pytest.raises(LanguageModelError, match="rate limited"):
        await driver.complete("", "hello")


@pytest.mark.asyncio
async def test_web_search_passes_location() -> None:
    client = _client("Acme raised a Series B.")
    driver = OpenAIDriver(client=client, model="m", web_search_model="search-test")

    assert await driver.web_search("Acme news", location_hint="DE") == "Acme raised a Series B."

    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "search-test"
    assert kwargs["web_search_options"] == {
        "user_location": {"type": "approximate", "approximate": {"country": "DE"}}
    }
    assert "response_format" not in kwargs


@pytest.mark.asyncio
async def test_azure_web_search_falls_back_to_completion() -> None:
    client = _client("From model knowledge")
    driver = AzureOpenAIDriver(client=client, deployment="leadgen-gpt")

    assert await driver.web_search("Acme news", location_hint="FR") == "From model knowledge"

    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "leadgen-gpt"
    assert "web_search_options" not in kwargs
    assert "country code FR" in kwargs["messages"][-1]["content"]


def test_get_language_model_is_built_once() -> None:
    with patch("services.llm.OpenAIDriver") as driver_class, patch(
        "services.llm.config.get", side_effect=lambda key, default=None: False if key == "use_azure_openai" else default
    ):
        first = get_language_model()
        second = get_language_model()

    assert first is second
    driver_class.assert_called_once_with()
    set_language_model(None)


@pytest.mark.asyncio
async def test_length_finish_reason_raises_token_limit() -> None:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=SimpleNamespace(
            choices=[
                SimpleNamespace(
                    finish_reason="length", message=SimpleNamespace(content='{"content": "Hi')
                )
            ]
        )
    )
    driver = OpenAIDriver(client=client, model="m", web_search_model="s")

    with pytest.raises(TokenLimitError, match="GeneratedMessage"):
        await driver.complete_structured("", "Write message 1", GeneratedMessage)
