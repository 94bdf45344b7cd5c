"""Tests for the Gemini assistant."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from langchain_core.messages import AIMessage

from modules.assistant.exceptions import AIUnavailableError
from modules.assistant.interfaces import IAssistant
from modules.assistant.models import Citation, RouteAnalysis
from modules.assistant.service import GeminiAssistant
from modules.listings.models import ListingKind
from shared.exceptions import ExternalServiceError


def make_provider(response=None, error=None) -> MagicMock:
    """Provider whose models answer with response (or raise error)."""
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=response, side_effect=error)
    llm.bind_tools.return_value = llm
    provider = MagicMock()
    provider.get_llm.return_value = llm
    return provider


class TestSuggestCities:
    def test_implements_interface(self):
        assert isinstance(GeminiAssistant(), IAssistant)

    @pytest.mark.asyncio
    async def test_short_input_skips_model(self):
        provider = make_provider(AIMessage(content="[]"))
        assistant = GeminiAssistant(api_key="key", provider=provider)

        assert await assistant.suggest_cities("T") == []
        assert await assistant.suggest_cities("  ") == []
        provider.get_llm.assert_not_called()

    @pytest.mark.asyncio
    async def test_parses_json_array(self):
        provider = make_provider(AIMessage(content='["Tashkent, Uzbekistan", "Taraz, Kazakhstan"]'))
        assistant = GeminiAssistant(api_key="key", provider=provider)

        cities = await assistant.suggest_cities("Ta")

        assert cities == ["Tashkent, Uzbekistan", "Taraz, Kazakhstan"]
        config = provider.get_llm.call_args.args[0]
        assert config.model_id == "gemini-flash-lite-latest"
        assert config.timeout is None
        prompt = provider.get_llm.return_value.ainvoke.call_args.args[0][0].content
        assert '"Ta"' in prompt

    @pytest.mark.asyncio
    async def test_at_most_five(self):
        names = ", ".join(f'"City {index}"' for index in range(8))
        assistant = GeminiAssistant(api_key="key", provider=make_provider(AIMessage(content=f"[{names}]")))

        assert len(await assistant.suggest_cities("City")) == 5

    @pytest.mark.asyncio
    async def test_fenced_json_accepted(self):
        content = '```json\n["Osh, Kyrgyzstan"]\n```'
        assistant = GeminiAssistant(api_key="key", provider=make_provider(AIMessage(content=content)))

        assert await assistant.suggest_cities("Os") == ["Osh, Kyrgyzstan"]

    @pytest.mark.asyncio
    async def test_invalid_json_gives_empty(self):
        assistant = GeminiAssistant(api_key="key", provider=make_provider(AIMessage(content="Tashkent maybe?")))
        assert await assistant.suggest_cities("Ta") == []

    @pytest.mark.asyncio
    async def test_non_list_gives_empty(self):
        assistant = GeminiAssistant(api_key="key", provider=make_provider(AIMessage(content='{"city": "Tashkent"}')))
        assert await assistant.suggest_cities("Ta") == []

    @pytest.mark.asyncio
    async def test_non_string_items_dropped(self):
        content = '["Tashkent", 5, null, "  "]'
        assistant = GeminiAssistant(api_key="key", provider=make_provider(AIMessage(content=content)))
        assert await assistant.suggest_cities("Ta") == ["Tashkent"]

    @pytest.mark.asyncio
    async def test_model_error_gives_empty(self):
        assistant = GeminiAssistant(api_key="key", provider=make_provider(error=RuntimeError("quota")))
        assert await assistant.suggest_cities("Ta") == []

    @pytest.mark.asyncio
    async def test_missing_api_key_gives_empty(self):
        assistant = GeminiAssistant(api_key="")

        assert assistant.configured is False
        assert await assistant.suggest_cities("Tashkent") == []


class TestAnalyzeRoute:
    @pytest.mark.asyncio
    async def test_returns_text_and_citations(self):
        response = AIMessage(
            content="Expect delays at the border.",
            response_metadata={
                "grounding_metadata": {
                    "grounding_chunks": [
                        {"web": {"uri": "https://example.com/a", "title": "Border news"}},
                        {"web": {"uri": "https://example.com/b"}},
                        {"retrieved_context": {"uri": "ignored"}},
                    ]
                }
            },
        )
        provider = make_provider(response)
        assistant = GeminiAssistant(api_key="key", provider=provider)

        analysis = await assistant.analyze_route("Tashkent", "Almaty", ListingKind.CARGO)

        assert analysis == RouteAnalysis(
            text="Expect delays at the border.",
            citations=[
                Citation(title="Border news", uri="https://example.com/a"),
                Citation(title="Source", uri="https://example.com/b"),
            ],
        )
        llm = provider.get_llm.return_value
        llm.bind_tools.assert_called_once_with([{"google_search": {}}])
        assert provider.get_llm.call_args.args[0].model_id == "gemini-3-flash-preview"

    @pytest.mark.asyncio
    async def test_malformed_grounding_chunks_skipped(self):
        response = AIMessage(
            content="Roads are clear.",
            response_metadata={
                "grounding_metadata": {
                    "grounding_chunks": [
                        {"web": "https://example.com/raw"},
                        {"web": ["https://example.com/list"]},
                        "not a chunk",
                        {"web": {"uri": "https://example.com/ok", "title": "Road report"}},
                    ]
                }
            },
        )
        assistant = GeminiAssistant(api_key="key", provider=make_provider(response))

        analysis = await assistant.analyze_route("Tashkent", "Almaty", ListingKind.CARGO)

        assert analysis.text == "Roads are clear."
        assert analysis.citations == [Citation(title="Road report", uri="https://example.com/ok")]

    @pytest.mark.asyncio
    async def test_non_mapping_grounding_metadata_ignored(self):
        response = AIMessage(content="Roads are clear.", response_metadata={"grounding_metadata": "unexpected"})
        assistant = GeminiAssistant(api_key="key", provider=make_provider(response))

        analysis = await assistant.analyze_route("Tashkent", "Almaty", ListingKind.CARGO)

        assert analysis == RouteAnalysis(text="Roads are clear.", citations=[])

    @pytest.mark.asyncio
    async def test_prompt_mentions_route_and_kind(self):
        provider = make_provider(AIMessage(content="ok"))
        assistant = GeminiAssistant(api_key="key", provider=provider)

        await assistant.analyze_route("Tashkent", "Almaty", "truck", details="20t tent")

        messages = provider.get_llm.return_value.ainvoke.call_args.args[0]
        prompt = messages[-1].content
        assert "Tashkent to Almaty" in prompt
        assert "type: truck" in prompt
        assert "20t tent" in prompt
        assert "Russian" in prompt

    @pytest.mark.asyncio
    async def test_content_parts_joined(self):
        content = [{"type": "text", "text": "Part one. "}, {"type": "text", "text": "Part two."}]
        assistant = GeminiAssistant(api_key="key", provider=make_provider(AIMessage(content=content)))

        analysis = await assistant.analyze_route("A", "B", ListingKind.TRUCK)

        assert analysis.text == "Part one. Part two."
        assert analysis.citations == []

    @pytest.mark.asyncio
    async def test_empty_text_gives_none(self):
        assistant = GeminiAssistant(api_key="key", provider=make_provider(AIMessage(content="  ")))
        assert await assistant.analyze_route("A", "B", ListingKind.TRUCK) is None

    @pytest.mark.asyncio
    async def test_missing_cities_gives_none(self):
        provider = make_provider(AIMessage(content="ok"))
        assistant = GeminiAssistant(api_key="key", provider=provider)

        assert await assistant.analyze_route("", "Almaty", ListingKind.CARGO) is None
        provider.get_llm.assert_not_called()

    @pytest.mark.asyncio
    async def test_model_error_gives_none(self):
        assistant = GeminiAssistant(api_key="key", provider=make_provider(error=TimeoutError()))
        assert await assistant.analyze_route("A", "B", ListingKind.CARGO) is None


class TestAIUnavailableError:
    def test_is_external_service_error(self):
        error = AIUnavailableError("city suggestions", "quota")

        assert isinstance(error, ExternalServiceError)
        assert error.code == "AI_UNAVAILABLE"
        assert error.service == "gemini"
        assert error.message == "AI city suggestions unavailable: quota"


class TestModelConfig:
    @pytest.mark.asyncio
    async def test_timeout_and_retries_reach_provider(self):
        provider = make_provider(AIMessage(content='["Osh"]'))
        assistant = GeminiAssistant(api_key="key", provider=provider, timeout=5.0, max_retries=2)

        await assistant.suggest_cities("Os")

        config = provider.get_llm.call_args.args[0]
        assert config.client_options() == {"timeout": 5.0, "max_retries": 2}
