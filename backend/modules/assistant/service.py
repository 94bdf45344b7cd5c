"""
Gemini-backed assistant.

Two helpers for the create form, both best-effort:
- suggest_cities: a cheap model returns a JSON array of city names
- analyze_route: a search-grounded model writes short pricing and border
  advice, with the web sources it used

Every failure (missing key, network, bad JSON) is logged and turned into an
empty result. The assistant never blocks listing creation.
"""

import logging
from typing import Any, Optional

from langchain_core.exceptions import OutputParserException
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from langchain_core.output_parsers import JsonOutputParser

from modules.listings.models import ListingKind
from providers.base import LLMProvider, ModelConfig
from providers.gemini import GeminiProvider

from .exceptions import AIUnavailableError
from .interfaces import IAssistant
from .models import Citation, RouteAnalysis

logger = logging.getLogger(__name__)

MIN_SUGGEST_CHARS = 2
MAX_SUGGESTIONS = 5

CITY_PROMPT = (
    'List up to 5 real cities in CIS or Eurasia starting with or related to "{partial}". '
    'Return ONLY a JSON array of strings. Example: ["Moscow, Russia", "Almaty, Kazakhstan"]'
)

ROUTE_SYSTEM_PROMPT = (
    "You are a logistics assistant for a freight board in Central Asia and the CIS. "
    "Answer briefly and concretely."
)

ROUTE_PROMPT = (
    "Logistics analysis for {from_city} to {to_city}, type: {kind}. "
    "Brief advice on pricing and border conditions in {language}."
)


class GeminiAssistant(IAssistant):
    """
    IAssistant over Gemini chat models.

    Model clients are created on first use, so constructing the assistant
    without an API key is fine; calls then degrade to empty results.
    """

    def __init__(
        self,
        api_key: str = "",
        fast_model: str = "gemini-flash-lite-latest",
        search_model: str = "gemini-3-flash-preview",
        provider: Optional[LLMProvider] = None,
        language: str = "Russian",
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        self._provider = provider or GeminiProvider()
        self._fast_config = ModelConfig(
            model_name="fast",
            provider_type="gemini",
            model_id=fast_model,
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
        )
        self._search_config = ModelConfig(
            model_name="search",
            provider_type="gemini",
            model_id=search_model,
            api_key=api_key,
            timeout=timeout,
            max_retries=max_retries,
        )
        self._language = language
        self._fast_llm: Optional[BaseChatModel] = None
        self._search_llm: Optional[Any] = None
        self._parser = JsonOutputParser()

    @property
    def configured(self) -> bool:
        return bool(self._fast_config.api_key)

    # -------------------------------------------------------------------------
    # IAssistant
    # -------------------------------------------------------------------------

    async def suggest_cities(self, partial: str) -> list[str]:
        partial = partial.strip()
        if len(partial) < MIN_SUGGEST_CHARS:
            return []

        try:
            response = await self._invoke(
                "city suggestions",
                self._get_fast_llm(),
                [HumanMessage(content=CITY_PROMPT.format(partial=partial))],
            )
            parsed = self._parser.parse(_message_text(response))
        except AIUnavailableError as e:
            logger.warning(f"City suggestions skipped: {e}")
            return []
        except OutputParserException as e:
            logger.warning(f"City suggestions returned invalid JSON: {e}")
            return []

        if not isinstance(parsed, list):
            logger.warning(f"City suggestions returned {type(parsed).__name__}, expected a list")
            return []

        cities = [str(item).strip() for item in parsed if isinstance(item, str) and item.strip()]
        return cities[:MAX_SUGGESTIONS]

    async def analyze_route(
        self,
        from_city: str,
        to_city: str,
        kind: ListingKind,
        details: Optional[str] = None,
    ) -> Optional[RouteAnalysis]:
        if not from_city.strip() or not to_city.strip():
            return None

        prompt = ROUTE_PROMPT.format(
            from_city=from_city.strip(),
            to_city=to_city.strip(),
            kind=ListingKind(kind).value,
            language=self._language,
        )
        if details:
            prompt = f"{prompt}\nDetails: {details}"

        try:
            response = await self._invoke(
                "route analysis",
                self._get_search_llm(),
                [SystemMessage(content=ROUTE_SYSTEM_PROMPT), HumanMessage(content=prompt)],
            )
        except AIUnavailableError as e:
            logger.warning(f"Route analysis skipped: {e}")
            return None

        text = _message_text(response).strip()
        if not text:
            logger.warning(f"Route analysis for {from_city} -> {to_city} returned no text")
            return None
        return RouteAnalysis(text=text, citations=_extract_citations(response))

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _get_fast_llm(self) -> BaseChatModel:
        if self._fast_llm is None:
            self._fast_llm = self._build_llm(self._fast_config)
        return self._fast_llm

    def _get_search_llm(self) -> Any:
        if self._search_llm is None:
            llm = self._build_llm(self._search_config)
            self._search_llm = llm.bind_tools([{"google_search": {}}])
        return self._search_llm

    def _build_llm(self, config: ModelConfig) -> BaseChatModel:
        try:
            return self._provider.get_llm(config)
        except ValueError as e:
            raise AIUnavailableError(config.model_name, str(e))

    @staticmethod
    async def _invoke(operation: str, llm: Any, messages: list[BaseMessage]) -> BaseMessage:
        logger.debug(f"Invoking model for {operation}")
        try:
            return await llm.ainvoke(messages)
        except Exception as e:
            # Provider SDKs raise their own error types; all of them mean "no answer"
            raise AIUnavailableError(operation, str(e)) from e


def _message_text(message: BaseMessage) -> str:
    """Plain text of a chat message whose content may be a list of parts."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for part in content:
        if isinstance(part, str):
            parts.append(part)
        elif isinstance(part, dict) and part.get("type") == "text":
            parts.append(part.get("text", ""))
    return "".join(parts)


def _extract_citations(message: BaseMessage) -> list[Citation]:
    """Web sources from Gemini grounding metadata, if any."""
    metadata = getattr(message, "response_metadata", None) or {}
    grounding = metadata.get("grounding_metadata")
    if not isinstance(grounding, dict):
        return []
    citations = []
    for chunk in grounding.get("grounding_chunks") or []:
        web = chunk.get("web") if isinstance(chunk, dict) else None
        # Only web chunks shaped as mappings carry a title and uri
        if not isinstance(web, dict):
            continue
        citations.append(Citation(title=str(web.get("title") or "Source"), uri=str(web.get("uri") or "#")))
    return citations
