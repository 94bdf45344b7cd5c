"""Base classes and models for LLM providers."""

from abc import ABC, abstractmethod

from langchain_core.language_models.chat_models import BaseChatModel
from pydantic import BaseModel


class ModelConfig(BaseModel):
    """Configuration for a single model.

    Attributes:
        model_name: Friendly alias (e.g., "fast", "search")
        provider_type: Provider key (e.g., "gemini")
        model_id: Model identifier (e.g., "gemini-flash-lite-latest")
        api_key: API key for hosted providers
        temperature: Sampling temperature, None for the provider default
        timeout: Per-request timeout in seconds, None for the client default
        max_retries: Client-side retries on transient failures, None for the client default
    """

    model_config = {"frozen": True}

    model_name: str
    provider_type: str
    model_id: str
    api_key: str = ""
    temperature: float | None = None
    timeout: float | None = None
    max_retries: int | None = None

    def client_options(self) -> dict:
        """Optional client settings that were explicitly configured."""
        options = {
            "temperature": self.temperature,
            "timeout": self.timeout,
            "max_retries": self.max_retries,
        }
        return {key: value for key, value in options.items() if value is not None}


class LLMProvider(ABC):
    """Abstract base class for LLM providers."""

    @abstractmethod
    def get_llm(self, config: ModelConfig) -> BaseChatModel:
        """Return a configured chat model client for the given model.

        Args:
            config: Model configuration with provider details

        Returns:
            A LangChain chat model
        """
        pass
