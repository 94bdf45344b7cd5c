"""LLM provider implementations."""

from .base import LLMProvider, ModelConfig
from .gemini import GeminiProvider

__all__ = ["LLMProvider", "ModelConfig", "GeminiProvider"]
