"""
Assistant module.

Best-effort AI helpers for the create form: city suggestions and
search-grounded route advice. Failures degrade to empty results.

Public API:
- IAssistant: Interface for the assistant
- GeminiAssistant: Implementation over langchain-google-genai
- RouteAnalysis, Citation: Models
- AIUnavailableError
"""

from .interfaces import IAssistant
from .service import GeminiAssistant, MAX_SUGGESTIONS, MIN_SUGGEST_CHARS
from .models import Citation, RouteAnalysis
from .exceptions import AIUnavailableError

__all__ = [
    # Interface
    "IAssistant",
    # Implementation
    "GeminiAssistant",
    "MAX_SUGGESTIONS",
    "MIN_SUGGEST_CHARS",
    # Models
    "Citation",
    "RouteAnalysis",
    # Exceptions
    "AIUnavailableError",
]
