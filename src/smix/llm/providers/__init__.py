"""
LLM Provider Implementations

Concrete implementations of Provider:
- ClaudeProvider: Claude via the Claude Code CLI (interactive capable)
- GeminiProvider: Gemini via the API, with the gemini CLI for interactive sessions
"""

from .claude import ClaudeProvider
from .gemini import GeminiProvider

__all__ = [
    "ClaudeProvider",
    "GeminiProvider",
]
