"""
Command workflows for smix.

- ask: concise answers to technical questions
- do: natural language to shell command translation
- pr_review: interactive sessions over code review feedback files
"""

from .ask import answer
from .do import translate
from .pr_review import ReviewError, ReviewSummary, process_reviews
from .selection import DEFAULT_PROVIDER, select_provider

__all__ = [
    "answer",
    "translate",
    "process_reviews",
    "ReviewError",
    "ReviewSummary",
    "DEFAULT_PROVIDER",
    "select_provider",
]
