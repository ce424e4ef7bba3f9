"""
Ask: concise answers to short technical questions.
"""

from ..config.resolver import ProviderConfig
from ..llm.factory import ProviderFactory
from .selection import model_options, select_provider

PROMPT_TEMPLATE = """You are a helpful technical assistant that provides concise, accurate answers to user questions.

Requirements:
1. Provide clear, direct answers without unnecessary elaboration
2. Focus on accuracy and practical information
3. Use plain text formatting (no markdown, code blocks, or special formatting)
4. Keep responses brief but informative (2-4 sentences typically)
5. For technical topics, include key details but avoid overwhelming the user
6. If the question is ambiguous, answer the most common interpretation

Examples:
User: "what is FastAPI"
Output: FastAPI is a modern Python web framework for building APIs. It's known for high performance, automatic API documentation, and type hints for data validation. It uses Python type annotations and is built on Starlette and Pydantic.

User: "does the mv command overwrite duplicate files"
Output: Yes, mv overwrites files by default without prompting. If a file with the same name exists in the destination, it will be replaced. Use mv -i for interactive mode to get a confirmation prompt before overwriting, or mv -n to prevent overwriting entirely.

User's Question: {question}"""


def build_prompt(question: str) -> str:
    return PROMPT_TEMPLATE.format(question=question)


async def answer(
    question: str,
    cfg: ProviderConfig,
    factory: ProviderFactory | None = None,
) -> str:
    """
    Answer a question with the configured provider.

    Args:
        question: The user's question
        cfg: Resolved provider configuration for the "ask" command
        factory: Provider factory (defaults to the process-wide one)

    Returns:
        The provider's trimmed answer
    """
    provider = select_provider(cfg, factory)
    return await provider.generate(build_prompt(question), *model_options(cfg))
