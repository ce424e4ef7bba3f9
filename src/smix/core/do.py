"""
Do: translate a natural-language task into a single shell command.
"""

from ..config.resolver import ProviderConfig
from ..llm.factory import ProviderFactory
from .selection import model_options, select_provider

PROMPT_TEMPLATE = """You are a shell command expert for Unix-like systems (Linux, macOS).
Your sole purpose is to translate the user's request into a single, functional, and secure shell command.

Requirements:
1. Output ONLY the raw command with no explanations, preambles, or markdown formatting
2. Ensure commands are safe and won't cause damage to the system
3. Prefer POSIX-compliant commands when possible
4. For complex tasks, chain commands with pipes and logical operators
5. Handle errors gracefully within the command (e.g., using || for fallbacks)
6. Use absolute paths when necessary
7. For process killing, prefer safer methods like fuser over kill with lsof
8. Commands should be one-liners that can be directly executed or piped

Examples:
User: "find all files larger than 50MB in my home directory"
Output: find ~ -type f -size +50M

User: "list the 10 largest files in the current directory"
Output: du -ah . | sort -rh | head -n 10

User: "kill the process listening on port 3000"
Output: fuser -k 3000/tcp

User's Request: {task}"""


def build_prompt(task_description: str) -> str:
    return PROMPT_TEMPLATE.format(task=task_description)


async def translate(
    task_description: str,
    cfg: ProviderConfig,
    factory: ProviderFactory | None = None,
) -> str:
    """
    Translate a task description into a shell command.

    Args:
        task_description: What the user wants to do
        cfg: Resolved provider configuration for the "do" command
        factory: Provider factory (defaults to the process-wide one)

    Returns:
        The shell command
    """
    provider = select_provider(cfg, factory)
    return await provider.generate(build_prompt(task_description), *model_options(cfg))
