"""
smix - quick LLM helpers for the terminal

smix dispatches requests to interchangeable LLM backends, reachable either
through a local command-line tool or a remote API client.

Architecture:
    - Provider layer: uniform Provider contract plus an optional interactive
      capability, a caching factory, retry with backoff and injectable I/O
    - Configuration: layered provider/model resolution per command
    - Commands: ask, do, pr review, config

Example usage:
    from smix.llm import get_provider, with_model

    provider = get_provider("claude")
    answer = await provider.generate("what is FastAPI", with_model("sonnet"))
"""

__version__ = "0.3.0"
