"""
smix CLI Module

Typer application wiring global options, command workflows and rich output.
"""

from .main import app, main

__all__ = ["app", "main"]
