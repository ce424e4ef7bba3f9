"""
Configuration Commands for the smix CLI

Commands:
- config get <key>: Print a configuration value
- config set <key> <value>: Set and persist a configuration value
- config path: Print the configuration file in use
- config set-key <provider>: Store a provider API key in the system keyring
- config delete-key <provider>: Remove a stored API key from the keyring
"""

import keyring.errors
import typer
from rich.prompt import Prompt

from ..config.secrets import SecretStore
from ..config.storage import ConfigKeyError
from .context import get_cli_context
from .output import OutputManager

config_app = typer.Typer(
    name="config",
    help="Manage smix configuration",
    no_args_is_help=True,
)
output = OutputManager()


@config_app.command("get")
def get_value(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Dotted key, e.g. commands.ask.provider"),
):
    """Get a configuration value by key."""
    store = get_cli_context(ctx).get_config()
    try:
        value = store.require(key)
    except ConfigKeyError as e:
        output.print_error(str(e))
        raise typer.Exit(1)

    typer.echo(value)


@config_app.command("set")
def set_value(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Dotted key, e.g. commands.ask.provider"),
    value: str = typer.Argument(..., help="Value to store"),
):
    """Set a configuration value by key."""
    store = get_cli_context(ctx).get_config()
    try:
        store.set(key, value)
    except OSError as e:
        output.print_error(f"failed to write config: {e}")
        raise typer.Exit(1)

    output.print_success(f"{key} = {value}")


@config_app.command("path")
def show_path(ctx: typer.Context):
    """Show the configuration file in use."""
    typer.echo(str(get_cli_context(ctx).get_config().config_file))


@config_app.command("set-key")
def set_key(
    provider: str = typer.Argument(..., help="Provider name, e.g. gemini"),
    api_key: str | None = typer.Option(None, "--api-key", help="API key (prompted if omitted)"),
):
    """
    Store an API key in the system keyring.

    Environment variables (e.g. SMIX_GEMINI_API_KEY) still take precedence.
    """
    if not api_key:
        api_key = Prompt.ask(f"API key for {provider}", password=True)
    if not api_key:
        output.print_error("no API key given")
        raise typer.Exit(1)

    try:
        SecretStore().set_api_key(provider, api_key)
    except keyring.errors.KeyringError as e:
        output.print_error(f"could not store API key: {e}")
        raise typer.Exit(1)

    output.print_success(f"API key for {provider} stored in keyring")


@config_app.command("delete-key")
def delete_key(
    provider: str = typer.Argument(..., help="Provider name, e.g. gemini"),
):
    """Remove a stored API key from the system keyring."""
    SecretStore().delete_api_key(provider)
    output.print_success(f"API key for {provider} removed from keyring")
