"""Web Source Control CLI (wsc).

Drives one binding lifecycle operation per invocation against Azure App
Service, persisting binding state locally.

Usage:
    wsc apply frontend.yaml              # Create, or replace when changed
    wsc refresh frontend                 # Pull remote values into state
    wsc import frontend /subscriptions/  # Adopt an existing binding
    wsc show frontend                    # Print persisted state
    wsc destroy frontend                 # Delete remote binding and state
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, TypeVar

import click
from azure.core.exceptions import AzureError

from .client import SecretlessViolationError, create_web_client
from .config import Config, ConfigurationError
from .context import OperationContext
from .errors import SourceControlError, SourceControlNotFoundError
from .main import run_operation, setup_logging
from .models import SourceControlState, replacement_fields
from .source_control import (
    create_source_control,
    delete_source_control,
    import_source_control,
    read_source_control,
    update_source_control,
)
from .spec_loader import SpecLoadError, load_spec
from .state import StateError, StateStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

EXIT_SECURITY_VIOLATION = 2


class SecurityViolationAbort(click.ClickException):
    """Fatal credential policy failure."""

    exit_code = EXIT_SECURITY_VIOLATION


def _execute(config: Config, operation: Callable[[Any, OperationContext], Awaitable[T]]) -> T:
    """Build the client and run ``operation``, mapping errors to exit codes."""
    try:
        client = create_web_client(config)
    except SecretlessViolationError as e:
        raise SecurityViolationAbort(str(e)) from e

    try:
        return run_operation(config, lambda ctx: operation(client, ctx))
    except (SourceControlError, AzureError) as e:
        logger.error("Operation failed", extra={"error": str(e), "error_type": type(e).__name__})
        raise click.ClickException(str(e)) from e


def _store(config: Config) -> StateStore:
    return StateStore(config.state_dir)


def _load_bound_state(store: StateStore, name: str) -> SourceControlState:
    try:
        state = store.load(name)
    except StateError as e:
        raise click.ClickException(str(e)) from e
    if state is None or not state.is_bound:
        raise click.ClickException(f"No state for binding '{name}' in {store.directory}")
    return state


def _save(store: StateStore, name: str, state: SourceControlState) -> None:
    try:
        store.save(name, state)
    except StateError as e:
        raise click.ClickException(str(e)) from e


def _delete(store: StateStore, name: str) -> None:
    try:
        store.delete(name)
    except StateError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(version="0.1.0", prog_name="wsc")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Web Source Control CLI (wsc).

    Binds Azure App Service web apps to a source repository and branch.

    \b
    Configuration (environment):
        AZURE_SUBSCRIPTION_ID   Target subscription (required)
        AZURE_CLIENT_ID         User-assigned managed identity (optional)
        STATE_DIR               Binding state directory (default: .wsc-state)
    """
    try:
        config = Config.from_env()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    setup_logging(config)
    ctx.obj = config


@cli.command()
@click.argument("spec_file", type=click.Path(path_type=Path))
@click.pass_obj
def apply(config: Config, spec_file: Path) -> None:
    """Create the binding declared in SPEC_FILE, or replace it when changed."""
    try:
        name, spec = load_spec(spec_file)
    except SpecLoadError as e:
        raise click.ClickException(str(e)) from e

    store = _store(config)
    try:
        state = store.load(name)
    except StateError as e:
        raise click.ClickException(str(e)) from e

    if state is None or not state.is_bound:
        click.echo(f"Creating source control '{name}' for {spec.app_service_name}...")
        new_state = _execute(config, lambda client, ctx: create_source_control(client, ctx, spec))
        _save(store, name, new_state)
        click.secho(f"Created '{name}': {new_state.id}", fg="green")
        return

    changed = state.differs_from(spec)
    if not changed:
        click.echo(f"No changes for '{name}'")
        return

    forced = replacement_fields(state, spec)
    click.echo(f"Replacing '{name}' (changed: {', '.join(changed)})")
    if forced:
        click.echo(f"  forces new binding: {', '.join(forced)}")
    new_state = _execute(
        config, lambda client, ctx: update_source_control(client, ctx, state, spec)
    )
    _save(store, name, new_state)
    click.secho(f"Replaced '{name}': {new_state.id}", fg="green")


@cli.command()
@click.argument("name")
@click.pass_obj
def refresh(config: Config, name: str) -> None:
    """Refresh NAME's state from Azure; drop it if the binding vanished."""
    store = _store(config)
    state = _load_bound_state(store, name)

    try:
        new_state = _execute(config, lambda client, ctx: read_source_control(client, ctx, state))
    except click.ClickException as e:
        if isinstance(e.__cause__, SourceControlNotFoundError):
            _delete(store, name)
            click.secho(f"Binding '{name}' no longer exists; state removed", fg="yellow")
            return
        raise

    _save(store, name, new_state)
    click.echo(f"Refreshed '{name}': {new_state.repo_url} @ {new_state.branch}")


@cli.command()
@click.argument("name")
@click.pass_obj
def destroy(config: Config, name: str) -> None:
    """Delete NAME's remote binding and its local state."""
    store = _store(config)
    state = _load_bound_state(store, name)
    _execute(config, lambda client, ctx: delete_source_control(client, ctx, state))
    _delete(store, name)
    click.secho(f"Destroyed '{name}'", fg="green")


@cli.command(name="import")
@click.argument("name")
@click.argument("remote_id")
@click.pass_obj
def import_(config: Config, name: str, remote_id: str) -> None:
    """Adopt the existing binding REMOTE_ID under NAME."""
    store = _store(config)
    try:
        existing = store.load(name)
    except StateError as e:
        raise click.ClickException(str(e)) from e
    if existing is not None:
        raise click.ClickException(f"Binding '{name}' is already managed: {existing.id}")

    new_state = _execute(
        config, lambda client, ctx: import_source_control(client, ctx, remote_id)
    )
    _save(store, name, new_state)
    click.secho(f"Imported '{name}': {new_state.id}", fg="green")


@cli.command()
@click.argument("name")
@click.pass_obj
def show(config: Config, name: str) -> None:
    """Print NAME's persisted state as JSON."""
    state = _load_bound_state(_store(config), name)
    click.echo(json.dumps(state.to_dict(), indent=2, sort_keys=True))


def main() -> None:
    """Entry point for the wsc CLI."""
    cli()


if __name__ == "__main__":
    main()
