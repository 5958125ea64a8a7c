"""CLI command definitions using Click."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from prompt_shelf import __version__
from prompt_shelf.config import ConfigManager, user_settings_path
from prompt_shelf.display import Display, count_label, library_summary
from prompt_shelf.errors import ConfigError, DuplicatePromptError, PromptStoreError
from prompt_shelf.library import BACKENDS, open_store
from prompt_shelf.models import LoadResult
from prompt_shelf.search import build_view
from prompt_shelf.store import PromptStore


def _configure_logging(level: str) -> None:
    """Route package logs to stderr through rich."""
    handler = RichHandler(console=Console(stderr=True), show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    pkg_logger = logging.getLogger("prompt_shelf")
    pkg_logger.handlers.clear()
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(getattr(logging, level, logging.WARNING))
    pkg_logger.propagate = False


async def _open(ctx: click.Context) -> tuple[PromptStore, LoadResult]:
    """Open and load the store, reporting load problems as warnings.

    Under --json-output the warnings go to stderr so stdout stays parseable.
    """
    config: ConfigManager = ctx.obj["config"]
    notices: Display = ctx.obj["notices"]
    store, loaded = await open_store(config)
    if loaded.failed:
        notices.print_warning(str(loaded.error))
    elif loaded.dropped:
        notices.print_warning(
            f"Skipped {loaded.dropped} malformed entr{'y' if loaded.dropped == 1 else 'ies'}"
        )
    return store, loaded


def _run(ctx: click.Context, command: Callable[[], Awaitable[int]]) -> None:
    """Run an async command body and exit with its status."""
    display: Display = ctx.obj["display"]
    try:
        code = asyncio.run(command())
    except ConfigError as e:
        display.print_error(str(e))
        sys.exit(1)
    if code:
        sys.exit(code)


@click.group()
@click.option("--config", "-c", "config_path", default=None, help="Custom config file")
@click.option(
    "--backend", "-b", type=click.Choice(BACKENDS), default=None,
    help="Storage backend for this invocation",
)
@click.option("--storage-path", default=None, help="Override the JSON storage file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@click.option("--json-output", "json_out", is_flag=True, help="Output as JSON")
@click.version_option(__version__, prog_name="prompt-shelf")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: str | None,
    backend: str | None,
    storage_path: str | None,
    verbose: bool,
    json_out: bool,
) -> None:
    """Prompt Shelf: save, search and reuse your text prompts."""
    overrides: dict[str, Any] = {}
    if backend:
        overrides["storage_backend"] = backend
    if storage_path:
        overrides["storage_path"] = storage_path
    if verbose:
        overrides["verbose"] = True

    ctx.ensure_object(dict)
    config = ConfigManager(config_path=config_path, cli_overrides=overrides)
    settings = config.settings
    _configure_logging("DEBUG" if settings.verbose else settings.log_level)

    ctx.obj["config"] = config
    display = Display(date_format=settings.date_format)
    ctx.obj["display"] = display
    ctx.obj["notices"] = Display(file=sys.stderr) if json_out else display
    ctx.obj["json_out"] = json_out


@main.command()
@click.argument("text", required=False)
@click.pass_context
def add(ctx: click.Context, text: str | None) -> None:
    """Save a prompt. Reads stdin when TEXT is omitted or '-'."""
    display: Display = ctx.obj["display"]
    if text is None or text == "-":
        # Read bytes so \r\n and other control characters survive untranslated.
        text = sys.stdin.buffer.read().decode(sys.stdin.encoding or "utf-8")
    body = text

    async def _add() -> int:
        store, loaded = await _open(ctx)
        try:
            # Saving over an unreadable library would overwrite it.
            if loaded.failed:
                display.print_error("Refusing to save while the library is unreadable.")
                return 1
            try:
                prompt = await store.create(body)
            except DuplicatePromptError as e:
                display.print_info(e.message)
                return 0
            except PromptStoreError as e:
                display.print_error(e.message)
                return 1
        finally:
            store.close()

        if ctx.obj["json_out"]:
            click.echo(json.dumps(prompt.to_dict(), ensure_ascii=False))
        else:
            display.print_success(f"Prompt saved. ({prompt.id})")
        return 0

    _run(ctx, _add)


@main.command("list")
@click.option("--search", "-s", "query", default="", help="Only show prompts containing this text")
@click.pass_context
def list_cmd(ctx: click.Context, query: str) -> None:
    """List saved prompts, most recent first."""
    config: ConfigManager = ctx.obj["config"]
    display: Display = ctx.obj["display"]
    clip = config.settings.search_clip_length

    async def _list() -> int:
        store, loaded = await _open(ctx)
        try:
            view = build_view(store.list(), query.strip())
        finally:
            store.close()

        if ctx.obj["json_out"]:
            click.echo(json.dumps({
                "total": view.total,
                "query": view.query,
                "count": count_label(view),
                "summary": library_summary(view, clip),
                "prompts": [p.to_dict() for p in view.matches],
                "warning": loaded.error,
                "dropped": loaded.dropped,
            }, indent=2, ensure_ascii=False))
        else:
            display.print_prompts(view, clip)
        return 0

    _run(ctx, _list)


@main.command()
@click.argument("prompt_id")
@click.pass_context
def show(ctx: click.Context, prompt_id: str) -> None:
    """Print the text of one prompt (full ID or unique prefix)."""
    display: Display = ctx.obj["display"]

    async def _show() -> int:
        store, _loaded = await _open(ctx)
        try:
            prompt = store.get(prompt_id)
        finally:
            store.close()
        if prompt is None:
            display.print_error(f"No prompt matches '{escape(prompt_id)}'")
            return 1
        display.print_prompt_text(prompt)
        return 0

    _run(ctx, _show)


@main.command()
@click.argument("prompt_id")
@click.pass_context
def delete(ctx: click.Context, prompt_id: str) -> None:
    """Delete a prompt (full ID or unique prefix)."""
    display: Display = ctx.obj["display"]

    async def _delete() -> int:
        store, loaded = await _open(ctx)
        try:
            if loaded.failed:
                display.print_error("Refusing to delete while the library is unreadable.")
                return 1
            match = store.get(prompt_id)
            try:
                removed = await store.delete(match.id if match else prompt_id)
            except PromptStoreError as e:
                display.print_error(e.message)
                return 1
        finally:
            store.close()

        if removed:
            display.print_success("Prompt deleted.")
        else:
            display.print_info(f"No prompt with ID '{prompt_id}'. Nothing to delete.")
        return 0

    _run(ctx, _delete)


@main.group("config")
@click.pass_context
def config_cmd(ctx: click.Context) -> None:
    """View or update configuration."""


@config_cmd.command("get")
@click.argument("key")
@click.pass_context
def config_get(ctx: click.Context, key: str) -> None:
    """Get a config value."""
    config: ConfigManager = ctx.obj["config"]
    value = config.get(key)
    if value is None:
        click.echo(f"Key '{key}' not found")
    else:
        click.echo(f"{key} = {value}")


@config_cmd.command("set")
@click.argument("key")
@click.argument("value")
@click.pass_context
def config_set(ctx: click.Context, key: str, value: str) -> None:
    """Set a config value in user settings."""
    display: Display = ctx.obj["display"]
    path = user_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, Any] = {}
    if path.is_file():
        with open(path) as f:
            existing = yaml.safe_load(f) or {}

    # Type coercion
    if value.lower() in ("true", "false"):
        existing[key] = value.lower() == "true"
    elif value.isdigit():
        existing[key] = int(value)
    else:
        try:
            existing[key] = float(value)
        except ValueError:
            existing[key] = value

    with open(path, "w") as f:
        yaml.dump(existing, f, default_flow_style=False)

    display.print_success(f"Set {key} = {escape(str(existing[key]))}")
