"""Terminal output rendering using rich."""

from __future__ import annotations

import sys
from datetime import datetime
from typing import IO

from rich.console import Console
from rich.table import Table
from rich.text import Text

from prompt_shelf.models import Prompt
from prompt_shelf.search import LibraryView


def format_date(timestamp_ms: int, fmt: str = "%b %d, %Y %H:%M") -> str:
    """Format a millisecond timestamp in local time."""
    try:
        return datetime.fromtimestamp(timestamp_ms / 1000).strftime(fmt)
    except (OverflowError, OSError, ValueError):
        return "Unknown date"


def prompt_count_label(count: int) -> str:
    return f"{count} prompt{'' if count == 1 else 's'}"


def clip_query(query: str, limit: int = 28) -> str:
    """Shorten a long search query for messages."""
    if len(query) > limit:
        return f"{query[:limit].rstrip()}..."
    return query


def count_label(view: LibraryView) -> str:
    """'3 of 10' under a search, '10 prompts' otherwise."""
    if view.has_query:
        return f"{len(view.matches)} of {view.total}"
    return prompt_count_label(view.total)


def library_summary(view: LibraryView, clip_length: int = 28) -> str:
    """Describe the library state, telling 'nothing saved' from 'no matches'."""
    matched = len(view.matches)
    if view.is_empty:
        return "No prompts yet. Save your first one with 'prompt-shelf add'."
    if view.has_no_matches:
        return f'No matches for "{clip_query(view.query, clip_length)}".'
    if view.has_query:
        return f"{matched} match{'' if matched == 1 else 'es'} found."
    if view.total == 1:
        return "One saved prompt, ready to reuse."
    return f"{prompt_count_label(view.total)} ready to copy."


class Display:
    """Terminal display helpers powered by rich."""

    def __init__(self, file: IO[str] | None = None, date_format: str | None = None) -> None:
        self._file = file or sys.stdout
        self._console = Console(file=self._file)
        self._date_format = date_format or "%b %d, %Y %H:%M"

    @property
    def console(self) -> Console:
        return self._console

    def print_error(self, message: str) -> None:
        """Print an error message in red."""
        self._console.print(f"[bold red]Error:[/bold red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message in yellow."""
        self._console.print(f"[bold yellow]Warning:[/bold yellow] {message}")

    def print_success(self, message: str) -> None:
        """Print a success message in green."""
        self._console.print(f"[bold green]✓[/bold green] {message}")

    def print_info(self, message: str) -> None:
        """Print an info message."""
        self._console.print(f"  {message}", markup=False)

    def print_prompts(self, view: LibraryView, clip_length: int = 28) -> None:
        """Print the (filtered) library as a table followed by a summary line."""
        if view.matches:
            table = Table(title=f"Saved Prompts ({count_label(view)})")
            table.add_column("ID", style="cyan", no_wrap=True)
            table.add_column("Saved", no_wrap=True)
            table.add_column("Prompt")
            for prompt in view.matches:
                table.add_row(
                    prompt.id,
                    format_date(prompt.created_at, self._date_format),
                    Text(prompt.text),
                )
            self._console.print(table, markup=False)
        self._console.print(library_summary(view, clip_length), markup=False)

    def print_prompt_text(self, prompt: Prompt) -> None:
        """Write the prompt body byte-for-byte, bypassing rich, for piping."""
        self._file.write(prompt.text + "\n")
        self._file.flush()
