"""Substring search over the prompt collection."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from prompt_shelf.models import Prompt


def filter_prompts(prompts: Sequence[Prompt], query: str) -> list[Prompt]:
    """Return prompts whose text contains ``query``, ignoring case.

    An empty query returns every prompt. Relative order is preserved.
    """
    if not query:
        return list(prompts)
    needle = query.casefold()
    return [p for p in prompts if needle in p.text.casefold()]


@dataclass
class LibraryView:
    """Filtered prompts plus what is needed to explain an empty result."""

    total: int
    query: str = ""
    matches: list[Prompt] = field(default_factory=list)

    @property
    def has_query(self) -> bool:
        return bool(self.query)

    @property
    def is_empty(self) -> bool:
        """Nothing has been saved at all."""
        return self.total == 0

    @property
    def has_no_matches(self) -> bool:
        """Prompts exist but none match the active query."""
        return self.has_query and self.total > 0 and not self.matches


def build_view(prompts: Sequence[Prompt], query: str = "") -> LibraryView:
    """Apply ``query`` to ``prompts`` and keep the total for context."""
    return LibraryView(
        total=len(prompts), query=query, matches=filter_prompts(prompts, query)
    )
