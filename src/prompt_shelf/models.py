"""Data classes for prompt-shelf and their stored shape."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Prompt:
    """A saved prompt record."""

    id: str
    text: str
    created_at: int  # milliseconds since epoch

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the stored shape."""
        return {"id": self.id, "text": self.text, "createdAt": self.created_at}

    @classmethod
    def from_dict(cls, data: Any) -> Prompt | None:
        """Build a Prompt from a stored entry, or None if it is malformed."""
        if not isinstance(data, dict):
            return None
        pid = data.get("id")
        text = data.get("text")
        created_at = data.get("createdAt")
        if not isinstance(pid, str) or not isinstance(text, str):
            return None
        if isinstance(created_at, bool) or not isinstance(created_at, (int, float)):
            return None
        if not math.isfinite(created_at):
            return None
        return cls(id=pid, text=text, created_at=int(created_at))


@dataclass
class LoadResult:
    """Outcome of loading the collection from the backend."""

    prompts: list[Prompt] = field(default_factory=list)
    error: str | None = None
    dropped: int = 0

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class AppSettings:
    """Application settings loaded from YAML config."""

    storage_backend: str = "json"
    storage_path: str = "~/.prompt-shelf/prompts.json"
    storage_db: str = "~/.prompt-shelf/prompts.db"
    storage_key: str = "savedPrompts"
    log_level: str = "WARNING"
    verbose: bool = False
    search_clip_length: int = 28
    date_format: str = "%b %d, %Y %H:%M"
