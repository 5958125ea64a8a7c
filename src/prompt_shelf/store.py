"""Prompt collection: load, create, delete, list through a key-value backend."""

from __future__ import annotations

import asyncio
import logging
import random
import string
import time

from prompt_shelf.backends import KeyValueBackend
from prompt_shelf.errors import (
    LOAD_FAILURE_MESSAGE,
    BackendError,
    DuplicatePromptError,
    EmptyPromptError,
    PersistenceError,
)
from prompt_shelf.models import LoadResult, Prompt
from prompt_shelf.text import normalize, sanitize

logger = logging.getLogger(__name__)

STORAGE_KEY = "savedPrompts"

_ID_ALPHABET = string.digits + string.ascii_lowercase


def _now_ms() -> int:
    return int(time.time() * 1000)


def generate_id(now_ms: int | None = None) -> str:
    """Return ``<millis>_<8 base-36 chars>``."""
    stamp = _now_ms() if now_ms is None else now_ms
    suffix = "".join(random.choices(_ID_ALPHABET, k=8))
    return f"{stamp}_{suffix}"


def _sort_recent_first(prompts: list[Prompt]) -> list[Prompt]:
    return sorted(prompts, key=lambda p: p.created_at, reverse=True)


class PromptStore:
    """Single source of truth for saved prompts.

    Every mutation persists the whole collection under one key and only
    updates memory once the write succeeded. Mutations are serialized with a
    per-instance lock.
    """

    def __init__(self, backend: KeyValueBackend, storage_key: str = STORAGE_KEY) -> None:
        self._backend = backend
        self._key = storage_key
        self._prompts: list[Prompt] = []
        self._lock = asyncio.Lock()

    @property
    def storage_key(self) -> str:
        return self._key

    async def load(self) -> LoadResult:
        """Read the collection from the backend, dropping malformed entries.

        A backend failure leaves the library empty and is reported in the
        result rather than raised.
        """
        async with self._lock:
            try:
                raw = await self._backend.get(self._key)
            except BackendError as exc:
                logger.warning("Failed to load prompts: %s", exc, exc_info=True)
                self._prompts = []
                return LoadResult(prompts=[], error=LOAD_FAILURE_MESSAGE)

            if not isinstance(raw, list):
                if raw is not None:
                    logger.warning("Ignoring stored value of type %s", type(raw).__name__)
                self._prompts = []
                return LoadResult(prompts=[])

            prompts: list[Prompt] = []
            for entry in raw:
                prompt = Prompt.from_dict(entry)
                if prompt is not None:
                    prompts.append(prompt)

            dropped = len(raw) - len(prompts)
            if dropped:
                logger.warning("Dropped %d malformed prompt entries", dropped)

            self._prompts = _sort_recent_first(prompts)
            return LoadResult(prompts=list(self._prompts), dropped=dropped)

    async def create(self, raw_text: str) -> Prompt:
        """Save a new prompt and return it.

        Raises EmptyPromptError, DuplicatePromptError or PersistenceError.
        """
        sanitized = sanitize(raw_text)
        if not sanitized:
            raise EmptyPromptError()

        async with self._lock:
            normalized = normalize(sanitized)
            if any(normalize(p.text) == normalized for p in self._prompts):
                raise DuplicatePromptError()

            now = _now_ms()
            prompt = Prompt(id=generate_id(now), text=sanitized, created_at=now)
            updated = [prompt, *self._prompts]
            await self._persist(updated)
            self._prompts = updated
            logger.debug("Saved prompt %s (%d chars)", prompt.id, len(prompt.text))
            return prompt

    async def delete(self, prompt_id: str) -> bool:
        """Delete a prompt by id. Returns False when nothing matched."""
        async with self._lock:
            updated = [p for p in self._prompts if p.id != prompt_id]
            if len(updated) == len(self._prompts):
                return False
            await self._persist(updated)
            self._prompts = updated
            logger.debug("Deleted prompt %s", prompt_id)
            return True

    def list(self) -> list[Prompt]:
        """Return a snapshot of the collection, most recent first."""
        return list(self._prompts)

    def get(self, prompt_id: str) -> Prompt | None:
        """Find a prompt by exact id, or by an unambiguous id prefix."""
        for prompt in self._prompts:
            if prompt.id == prompt_id:
                return prompt
        if not prompt_id:
            return None
        matches = [p for p in self._prompts if p.id.startswith(prompt_id)]
        return matches[0] if len(matches) == 1 else None

    def __len__(self) -> int:
        return len(self._prompts)

    async def _persist(self, prompts: list[Prompt]) -> None:
        try:
            await self._backend.set(self._key, [p.to_dict() for p in prompts])
        except BackendError as exc:
            logger.warning("Failed to save prompts: %s", exc, exc_info=True)
            raise PersistenceError() from exc

    def close(self) -> None:
        """Release backend resources (e.g. close SQLite connection)."""
        self._backend.close()
