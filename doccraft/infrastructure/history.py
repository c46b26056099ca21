"""Bounded session history with an injectable persistence boundary."""
from __future__ import annotations

import json
import logging
import time
import uuid
from pathlib import Path
from typing import Callable, Protocol

from pydantic import ValidationError

from doccraft.core.schema import DocConfig, DocSession

logger = logging.getLogger(__name__)

MAX_SESSIONS = 10


class HistoryStorage(Protocol):
    """Persistence contract for session history."""

    def load(self) -> list[DocSession]: ...

    def save(self, sessions: list[DocSession]) -> None: ...


class InMemoryHistoryStorage:
    """Storage used by default and in tests."""

    def __init__(self, sessions: list[DocSession] | None = None) -> None:
        self._sessions: list[DocSession] = list(sessions or [])

    def load(self) -> list[DocSession]:
        return list(self._sessions)

    def save(self, sessions: list[DocSession]) -> None:
        self._sessions = list(sessions)


class JsonFileHistoryStorage:
    """Keeps the history list in a single JSON file."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def load(self) -> list[DocSession]:
        if not self._path.exists():
            return []
        with self._path.open("r", encoding="utf-8") as fp:
            raw = json.load(fp)
        sessions: list[DocSession] = []
        for item in raw if isinstance(raw, list) else []:
            try:
                sessions.append(DocSession(**item))
            except (ValidationError, TypeError):
                logger.warning("skipping unreadable history entry in %s", self._path)
        return sessions

    def save(self, sessions: list[DocSession]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = [session.model_dump() for session in sessions]
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        with tmp_path.open("w", encoding="utf-8") as fp:
            json.dump(payload, fp, ensure_ascii=False)
        tmp_path.replace(self._path)


class HistoryStore:
    """Most-recent-first list of completed sessions, capped at ``MAX_SESSIONS``.

    Storage errors never propagate: a failed load starts from an empty list
    and a failed save leaves the in-memory list authoritative.
    """

    def __init__(
        self,
        storage: HistoryStorage,
        *,
        limit: int = MAX_SESSIONS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._storage = storage
        self._limit = limit
        self._clock = clock
        try:
            loaded = storage.load()
        except Exception as exc:  # noqa: BLE001 - history is advisory
            logger.warning("could not load session history: %s", exc)
            loaded = []
        self._sessions: list[DocSession] = sorted(loaded, key=lambda s: s.timestamp, reverse=True)[:limit]

    def _persist(self) -> None:
        try:
            self._storage.save(list(self._sessions))
        except Exception as exc:  # noqa: BLE001 - history is advisory
            logger.warning("history not saved: %s", exc)

    def load_all(self) -> list[DocSession]:
        return list(self._sessions)

    def get(self, session_id: str) -> DocSession:
        for session in self._sessions:
            if session.id == session_id:
                return session
        raise KeyError(session_id)

    def append(self, config: DocConfig, input_summary: str, generated_doc: str) -> DocSession:
        session = DocSession(
            id=uuid.uuid4().hex,
            timestamp=self._clock(),
            config=config,
            input_summary=input_summary,
            generated_doc=generated_doc,
        )
        self._sessions = [session, *self._sessions][: self._limit]
        self._persist()
        return session

    def remove(self, session_id: str) -> None:
        remaining = [session for session in self._sessions if session.id != session_id]
        if len(remaining) == len(self._sessions):
            raise KeyError(session_id)
        self._sessions = remaining
        self._persist()

    def clear(self) -> None:
        self._sessions = []
        self._persist()
