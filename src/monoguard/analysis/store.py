"""Previous health score storage for trend computation."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Protocol

import orjson

logger = logging.getLogger(__name__)


class ScoreStore(Protocol):
    def get_previous(self, project_id: str) -> int | None: ...

    def save(self, project_id: str, score: int) -> None: ...


class InMemoryScoreStore:
    """Process-local store, safe to share between threads."""

    def __init__(self) -> None:
        self._scores: dict[str, int] = {}
        self._lock = threading.Lock()

    def get_previous(self, project_id: str) -> int | None:
        with self._lock:
            return self._scores.get(project_id)

    def save(self, project_id: str, score: int) -> None:
        with self._lock:
            self._scores[project_id] = score


class JsonFileScoreStore:
    """Scores persisted as a JSON object mapping project id to score.

    A missing file reads as empty. A file that is not a JSON object raises
    ``ValueError``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, int]:
        if not self.path.is_file():
            return {}
        data = orjson.loads(self.path.read_bytes())
        if not isinstance(data, dict):
            msg = f"Score store {self.path} must contain a JSON object"
            raise ValueError(msg)
        return {str(k): int(v) for k, v in data.items()}

    def get_previous(self, project_id: str) -> int | None:
        with self._lock:
            return self._read().get(project_id)

    def save(self, project_id: str, score: int) -> None:
        with self._lock:
            scores = self._read()
            scores[project_id] = score
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_bytes(
                orjson.dumps(scores, option=orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2)
            )
        logger.debug("saved health score %d for %s to %s", score, project_id, self.path)


__all__ = ["InMemoryScoreStore", "JsonFileScoreStore", "ScoreStore"]
