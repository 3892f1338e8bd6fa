# memory_match/progress.py
from __future__ import annotations
import json
import logging
import os
import tempfile
from threading import RLock
from typing import Dict, Optional

log = logging.getLogger(__name__)

PROGRESS_KEYS = (
    "total_stars",
    "math_score",
    "chinese_score",
    "english_score",
    "memory_best_score",
    "drawings_count",
)


class ProgressError(Exception):
    pass


class ProgressStore:
    """
    App-wide reward ledger: a handful of named integer counters, all starting at 0.

    The plain store lives in memory only; ``load``/``save`` are no-ops so the
    engine can be given either this or a persistent subclass.
    """

    def __init__(self, values: Optional[Dict[str, int]] = None):
        self._lock = RLock()
        self._values: Dict[str, int] = {key: 0 for key in PROGRESS_KEYS}
        for key, value in (values or {}).items():
            self.set(key, value)

    def _check_key(self, key: str) -> None:
        if key not in self._values:
            raise KeyError(f"unknown progress key {key!r}")

    def get(self, key: str) -> int:
        with self._lock:
            self._check_key(key)
            return self._values[key]

    def set(self, key: str, value: int) -> None:
        with self._lock:
            self._check_key(key)
            self._values[key] = int(value)

    def increment(self, key: str, amount: int = 1) -> int:
        with self._lock:
            self._check_key(key)
            self._values[key] += int(amount)
            return self._values[key]

    def add_stars(self, count: int) -> int:
        total = self.increment("total_stars", count)
        log.info("added %d stars (total %d)", count, total)
        return total

    @property
    def total_stars(self) -> int:
        return self.get("total_stars")

    @property
    def memory_best_score(self) -> int:
        return self.get("memory_best_score")

    @memory_best_score.setter
    def memory_best_score(self, moves: int) -> None:
        self.set("memory_best_score", moves)

    def reset_progress(self) -> None:
        with self._lock:
            for key in self._values:
                self._values[key] = 0

    def as_dict(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._values)

    def load(self) -> None:
        pass

    def save(self) -> None:
        pass


class JsonProgressStore(ProgressStore):
    """ProgressStore persisted as a flat JSON object."""

    def __init__(self, path: str):
        super().__init__()
        self.path = path

    def load(self) -> None:
        if not os.path.exists(self.path):
            log.info("no progress file at %s, starting fresh", self.path)
            return
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ProgressError(f"cannot read progress file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise ProgressError(f"progress file {self.path} must hold a JSON object")

        values = {}
        for key in PROGRESS_KEYS:
            value = data.get(key, 0)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ProgressError(f"progress value {key!r} must be an integer")
            if value < 0:
                raise ProgressError(f"progress value {key!r} must not be negative")
            values[key] = value
        with self._lock:
            self._values.update(values)
        log.info("loaded progress from %s", self.path)

    def save(self) -> None:
        data = self.as_dict()
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".progress-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise
        log.info("saved progress to %s", self.path)
