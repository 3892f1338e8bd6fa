# memory_match/config.py
from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .engine import MATCH_DELAY, MISMATCH_DELAY, TICK_INTERVAL


@dataclass
class Config:
    host: str = "127.0.0.1"
    port: int = 5000
    progress_path: str = "progress.json"
    match_delay: float = MATCH_DELAY
    mismatch_delay: float = MISMATCH_DELAY
    tick_interval: float = TICK_INTERVAL
    log_level: str = "INFO"


def _number(env: Mapping[str, str], key: str, default, cast):
    raw = env.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{key} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{key} must not be negative")
    return value


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    env = os.environ if environ is None else environ
    config = Config(
        host=env.get("MEMORY_MATCH_HOST", Config.host),
        port=_number(env, "MEMORY_MATCH_PORT", Config.port, int),
        progress_path=env.get("MEMORY_MATCH_PROGRESS", Config.progress_path),
        match_delay=_number(env, "MEMORY_MATCH_MATCH_DELAY", Config.match_delay, float),
        mismatch_delay=_number(env, "MEMORY_MATCH_MISMATCH_DELAY", Config.mismatch_delay, float),
        tick_interval=_number(env, "MEMORY_MATCH_TICK_INTERVAL", Config.tick_interval, float),
        log_level=env.get("MEMORY_MATCH_LOG_LEVEL", Config.log_level).upper(),
    )
    if config.tick_interval == 0:
        raise ValueError("MEMORY_MATCH_TICK_INTERVAL must be positive")
    return config
