from .board import CARD_PAIRS, Board, Card, build_deck
from .difficulty import Difficulty
from .engine import GameState, MemoryMatchEngine, Phase
from .progress import JsonProgressStore, ProgressStore
from .scheduler import AsyncioScheduler, ManualScheduler, ThreadingScheduler

__all__ = [
    "CARD_PAIRS",
    "Board",
    "Card",
    "build_deck",
    "Difficulty",
    "GameState",
    "MemoryMatchEngine",
    "Phase",
    "JsonProgressStore",
    "ProgressStore",
    "AsyncioScheduler",
    "ManualScheduler",
    "ThreadingScheduler",
]
