# memory_match/difficulty.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List

from .board import CARD_PAIRS


@dataclass(frozen=True)
class DifficultyInfo:
    pairs: int
    columns: int
    label: str
    description: str
    icon: str


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"

    @property
    def info(self) -> DifficultyInfo:
        return DIFFICULTY_TABLE[self]

    @property
    def pairs(self) -> int:
        return DIFFICULTY_TABLE[self].pairs

    @property
    def columns(self) -> int:
        return DIFFICULTY_TABLE[self].columns

    @property
    def label(self) -> str:
        return DIFFICULTY_TABLE[self].label

    @classmethod
    def parse(cls, name: str) -> "Difficulty":
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            choices = ", ".join(d.value for d in cls)
            raise ValueError(f"unknown difficulty {name!r} (choose from {choices})") from None

    def to_dict(self) -> dict:
        info = self.info
        return {
            "name": self.value,
            "pairs": info.pairs,
            "columns": info.columns,
            "label": info.label,
            "description": info.description,
            "icon": info.icon,
        }


# Columns stay at 4 for every level; the grid simply grows more rows.
DIFFICULTY_TABLE: Dict[Difficulty, DifficultyInfo] = {
    Difficulty.EASY: DifficultyInfo(4, 4, "简单", "4对卡片", "star"),
    Difficulty.MEDIUM: DifficultyInfo(6, 4, "中等", "6对卡片", "star.leadinghalf.filled"),
    Difficulty.HARD: DifficultyInfo(8, 4, "困难", "8对卡片", "star.fill"),
}


def _check_table() -> None:
    for difficulty in Difficulty:
        info = DIFFICULTY_TABLE.get(difficulty)
        if info is None:
            raise ValueError(f"difficulty {difficulty.value} has no table entry")
        if not 1 <= info.pairs <= len(CARD_PAIRS):
            raise ValueError(
                f"difficulty {difficulty.value} needs {info.pairs} pairs, catalog has {len(CARD_PAIRS)}"
            )


_check_table()


def all_difficulties() -> List[dict]:
    return [d.to_dict() for d in Difficulty]
