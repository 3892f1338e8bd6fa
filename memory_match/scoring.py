# memory_match/scoring.py
from __future__ import annotations
from typing import Tuple

# (minimum ratio, stars), checked top to bottom
STAR_THRESHOLDS: Tuple[Tuple[float, int], ...] = (
    (0.8, 3),
    (0.5, 2),
    (0.3, 1),
)


def perfect_moves(pairs: int) -> int:
    return pairs * 2


def move_ratio(pairs: int, moves: int) -> float:
    return perfect_moves(pairs) / max(moves, 1)


def stars_for(pairs: int, moves: int) -> int:
    """Stars earned for clearing ``pairs`` pairs in ``moves`` moves (0-3)."""
    ratio = move_ratio(pairs, moves)
    for threshold, stars in STAR_THRESHOLDS:
        if ratio >= threshold:
            return stars
    return 0


def is_new_best(moves: int, best: int) -> bool:
    # a stored best of 0 means no game has been finished yet
    return best == 0 or moves < best


def format_time(seconds: int) -> str:
    minutes, secs = divmod(max(int(seconds), 0), 60)
    return f"{minutes}:{secs:02d}"
