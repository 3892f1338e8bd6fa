# memory_match/board.py
from __future__ import annotations
import random
import uuid
from dataclasses import dataclass, field
from threading import RLock
from typing import List, Optional, Tuple

# (content, symbol) per pair; deck building always takes a prefix of this list
CARD_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("Princess", "crown.fill"),
    ("Heart", "heart.fill"),
    ("Star", "star.fill"),
    ("Flower", "camera.macro"),
    ("Butterfly", "leaf.fill"),
    ("Rainbow", "rainbow"),
    ("Moon", "moon.stars.fill"),
    ("Sun", "sun.max.fill"),
    ("Cat", "cat.fill"),
    ("Dog", "dog.fill"),
    ("Bird", "bird.fill"),
    ("Fish", "fish.fill"),
)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Card:
    content: str
    symbol: str
    face_up: bool = False
    matched: bool = False
    id: str = field(default_factory=_new_id)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "symbol": self.symbol,
            "face_up": self.face_up,
            "matched": self.matched,
        }


def build_deck(pair_count: int, rng: Optional[random.Random] = None) -> List[Card]:
    """Deal ``2 * pair_count`` face-down cards from the first catalog entries, shuffled."""
    if pair_count < 1 or pair_count > len(CARD_PAIRS):
        raise ValueError(f"pair_count must be between 1 and {len(CARD_PAIRS)}")

    cards: List[Card] = []
    for content, symbol in CARD_PAIRS[:pair_count]:
        cards.append(Card(content=content, symbol=symbol))
        cards.append(Card(content=content, symbol=symbol))

    (rng or random).shuffle(cards)
    return cards


class Board:
    """
    Mutable Board ADT over a fixed sequence of card positions.

    Rep:
      - cards is an ordered list; positions never move after construction
      - every content value appears exactly twice
      - matched => face_up
    Safety:
      - guarded by an internal lock; callers on timer threads may touch it
    """

    def __init__(self, cards: List[Card]):
        if not cards:
            raise ValueError("board needs at least one pair")
        if len(cards) % 2 != 0:
            raise ValueError("card count must be even")
        counts = {}
        for card in cards:
            counts[card.content] = counts.get(card.content, 0) + 1
        if any(n != 2 for n in counts.values()):
            raise ValueError("every content value must appear exactly twice")
        if len({card.id for card in cards}) != len(cards):
            raise ValueError("card ids must be unique")

        self._lock = RLock()
        self._cards: List[Card] = list(cards)
        self._check_rep()

    @classmethod
    def deal(cls, pair_count: int, rng: Optional[random.Random] = None) -> "Board":
        return cls(build_deck(pair_count, rng))

    def _check_rep(self) -> None:
        counts = {}
        ids = set()
        for card in self._cards:
            counts[card.content] = counts.get(card.content, 0) + 1
            ids.add(card.id)
            if card.matched:
                assert card.face_up is True
        assert all(n == 2 for n in counts.values())
        assert len(ids) == len(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def cards(self) -> List[Card]:
        with self._lock:
            return list(self._cards)

    def peek(self, index: int) -> Card:
        with self._lock:
            self._validate_index(index)
            return self._cards[index]

    def flip_up(self, index: int) -> str:
        """Flip a card face-up and return its content."""
        with self._lock:
            self._validate_index(index)
            card = self._cards[index]
            if card.matched:
                raise ValueError("cannot flip a matched card")
            if card.face_up:
                raise ValueError("already face up")

            self._cards[index] = Card(card.content, card.symbol, face_up=True, matched=False, id=card.id)
            self._check_rep()
            return card.content

    def flip_down(self, index: int) -> None:
        with self._lock:
            self._validate_index(index)
            card = self._cards[index]
            if card.matched:
                raise ValueError("cannot flip down a matched card")
            if not card.face_up:
                return
            self._cards[index] = Card(card.content, card.symbol, face_up=False, matched=False, id=card.id)
            self._check_rep()

    def mark_matched(self, first: int, second: int) -> None:
        """Mark two positions as permanently matched."""
        with self._lock:
            self._validate_index(first)
            self._validate_index(second)
            if first == second:
                raise ValueError("a card cannot match itself")
            c1 = self._cards[first]
            c2 = self._cards[second]
            if not c1.face_up or not c2.face_up:
                raise ValueError("both must be face up to match")
            if c1.content != c2.content:
                raise ValueError("contents do not match")

            self._cards[first] = Card(c1.content, c1.symbol, face_up=True, matched=True, id=c1.id)
            self._cards[second] = Card(c2.content, c2.symbol, face_up=True, matched=True, id=c2.id)
            self._check_rep()

    def matched_count(self) -> int:
        with self._lock:
            return sum(1 for card in self._cards if card.matched)

    def _validate_index(self, index: int) -> None:
        if not (0 <= index < len(self._cards)):
            raise IndexError(f"invalid card index {index}")
