# tests/test_board.py
import random
from collections import Counter

import pytest
from memory_match.board import CARD_PAIRS, Board, Card, build_deck
from memory_match.difficulty import Difficulty


def two_pair_board():
    return Board([
        Card("A", "a.fill"), Card("A", "a.fill"),
        Card("B", "b.fill"), Card("B", "b.fill"),
    ])


def test_catalog_covers_every_difficulty():
    assert len(CARD_PAIRS) >= 12
    assert max(d.pairs for d in Difficulty) <= len(CARD_PAIRS)


@pytest.mark.parametrize("difficulty", list(Difficulty))
def test_deck_has_two_of_each_content(difficulty):
    deck = build_deck(difficulty.pairs, random.Random(7))

    assert len(deck) == 2 * difficulty.pairs
    counts = Counter(card.content for card in deck)
    assert set(counts) == {content for content, _ in CARD_PAIRS[:difficulty.pairs]}
    assert all(n == 2 for n in counts.values())
    assert len({card.id for card in deck}) == len(deck)
    assert not any(card.face_up or card.matched for card in deck)


def test_pair_cards_share_symbol():
    deck = build_deck(6, random.Random(3))
    symbols = {}
    for card in deck:
        symbols.setdefault(card.content, set()).add(card.symbol)
    assert all(len(s) == 1 for s in symbols.values())


def test_deck_rejects_pair_counts_outside_catalog():
    with pytest.raises(ValueError):
        build_deck(len(CARD_PAIRS) + 1)
    with pytest.raises(ValueError):
        build_deck(0)


def test_shuffle_is_roughly_uniform():
    rng = random.Random(1234)
    trials = 4000
    counts = Counter()
    for _ in range(trials):
        for position, card in enumerate(build_deck(4, rng)):
            counts[(position, card.content)] += 1

    # each of 4 contents fills each of 8 positions in a quarter of the deals
    expected = trials * 2 / 8
    for position in range(8):
        for content, _ in CARD_PAIRS[:4]:
            assert abs(counts[(position, content)] - expected) < expected * 0.15


def test_flip_and_match():
    b = two_pair_board()

    v1 = b.flip_up(0)
    v2 = b.flip_up(1)
    assert v1 == "A" and v2 == "A"

    b.mark_matched(0, 1)
    assert b.peek(0).matched is True
    assert b.peek(1).matched is True
    assert b.peek(0).face_up is True
    assert b.matched_count() == 2


def test_cannot_flip_matched():
    b = Board([Card("X", "x"), Card("X", "x")])
    b.flip_up(0)
    b.flip_up(1)
    b.mark_matched(0, 1)
    with pytest.raises(ValueError):
        b.flip_up(0)
    with pytest.raises(ValueError):
        b.flip_down(0)


def test_cannot_flip_face_up_card_again():
    b = two_pair_board()
    b.flip_up(2)
    with pytest.raises(ValueError):
        b.flip_up(2)


def test_flip_down_keeps_identity_and_position():
    b = two_pair_board()
    before = b.cards()
    b.flip_up(3)
    b.flip_down(3)
    b.flip_down(3)
    assert b.cards() == before


def test_mark_matched_needs_equal_face_up_cards():
    b = two_pair_board()
    b.flip_up(0)
    b.flip_up(2)
    with pytest.raises(ValueError):
        b.mark_matched(0, 2)
    with pytest.raises(ValueError):
        b.mark_matched(0, 1)


def test_invalid_index():
    b = two_pair_board()
    with pytest.raises(IndexError):
        b.peek(4)
    with pytest.raises(IndexError):
        b.flip_up(-1)


def test_board_rejects_bad_decks():
    with pytest.raises(ValueError):
        Board([])
    with pytest.raises(ValueError):
        Board([Card("A", "a"), Card("A", "a"), Card("B", "b")])
    with pytest.raises(ValueError):
        Board([Card("A", "a"), Card("A", "a"), Card("A", "a"), Card("A", "a")])
    with pytest.raises(ValueError):
        Board([Card("A", "a"), Card("A", "a"), Card("B", "b"), Card("C", "c")])


def test_board_rejects_duplicate_ids():
    twin = Card("A", "a")
    with pytest.raises(ValueError):
        Board([twin, twin, Card("B", "b"), Card("B", "b")])
