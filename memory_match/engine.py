# memory_match/engine.py
from __future__ import annotations
import logging
import random
from dataclasses import dataclass
from enum import Enum
from threading import RLock
from typing import Callable, Dict, List, Optional

from .board import Board
from .difficulty import Difficulty
from .progress import ProgressStore
from .scheduler import ManualScheduler, ScheduledTask, Scheduler
from .scoring import format_time, is_new_best, stars_for

log = logging.getLogger(__name__)

# seconds a matched pair stays on show before it locks in
MATCH_DELAY = 0.5
# seconds a mismatched pair stays face up so the player can memorize it
MISMATCH_DELAY = 1.0
TICK_INTERVAL = 1.0

Listener = Callable[[Dict], None]


class Phase(str, Enum):
    PICKING = "picking"
    DEALT = "dealt"
    ONE_FLIPPED = "one_flipped"
    RESOLVING = "resolving"
    COMPLETED = "completed"


@dataclass
class GameState:
    board: Board
    difficulty: Difficulty
    generation: int
    first_pick: Optional[int] = None
    second_pick: Optional[int] = None
    moves: int = 0
    matched_pairs: int = 0
    elapsed_seconds: int = 0
    processing: bool = False
    complete: bool = False
    stars_earned: int = 0

    @property
    def phase(self) -> Phase:
        if self.complete:
            return Phase.COMPLETED
        if self.processing:
            return Phase.RESOLVING
        if self.first_pick is not None:
            return Phase.ONE_FLIPPED
        return Phase.DEALT


class MemoryMatchEngine:
    """
    Memory-match game engine.

    Owns one session at a time. Taps arrive through ``flip_card``, time through
    ``on_tick`` (driven by the engine's own ticker on the injected scheduler).
    Every deferred callback carries the generation of the session that
    scheduled it and is dropped if that session has since been replaced.
    """

    def __init__(
        self,
        progress: Optional[ProgressStore] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
        match_delay: float = MATCH_DELAY,
        mismatch_delay: float = MISMATCH_DELAY,
        tick_interval: float = TICK_INTERVAL,
    ):
        self.progress = progress if progress is not None else ProgressStore()
        self.scheduler = scheduler if scheduler is not None else ManualScheduler()
        self.rng = rng
        self.match_delay = match_delay
        self.mismatch_delay = mismatch_delay
        self.tick_interval = tick_interval

        self._lock = RLock()
        self._state: Optional[GameState] = None
        self._difficulty: Optional[Difficulty] = None
        self._generation = 0
        self._ticker: Optional[ScheduledTask] = None
        self._pending: Optional[ScheduledTask] = None
        self._listeners: List[Listener] = []

    # ----- queries -----

    @property
    def state(self) -> Optional[GameState]:
        with self._lock:
            return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def phase(self) -> Phase:
        with self._lock:
            if self._state is None:
                return Phase.PICKING
            return self._state.phase

    def snapshot(self) -> Dict:
        with self._lock:
            state = self._state
            best = self.progress.memory_best_score
            if state is None:
                return {
                    "phase": Phase.PICKING.value,
                    "difficulty": self._difficulty.value if self._difficulty else None,
                    "columns": None,
                    "pairs": None,
                    "cards": [],
                    "moves": 0,
                    "matched_pairs": 0,
                    "elapsed_seconds": 0,
                    "time": format_time(0),
                    "complete": False,
                    "stars_earned": 0,
                    "best_moves": best,
                    "generation": self._generation,
                }
            return {
                "phase": state.phase.value,
                "difficulty": state.difficulty.value,
                "columns": state.difficulty.columns,
                "pairs": state.difficulty.pairs,
                "cards": [card.to_dict() for card in state.board.cards()],
                "moves": state.moves,
                "matched_pairs": state.matched_pairs,
                "elapsed_seconds": state.elapsed_seconds,
                "time": format_time(state.elapsed_seconds),
                "complete": state.complete,
                "stars_earned": state.stars_earned,
                "best_moves": best,
                "generation": state.generation,
            }

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(snapshot)`` after every mutation. Returns an unsubscribe function."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        snap = self.snapshot()
        for listener in list(self._listeners):
            listener(snap)

    # ----- session lifecycle -----

    def start_game(self, difficulty: Difficulty) -> GameState:
        """Deal a fresh board and start the clock. Replaces any running session."""
        with self._lock:
            self._cancel_deferred()
            self._generation += 1
            self._difficulty = difficulty
            board = Board.deal(difficulty.pairs, self.rng)
            self._state = GameState(board=board, difficulty=difficulty, generation=self._generation)

            generation = self._generation
            self._ticker = self.scheduler.call_every(
                self.tick_interval, lambda: self._tick_for(generation)
            )
            log.info("started %s game (generation %d, %d cards)", difficulty.value, generation, len(board))
            self._notify()
            return self._state

    def restart(self) -> GameState:
        """Play again at the last chosen difficulty."""
        with self._lock:
            if self._difficulty is None:
                raise RuntimeError("no difficulty chosen yet")
            return self.start_game(self._difficulty)

    def teardown(self) -> None:
        """Drop the current session; pending callbacks and the ticker are cancelled."""
        with self._lock:
            self._cancel_deferred()
            self._generation += 1
            had_state = self._state is not None
            self._state = None
            if had_state:
                log.info("session torn down (generation now %d)", self._generation)
                self._notify()

    def handle_back(self) -> bool:
        """Back button: leave a game for the picker. False if already at the picker."""
        with self._lock:
            if self._state is None:
                return False
            self.teardown()
            return True

    def _cancel_deferred(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    # ----- taps -----

    def flip_card(self, index: int) -> bool:
        """
        Turn a card face up. Taps that the rules do not allow (while a pair
        resolves, on a face-up or matched card, with no game running) are
        ignored and return False.
        """
        with self._lock:
            state = self._state
            if state is None or state.complete or state.processing:
                return False
            card = state.board.peek(index)
            if card.face_up or card.matched:
                return False

            state.board.flip_up(index)

            if state.first_pick is None:
                state.first_pick = index
            elif state.second_pick is None:
                state.second_pick = index
                state.moves += 1
                self._check_for_match(state)

            self._notify()
            return True

    def _check_for_match(self, state: GameState) -> None:
        first, second = state.first_pick, state.second_pick
        state.processing = True
        generation = state.generation

        if state.board.peek(first).content == state.board.peek(second).content:
            self._pending = self.scheduler.call_later(
                self.match_delay, lambda: self._resolve_match(generation, first, second)
            )
        else:
            self._pending = self.scheduler.call_later(
                self.mismatch_delay, lambda: self._resolve_mismatch(generation, first, second)
            )

    def _current(self, generation: int) -> Optional[GameState]:
        state = self._state
        if state is None or state.generation != generation:
            return None
        return state

    def _resolve_match(self, generation: int, first: int, second: int) -> None:
        with self._lock:
            state = self._current(generation)
            if state is None:
                log.debug("dropping stale match callback (generation %d)", generation)
                return
            state.board.mark_matched(first, second)
            state.matched_pairs += 1
            self._reset_picks(state)
            if state.matched_pairs == state.difficulty.pairs:
                self._complete(state)
            self._notify()

    def _resolve_mismatch(self, generation: int, first: int, second: int) -> None:
        with self._lock:
            state = self._current(generation)
            if state is None:
                log.debug("dropping stale mismatch callback (generation %d)", generation)
                return
            state.board.flip_down(first)
            state.board.flip_down(second)
            self._reset_picks(state)
            self._notify()

    def _reset_picks(self, state: GameState) -> None:
        state.first_pick = None
        state.second_pick = None
        state.processing = False
        self._pending = None

    def _complete(self, state: GameState) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        state.complete = True
        state.stars_earned = stars_for(state.difficulty.pairs, state.moves)

        self.progress.add_stars(state.stars_earned)
        if is_new_best(state.moves, self.progress.memory_best_score):
            self.progress.memory_best_score = state.moves
        log.info(
            "completed %s game in %d moves, %ss, %d stars",
            state.difficulty.value, state.moves, state.elapsed_seconds, state.stars_earned,
        )

    # ----- clock -----

    def on_tick(self) -> None:
        """One second has passed. Ignored unless a game is in progress."""
        with self._lock:
            state = self._state
            if state is None or state.complete:
                return
            state.elapsed_seconds += 1
            self._notify()

    def _tick_for(self, generation: int) -> None:
        with self._lock:
            if self._current(generation) is None:
                return
            self.on_tick()
