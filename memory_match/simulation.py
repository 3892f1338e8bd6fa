# memory_match/simulation.py
# Scripted players against a real-time engine on an asyncio event loop.

from __future__ import annotations

import argparse
import asyncio
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .difficulty import Difficulty
from .engine import MATCH_DELAY, MISMATCH_DELAY, TICK_INTERVAL, MemoryMatchEngine, Phase
from .progress import ProgressStore
from .scheduler import AsyncioScheduler

COLORS = ["\x1b[31m", "\x1b[32m", "\x1b[33m", "\x1b[34m"]  # red/green/yellow/blue
RESET = "\x1b[0m"


@dataclass
class Stats:
    games: int = 0
    total_moves: int = 0
    total_stars: int = 0
    best_moves: Optional[int] = None
    moves_per_game: List[int] = field(default_factory=list)

    def record(self, moves: int, stars: int) -> None:
        self.games += 1
        self.total_moves += moves
        self.total_stars += stars
        self.moves_per_game.append(moves)
        if self.best_moves is None or moves < self.best_moves:
            self.best_moves = moves

    @property
    def average_moves(self) -> float:
        return self.total_moves / self.games if self.games else 0.0


class Player:
    """Picks cards from what it can see. ``memory`` players remember every face they saw."""

    def __init__(self, strategy: str = "memory", rng: Optional[random.Random] = None):
        if strategy not in ("random", "memory"):
            raise ValueError(f"unknown strategy {strategy!r}")
        self.strategy = strategy
        self.rng = rng or random.Random()
        self.seen: Dict[int, str] = {}

    def forget(self) -> None:
        self.seen.clear()

    def observe(self, snapshot: Dict) -> None:
        if self.strategy != "memory":
            return
        for i, card in enumerate(snapshot["cards"]):
            if card["matched"]:
                self.seen.pop(i, None)
            elif card["face_up"]:
                self.seen[i] = card["content"]

    def _known_pair(self, candidates: List[int]):
        by_content: Dict[str, List[int]] = {}
        for i in candidates:
            if i in self.seen:
                by_content.setdefault(self.seen[i], []).append(i)
        for indexes in by_content.values():
            if len(indexes) == 2:
                return indexes
        return None

    def choose(self, snapshot: Dict, first: Optional[int]) -> int:
        candidates = [
            i for i, card in enumerate(snapshot["cards"])
            if not card["matched"] and not card["face_up"]
        ]
        if self.strategy == "memory":
            if first is None:
                pair = self._known_pair(candidates)
                if pair:
                    return pair[0]
            else:
                wanted = self.seen.get(first)
                for i in candidates:
                    if self.seen.get(i) == wanted:
                        return i
            unseen = [i for i in candidates if i not in self.seen]
            if unseen:
                return self.rng.choice(unseen)
        return self.rng.choice(candidates)


async def wait_for_idle(engine: MemoryMatchEngine, poll: float) -> None:
    while engine.phase == Phase.RESOLVING:
        await asyncio.sleep(poll)


async def play_game(
    engine: MemoryMatchEngine,
    player: Player,
    difficulty: Difficulty,
    think_time: float = 0.0,
    poll: float = 0.01,
) -> Dict:
    player.forget()
    engine.start_game(difficulty)
    unsubscribe = engine.subscribe(player.observe)
    try:
        while engine.phase != Phase.COMPLETED:
            await wait_for_idle(engine, poll)
            if engine.phase == Phase.COMPLETED:
                break
            snap = engine.snapshot()
            state = engine.state
            first = state.first_pick if state else None
            index = player.choose(snap, first)
            await asyncio.sleep(think_time)
            engine.flip_card(index)
        return engine.snapshot()
    finally:
        unsubscribe()


async def simulation_main(
    games: int = 3,
    difficulty: Optional[Difficulty] = None,
    strategy: str = "memory",
    speed: float = 1.0,
    seed: Optional[int] = None,
) -> Stats:
    print("MEMORY MATCH - SIMULATION")

    rng = random.Random(seed)
    progress = ProgressStore()
    engine = MemoryMatchEngine(
        progress=progress,
        scheduler=AsyncioScheduler(),
        rng=rng,
        match_delay=MATCH_DELAY / speed,
        mismatch_delay=MISMATCH_DELAY / speed,
        tick_interval=TICK_INTERVAL / speed,
    )
    player = Player(strategy, rng)
    stats = Stats()

    levels = [difficulty] if difficulty else list(Difficulty)
    print(f"\nStarting {games} game(s) per level, strategy={strategy}, speed x{speed:g}\n")

    for n in range(games * len(levels)):
        level = levels[n % len(levels)]
        color = COLORS[n % len(COLORS)]
        print(f"{color}[game {n + 1}] {level.value}: {level.pairs} pairs{RESET}")
        final = await play_game(engine, player, level, think_time=0.05 / speed, poll=0.01 / speed)
        stats.record(final["moves"], final["stars_earned"])
        print(
            f"{color}[game {n + 1}]   -> {final['moves']} moves, {final['time']}, "
            f"{final['stars_earned']} star(s){RESET}"
        )

    engine.teardown()

    print("\nSIMULATION COMPLETE")
    print(f"Games played: {stats.games}")
    print(f"Average moves: {stats.average_moves:.1f}")
    print(f"Best game: {stats.best_moves} moves")
    print(f"Stars earned: {stats.total_stars} (ledger total {progress.total_stars})")
    print(f"Ledger best: {progress.memory_best_score}")
    return stats


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Play memory match games with a scripted player")
    ap.add_argument("--games", type=int, default=1, help="games per difficulty")
    ap.add_argument("--difficulty", choices=[d.value for d in Difficulty], default=None)
    ap.add_argument("--strategy", choices=["random", "memory"], default="memory")
    ap.add_argument("--speed", type=float, default=10.0, help="time compression factor")
    ap.add_argument("--seed", type=int, default=None)
    return ap.parse_args(argv)


def main(argv=None):
    a = parse_args(argv)
    if a.speed <= 0:
        raise SystemExit("--speed must be positive")
    difficulty = Difficulty.parse(a.difficulty) if a.difficulty else None
    asyncio.run(simulation_main(a.games, difficulty, a.strategy, a.speed, a.seed))


if __name__ == "__main__":
    main()
