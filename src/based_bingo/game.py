from __future__ import annotations

import asyncio
import enum
import logging
import random
from datetime import date
from typing import Callable, List, Optional, Set, Tuple

from .card import (
    BingoCard,
    MarkedSet,
    WinResult,
    check_win,
    display_labels,
    generate_card,
    mark,
    new_marked_set,
)
from .project_constants import (
    DRAW_INTERVAL_S,
    GAME_DURATION_S,
    MAX_FREE_PLAYS,
    MAX_NUMBER,
    RECENT_DRAWS,
    UNLIMITED_PRICE_BINGO,
)
from .relay import AwardRequest

log = logging.getLogger("game")


class PoolExhausted(Exception):
    pass


class GameStateError(RuntimeError):
    pass


class GameState(enum.Enum):
    NOT_STARTED = "not_started"
    RUNNING = "running"
    ENDED = "ended"


class EndReason(enum.Enum):
    TIME_UP = "time_up"
    POOL_EXHAUSTED = "pool_exhausted"
    RESET = "reset"


class DrawSequence:
    """No-repeat draws over 1..max_number, keeping the last few for marking."""

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        max_number: int = MAX_NUMBER,
        recent_size: int = RECENT_DRAWS,
    ) -> None:
        self._rng = rng or random.Random()
        self.max_number = max_number
        self.recent_size = recent_size
        self.history: List[int] = []
        self._drawn: Set[int] = set()

    @property
    def drawn(self) -> frozenset:
        return frozenset(self._drawn)

    @property
    def recent(self) -> Tuple[int, ...]:
        return tuple(self.history[-self.recent_size:])

    @property
    def current(self) -> Optional[int]:
        return self.history[-1] if self.history else None

    @property
    def exhausted(self) -> bool:
        return len(self._drawn) >= self.max_number

    def draw(self) -> int:
        if self.exhausted:
            raise PoolExhausted(f"All {self.max_number} numbers drawn")
        remaining = [n for n in range(1, self.max_number + 1) if n not in self._drawn]
        num = self._rng.choice(remaining)
        self._drawn.add(num)
        self.history.append(num)
        return num


class GameSession:
    """
    One timed game: a card, a draw timer and a countdown.

    NOT_STARTED -> RUNNING -> ENDED. The game ends when the countdown hits
    zero, when every number has been drawn, or on reset(); both timers are
    cancelled together at that point. A finished session is never restarted.
    """

    def __init__(
        self,
        card: Optional[BingoCard] = None,
        rng: Optional[random.Random] = None,
        draw_interval_s: float = DRAW_INTERVAL_S,
        duration_s: int = GAME_DURATION_S,
        tick_s: float = 1.0,
        player_address: Optional[str] = None,
        game_id: Optional[int] = None,
        on_win: Optional[Callable[[AwardRequest], None]] = None,
    ) -> None:
        self.card = card if card is not None else generate_card(rng)
        self.draws = DrawSequence(rng)
        self.marked: MarkedSet = new_marked_set()
        self.win = WinResult(count=0, labels=())
        self.state = GameState.NOT_STARTED
        self.end_reason: Optional[EndReason] = None
        self.time_left = duration_s
        self.draw_interval_s = draw_interval_s
        self.tick_s = tick_s
        self.player_address = player_address
        self.game_id = game_id
        self.on_win = on_win
        self._draw_task: Optional[asyncio.Task] = None
        self._countdown_task: Optional[asyncio.Task] = None
        self._ended: Optional[asyncio.Event] = None

    @property
    def active_timers(self) -> int:
        return sum(
            1
            for t in (self._draw_task, self._countdown_task)
            if t is not None and not t.done()
        )

    def start(self) -> None:
        """Start both timers. Must be called from a running event loop."""
        if self.state is not GameState.NOT_STARTED:
            raise GameStateError(f"Cannot start a game that is {self.state.value}")
        self._ended = asyncio.Event()
        self.state = GameState.RUNNING
        self._draw_task = asyncio.create_task(self._draw_loop())
        self._countdown_task = asyncio.create_task(self._countdown_loop())
        log.info("Game %s started (%ds)", self.game_id, self.time_left)

    async def wait(self) -> EndReason:
        if self._ended is None:
            raise GameStateError("Game was never started")
        await self._ended.wait()
        return self.end_reason

    def end(self, reason: EndReason) -> None:
        if self.state is not GameState.RUNNING:
            return
        self.state = GameState.ENDED
        self.end_reason = reason
        try:
            current = asyncio.current_task()
        except RuntimeError:
            # called after the event loop has gone away
            current = None
        for task in (self._draw_task, self._countdown_task):
            if task is not None and task is not current and not task.done():
                task.cancel()
        if self._ended is not None:
            self._ended.set()
        log.info("Game %s ended: %s", self.game_id, reason.value)

    def reset(self) -> None:
        self.end(EndReason.RESET)

    def draw_once(self) -> Optional[int]:
        if self.state is not GameState.RUNNING:
            return None
        if self.draws.exhausted:
            self.end(EndReason.POOL_EXHAUSTED)
            return None
        num = self.draws.draw()
        log.debug("Drew %d", num)
        return num

    async def _draw_loop(self) -> None:
        while self.state is GameState.RUNNING:
            await asyncio.sleep(self.draw_interval_s)
            self.draw_once()

    async def _countdown_loop(self) -> None:
        while self.time_left > 0:
            await asyncio.sleep(self.tick_s)
            self.time_left -= 1
        self.end(EndReason.TIME_UP)

    def mark(self, row: int, col: int) -> WinResult:
        if self.state is not GameState.RUNNING:
            return self.win
        updated = mark(self.card, self.marked, row, col, self.draws.recent)
        if updated == self.marked:
            return self.win
        self.marked = updated
        result = check_win(updated)
        previous = self.win
        self.win = result
        if result.count > previous.count:
            log.info("New win: %s (%d lines)", " + ".join(result.labels), result.count)
            if self.on_win is not None and self.player_address:
                self.on_win(
                    AwardRequest(
                        player_address=self.player_address,
                        win_types=tuple(display_labels(result)),
                        game_id=self.game_id,
                    )
                )
        return result


class PlayAllowance:
    """Per-day free play counter with a paid unlimited pass. In-memory only."""

    def __init__(
        self,
        max_free_plays: int = MAX_FREE_PLAYS,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.max_free_plays = max_free_plays
        self._today = today
        self.day = today()
        self.plays = 0
        self.unlimited = False

    def _roll(self) -> None:
        today = self._today()
        if today != self.day:
            self.day = today
            self.plays = 0
            self.unlimited = False

    def can_play(self) -> bool:
        self._roll()
        return self.unlimited or self.plays < self.max_free_plays

    @property
    def remaining(self) -> Optional[int]:
        self._roll()
        if self.unlimited:
            return None
        return max(0, self.max_free_plays - self.plays)

    def record_play(self) -> None:
        if not self.can_play():
            raise GameStateError(
                "Daily free plays used up; share for an extra play or buy unlimited access"
            )
        if not self.unlimited:
            self.plays += 1

    def share_bonus(self) -> None:
        self._roll()
        self.plays = 0

    def buy_unlimited(self) -> int:
        """Unlock unlimited plays until the day rolls over. Returns the $BINGO price."""
        self._roll()
        self.unlimited = True
        log.info("Unlimited plays unlocked for %s", self.day.isoformat())
        return UNLIMITED_PRICE_BINGO
