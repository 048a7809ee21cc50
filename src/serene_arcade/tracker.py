"""Progress tracker - the single runtime owner of player progress.

Gameplay screens report finished rounds here, UI screens read from here.
Every mutation refreshes the derived values, saves, and then notifies
subscribers with a ProgressEvent.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from serene_arcade.achievements import evaluate_achievements
from serene_arcade.models import Achievement, Difficulty, GameType, UserProgress
from serene_arcade.storage import ProgressStore

logger = logging.getLogger(__name__)


class ProgressEventKind(str, Enum):
    """What changed."""

    LEVEL_COMPLETED = "level_completed"
    ATTEMPT_RECORDED = "attempt_recorded"
    PROGRESS_UPDATED = "progress_updated"
    ONBOARDING_FINISHED = "onboarding_finished"
    RESET = "reset"


@dataclass(frozen=True)
class ProgressEvent:
    """Change notification sent to subscribers after a mutation."""

    kind: ProgressEventKind
    progress: UserProgress
    unlocked: tuple[Achievement, ...] = field(default_factory=tuple)


ProgressListener = Callable[[ProgressEvent], None]


class ProgressTracker:
    """Mutation entry points and read-only queries over player progress."""

    def __init__(
        self,
        store: ProgressStore | None = None,
        progress: UserProgress | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store or ProgressStore()
        self.progress = progress if progress is not None else self.store.load()
        self._clock = clock
        self._listeners: list[ProgressListener] = []

    # =========================================================================
    # Subscriptions
    # =========================================================================

    def subscribe(self, listener: ProgressListener) -> Callable[[], None]:
        """Register a listener. Returns a function that unregisters it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, kind: ProgressEventKind, unlocked: list[Achievement] | None = None) -> None:
        event = ProgressEvent(kind=kind, progress=self.progress, unlocked=tuple(unlocked or ()))
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Progress listener %r failed on %s", listener, kind.value)

    # =========================================================================
    # Mutations
    # =========================================================================

    def complete_level(self, game: GameType, difficulty: Difficulty, level: int, score: int) -> list[Achievement]:
        """Record a won round. Returns the achievements it unlocked."""
        self.progress.complete_level(game, difficulty, level, score)
        unlocked = self._refresh()
        self.store.save(self.progress)
        self._notify(ProgressEventKind.LEVEL_COMPLETED, unlocked)
        return unlocked

    def add_attempt(self, game: GameType, difficulty: Difficulty, level: int) -> None:
        """Record a lost round.

        Attempts feed no derived value or achievement rule, so nothing is
        recomputed here.
        """
        self.progress.add_attempt(game, difficulty, level)
        self.store.save(self.progress)
        self._notify(ProgressEventKind.ATTEMPT_RECORDED)

    def update_progress(self) -> list[Achievement]:
        """Recompute energy and stage, evaluate achievements, then save."""
        unlocked = self._refresh()
        self.store.save(self.progress)
        self._notify(ProgressEventKind.PROGRESS_UPDATED, unlocked)
        return unlocked

    def _refresh(self) -> list[Achievement]:
        # Stage is taken before this pass's unlocks, it catches up on the next refresh
        self.progress.energy_level = self.progress.calculate_energy_level()
        self.progress.current_stage = self.progress.calculate_stage()
        return evaluate_achievements(self.progress, self._clock())

    def reset(self) -> None:
        """Erase all progress and achievements."""
        self.progress.reset()
        self.store.save(self.progress)
        logger.info("Progress reset")
        self._notify(ProgressEventKind.RESET)

    # =========================================================================
    # Inbound calls from gameplay and onboarding
    # =========================================================================

    def on_level_finished(
        self, game: GameType, difficulty: Difficulty, level: int, won: bool, score: int
    ) -> list[Achievement]:
        """Record the outcome of a round. Returns newly unlocked achievements."""
        if won:
            return self.complete_level(game, difficulty, level, score)
        self.add_attempt(game, difficulty, level)
        return []

    def on_onboarding_finished(self) -> None:
        self.progress.has_completed_onboarding = True
        self.store.save(self.progress)
        self._notify(ProgressEventKind.ONBOARDING_FINISHED)

    def on_reset_requested(self) -> None:
        self.reset()

    # =========================================================================
    # Read-only queries
    # =========================================================================

    def completed_levels(self, game: GameType, difficulty: Difficulty) -> int:
        return self.progress.game(game).completed_levels(difficulty)

    def total_completed_levels(self, game: GameType | None = None) -> int:
        """Completed levels of one game, or of all games."""
        if game is None:
            return self.progress.total_completed_levels
        return self.progress.game(game).total_completed_levels()

    def is_level_unlocked(self, game: GameType, difficulty: Difficulty, level: int) -> bool:
        return self.progress.game(game).is_level_unlocked(difficulty, level)

    @property
    def unlocked_achievements(self) -> list[Achievement]:
        return [achievement for achievement in self.progress.achievements if achievement.unlocked]

    @property
    def energy_level(self) -> int:
        return self.progress.energy_level

    @property
    def current_stage(self) -> int:
        return self.progress.current_stage
