"""Achievement unlock rules.

Each catalog id maps to a predicate over the whole player progress.
Evaluation only ever unlocks: an achievement that is already unlocked is
skipped, so running the rules again with unchanged progress is a no-op.
"""

import logging
from datetime import datetime
from typing import Callable

from serene_arcade.models import (
    TOTAL_LEVELS_PER_GAME,
    Achievement,
    Difficulty,
    GameType,
    UserProgress,
)

logger = logging.getLogger(__name__)

AchievementRule = Callable[[UserProgress], bool]

# Levels a single game needs for its expert achievement
GAME_EXPERT_LEVELS = 10

DEDICATION_GAMES_PLAYED = 50


def _tier_cleared_in_any_game(difficulty: Difficulty) -> AchievementRule:
    def rule(progress: UserProgress) -> bool:
        return any(
            progress.game(game).completed_levels(difficulty) == difficulty.level_count
            for game in GameType
        )

    return rule


def _game_levels_at_least(game: GameType, count: int) -> AchievementRule:
    def rule(progress: UserProgress) -> bool:
        return progress.game(game).total_completed_levels() >= count

    return rule


def _every_game_started(progress: UserProgress) -> bool:
    return all(progress.game(game).total_completed_levels() >= 1 for game in GameType)


def _everything_completed(progress: UserProgress) -> bool:
    return progress.total_completed_levels >= TOTAL_LEVELS_PER_GAME * len(GameType)


ACHIEVEMENT_RULES: dict[str, AchievementRule] = {
    "first_step": lambda progress: progress.total_completed_levels >= 1,
    "calm_master": _tier_cleared_in_any_game(Difficulty.CALM),
    "focused_adept": _tier_cleared_in_any_game(Difficulty.FOCUSED),
    "intense_warrior": _tier_cleared_in_any_game(Difficulty.INTENSE),
    "precision_expert": _game_levels_at_least(GameType.PRECISION_PATH, GAME_EXPERT_LEVELS),
    "pattern_seer": _game_levels_at_least(GameType.PATTERN_FLOW, GAME_EXPERT_LEVELS),
    "balance_keeper": _game_levels_at_least(GameType.BALANCE_TRIAL, GAME_EXPERT_LEVELS),
    "triple_crown": _every_game_started,
    "dedication": lambda progress: progress.total_games_played >= DEDICATION_GAMES_PLAYED,
    "mastery": _everything_completed,
}


def evaluate_achievements(progress: UserProgress, now: datetime | None = None) -> list[Achievement]:
    """Unlock every locked achievement whose rule now holds.

    Args:
        progress: Player progress to evaluate and update in place.
        now: Unlock timestamp. Defaults to the current time.

    Returns:
        The achievements unlocked by this call, in catalog order.
    """
    now = now or datetime.now()
    unlocked = []
    for achievement in progress.achievements:
        if achievement.unlocked:
            continue
        rule = ACHIEVEMENT_RULES.get(achievement.id)
        if rule is None or not rule(progress):
            continue
        if progress.unlock_achievement(achievement.id, now) is not None:
            logger.debug("Unlocked achievement %s", achievement.id)
            unlocked.append(achievement)
    return unlocked
