"""Achievement rules and evaluation."""

from serene_arcade.achievements.rules import (
    ACHIEVEMENT_RULES,
    AchievementRule,
    evaluate_achievements,
)

__all__ = ["ACHIEVEMENT_RULES", "AchievementRule", "evaluate_achievements"]
