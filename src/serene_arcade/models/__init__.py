"""Data models for Serene Arcade."""

from serene_arcade.models.progress import (
    # Catalog and tiers
    ACHIEVEMENT_CATALOG,
    TOTAL_LEVELS_PER_GAME,
    UNLOCK_REQUIREMENTS,
    Difficulty,
    GameType,
    default_achievements,
    validate_level,
    InvalidLevelError,
    # Progress records
    Achievement,
    GameProgress,
    LevelProgress,
    UserProgress,
)

__all__ = [
    # Catalog and tiers
    "ACHIEVEMENT_CATALOG",
    "TOTAL_LEVELS_PER_GAME",
    "UNLOCK_REQUIREMENTS",
    "Difficulty",
    "GameType",
    "default_achievements",
    "validate_level",
    "InvalidLevelError",
    # Progress records
    "Achievement",
    "GameProgress",
    "LevelProgress",
    "UserProgress",
]
