"""Core data models for levels, per-game progress, achievements and the player."""

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, RootModel, Strict, field_validator, model_validator
from pydantic.alias_generators import to_camel

# Scalars are strict so that a saved "yes" or "3" is treated as malformed
# instead of being coerced.
StrictFlag = Annotated[bool, Strict()]
Counter = Annotated[int, Strict(), Field(ge=0)]
EnergyLevel = Annotated[int, Strict(), Field(ge=1, le=10)]
Stage = Annotated[int, Strict(), Field(ge=1, le=5)]


class InvalidLevelError(ValueError):
    """A level number outside the playable range of its difficulty."""

    pass


class _TitledEnum(str, Enum):
    """String enum that also accepts its display name ("Precision Path")."""

    @classmethod
    def _missing_(cls, value: object) -> Any:
        if isinstance(value, str):
            key = value.replace(" ", "").lower()
            for member in cls:
                if member.value.lower() == key:
                    return member
        return None


class Difficulty(_TitledEnum):
    """Difficulty tiers, easiest first."""

    CALM = "calm"
    FOCUSED = "focused"
    INTENSE = "intense"

    @property
    def level_count(self) -> int:
        return _LEVEL_COUNTS[self]

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class GameType(_TitledEnum):
    """The three mini-games. Each keeps its own progress table."""

    PRECISION_PATH = "precisionPath"
    PATTERN_FLOW = "patternFlow"
    BALANCE_TRIAL = "balanceTrial"

    @property
    def display_name(self) -> str:
        return _GAME_INFO[self][0]

    @property
    def tagline(self) -> str:
        return _GAME_INFO[self][1]


_LEVEL_COUNTS = {
    Difficulty.CALM: 5,
    Difficulty.FOCUSED: 7,
    Difficulty.INTENSE: 10,
}

_GAME_INFO = {
    GameType.PRECISION_PATH: ("Precision Path", "Accuracy and timing"),
    GameType.PATTERN_FLOW: ("Pattern Flow", "Pattern recognition"),
    GameType.BALANCE_TRIAL: ("Balance Trial", "Controlled decisions"),
}

# First level of a tier opens once enough levels of the previous tier are done
UNLOCK_REQUIREMENTS = {
    Difficulty.FOCUSED: (Difficulty.CALM, 3),
    Difficulty.INTENSE: (Difficulty.FOCUSED, 4),
}

TOTAL_LEVELS_PER_GAME = sum(_LEVEL_COUNTS.values())


def _ensure_naive_datetime(dt: datetime) -> datetime:
    """Ensure datetime is naive (no timezone info), in UTC."""
    if dt.tzinfo is not None:
        return dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def validate_level(difficulty: Difficulty, level: int) -> int:
    """Check that a level number exists for the difficulty.

    Gameplay surfaces call this before recording a result. The progress
    table itself accepts any level number.
    """
    if not 1 <= level <= difficulty.level_count:
        raise InvalidLevelError(
            f"{difficulty.display_name} has levels 1-{difficulty.level_count}, got {level}"
        )
    return level


# =============================================================================
# Level and Game Progress
# =============================================================================


class LevelProgress(BaseModel):
    """Result record for one (game, difficulty, level)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    completed: StrictFlag = False
    best_score: Counter = 0
    attempts: Counter = 0


LevelTable = dict[Difficulty, dict[int, LevelProgress]]


def _fresh_levels() -> LevelTable:
    return {
        difficulty: {level: LevelProgress() for level in range(1, difficulty.level_count + 1)}
        for difficulty in Difficulty
    }


class GameProgress(RootModel[LevelTable]):
    """Progress table of a single game, keyed by difficulty then level number."""

    root: LevelTable = Field(default_factory=_fresh_levels)

    def level(self, difficulty: Difficulty, level: int) -> LevelProgress:
        """Return the entry for a level, creating a default one on first access."""
        levels = self.root.setdefault(difficulty, {})
        if level not in levels:
            levels[level] = LevelProgress()
        return levels[level]

    def complete_level(self, difficulty: Difficulty, level: int, score: int) -> LevelProgress:
        """Mark a level completed, keep the best score and count the attempt."""
        progress = self.level(difficulty, level)
        progress.completed = True
        progress.best_score = max(progress.best_score, score)
        progress.attempts += 1
        return progress

    def add_attempt(self, difficulty: Difficulty, level: int) -> LevelProgress:
        """Count a failed attempt."""
        progress = self.level(difficulty, level)
        progress.attempts += 1
        return progress

    def completed_levels(self, difficulty: Difficulty) -> int:
        return sum(1 for progress in self.root.get(difficulty, {}).values() if progress.completed)

    def total_completed_levels(self) -> int:
        return sum(self.completed_levels(difficulty) for difficulty in Difficulty)

    def total_attempts(self) -> int:
        """Sum of attempts over every playable level."""
        total = 0
        for difficulty in Difficulty:
            levels = self.root.get(difficulty, {})
            for level in range(1, difficulty.level_count + 1):
                if level in levels:
                    total += levels[level].attempts
        return total

    def total_levels(self) -> int:
        return TOTAL_LEVELS_PER_GAME

    def is_level_unlocked(self, difficulty: Difficulty, level: int) -> bool:
        """Check whether a level can be played.

        Level 1 of Calm is always open. Level 1 of a harder tier opens once
        enough levels of the tier below are completed. Any other level opens
        when the previous level of the same tier is completed.
        """
        if level == 1:
            requirement = UNLOCK_REQUIREMENTS.get(difficulty)
            if requirement is None:
                return True
            required_difficulty, required_count = requirement
            return self.completed_levels(required_difficulty) >= required_count

        previous = self.root.get(difficulty, {}).get(level - 1)
        return previous is not None and previous.completed


# =============================================================================
# Achievements
# =============================================================================


class Achievement(BaseModel):
    """A one-way unlockable milestone."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(description="Stable achievement key")
    title: str
    description: str
    unlocked: StrictFlag = False
    unlocked_date: datetime | None = None

    @field_validator("unlocked_date", mode="after")
    @classmethod
    def ensure_naive_date(cls, v: datetime | None) -> datetime | None:
        return _ensure_naive_datetime(v) if v is not None else None


ACHIEVEMENT_CATALOG: tuple[Achievement, ...] = (
    Achievement(id="first_step", title="First Step", description="Complete your first level"),
    Achievement(id="calm_master", title="Calm Master", description="Complete all Calm levels in any game"),
    Achievement(id="focused_adept", title="Focused Adept", description="Complete all Focused levels in any game"),
    Achievement(id="intense_warrior", title="Intense Warrior", description="Complete all Intense levels in any game"),
    Achievement(id="precision_expert", title="Precision Expert", description="Complete 10 levels in Precision Path"),
    Achievement(id="pattern_seer", title="Pattern Seer", description="Complete 10 levels in Pattern Flow"),
    Achievement(id="balance_keeper", title="Balance Keeper", description="Complete 10 levels in Balance Trial"),
    Achievement(id="triple_crown", title="Triple Crown", description="Complete at least one level in each game"),
    Achievement(id="dedication", title="Dedication", description="Play 50 levels total"),
    Achievement(id="mastery", title="True Mastery", description="Complete all levels in all games"),
)


def default_achievements() -> list[Achievement]:
    """Fresh, all-locked copy of the catalog."""
    return [achievement.model_copy() for achievement in ACHIEVEMENT_CATALOG]


def _merge_with_catalog(saved: list[Achievement]) -> list[Achievement]:
    """Lay saved unlock state over the catalog, in catalog order."""
    by_id = {achievement.id: achievement for achievement in saved}
    merged = []
    for definition in ACHIEVEMENT_CATALOG:
        achievement = definition.model_copy()
        if definition.id in by_id:
            achievement.unlocked = by_id[definition.id].unlocked
            achievement.unlocked_date = by_id[definition.id].unlocked_date
        merged.append(achievement)
    return merged


# =============================================================================
# Player Progress
# =============================================================================

# (minimum completed levels, energy level), highest band first
ENERGY_BANDS = ((50, 10), (40, 9), (32, 8), (25, 7), (19, 6), (14, 5), (10, 4), (6, 3), (3, 2))

# (minimum unlocked achievements, stage), highest band first
STAGE_BANDS = ((8, 5), (6, 4), (4, 3), (2, 2))


def _band(value: int, bands: tuple[tuple[int, int], ...]) -> int:
    for threshold, result in bands:
        if value >= threshold:
            return result
    return 1


def _fresh_game_progress() -> dict[GameType, GameProgress]:
    return {game: GameProgress() for game in GameType}


class UserProgress(BaseModel):
    """Everything the player has achieved. Persisted as a single record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    has_completed_onboarding: StrictFlag = False
    game_progress: dict[GameType, GameProgress] = Field(default_factory=_fresh_game_progress)
    achievements: list[Achievement] = Field(default_factory=default_achievements)
    total_games_played: Counter = 0
    energy_level: EnergyLevel = 1
    current_stage: Stage = 1

    @model_validator(mode="after")
    def _complete_tables(self) -> "UserProgress":
        for game in GameType:
            self.game_progress.setdefault(game, GameProgress())
        self.achievements = _merge_with_catalog(self.achievements)
        return self

    def game(self, game: GameType) -> GameProgress:
        """Return the progress table of a game."""
        return self.game_progress.setdefault(game, GameProgress())

    def complete_level(self, game: GameType, difficulty: Difficulty, level: int, score: int) -> LevelProgress:
        """Record a won round. Derived values are refreshed by the tracker."""
        progress = self.game(game).complete_level(difficulty, level, score)
        self.total_games_played += 1
        return progress

    def add_attempt(self, game: GameType, difficulty: Difficulty, level: int) -> LevelProgress:
        """Record a lost round."""
        progress = self.game(game).add_attempt(difficulty, level)
        self.total_games_played += 1
        return progress

    @property
    def total_completed_levels(self) -> int:
        return sum(progress.total_completed_levels() for progress in self.game_progress.values())

    @property
    def unlocked_achievements(self) -> int:
        return sum(1 for achievement in self.achievements if achievement.unlocked)

    @property
    def energy_progress(self) -> float:
        """Energy level as a fraction of the maximum, for progress rings."""
        return self.energy_level / 10

    def achievement(self, achievement_id: str) -> Achievement | None:
        return next((a for a in self.achievements if a.id == achievement_id), None)

    def unlock_achievement(self, achievement_id: str, when: datetime) -> Achievement | None:
        """Unlock an achievement once. Returns it only if it was locked before."""
        achievement = self.achievement(achievement_id)
        if achievement is None or achievement.unlocked:
            return None
        achievement.unlocked = True
        achievement.unlocked_date = _ensure_naive_datetime(when)
        return achievement

    def calculate_energy_level(self) -> int:
        return _band(self.total_completed_levels, ENERGY_BANDS)

    def calculate_stage(self) -> int:
        return _band(self.unlocked_achievements, STAGE_BANDS)

    def highest_unlocked_difficulty(self) -> Difficulty:
        """Hardest tier whose first level is open in at least one game."""
        for difficulty in (Difficulty.INTENSE, Difficulty.FOCUSED):
            if any(progress.is_level_unlocked(difficulty, 1) for progress in self.game_progress.values()):
                return difficulty
        return Difficulty.CALM

    def recent_achievements(self, limit: int = 5) -> list[Achievement]:
        """Unlocked achievements, newest first."""
        unlocked = [a for a in self.achievements if a.unlocked]
        unlocked.sort(key=lambda a: a.unlocked_date or datetime.min, reverse=True)
        return unlocked[:limit]

    def reset(self) -> None:
        """Restore every field to its fresh value, in place."""
        fresh = UserProgress()
        for name in type(self).model_fields:
            setattr(self, name, getattr(fresh, name))

    def summary(self) -> dict[str, Any]:
        """Headline numbers for the statistics screen."""
        return {
            "has_completed_onboarding": self.has_completed_onboarding,
            "total_games_played": self.total_games_played,
            "total_completed_levels": self.total_completed_levels,
            "unlocked_achievements": self.unlocked_achievements,
            "total_achievements": len(self.achievements),
            "energy_level": self.energy_level,
            "energy_progress": self.energy_progress,
            "current_stage": self.current_stage,
            "highest_unlocked_difficulty": self.highest_unlocked_difficulty().value,
        }
