"""Tests for level tables, unlock gating and derived player values."""

from datetime import datetime, timedelta, timezone

import pytest

from serene_arcade.models import (
    ACHIEVEMENT_CATALOG,
    TOTAL_LEVELS_PER_GAME,
    Achievement,
    Difficulty,
    GameProgress,
    GameType,
    InvalidLevelError,
    LevelProgress,
    UserProgress,
    validate_level,
)


# ============================================================================
# Tiers and games
# ============================================================================

class TestDifficulty:
    """Difficulty tiers and their level counts"""

    def test_level_counts(self):
        assert Difficulty.CALM.level_count == 5
        assert Difficulty.FOCUSED.level_count == 7
        assert Difficulty.INTENSE.level_count == 10
        assert TOTAL_LEVELS_PER_GAME == 22

    def test_accepts_display_name(self):
        """Older saves used display names"""
        assert Difficulty("Calm") is Difficulty.CALM
        assert GameType("Precision Path") is GameType.PRECISION_PATH
        assert GameType("balanceTrial") is GameType.BALANCE_TRIAL

    def test_unknown_name_rejected(self):
        with pytest.raises(ValueError):
            Difficulty("relaxed")

    def test_validate_level(self):
        assert validate_level(Difficulty.CALM, 5) == 5
        with pytest.raises(InvalidLevelError):
            validate_level(Difficulty.CALM, 6)
        with pytest.raises(InvalidLevelError):
            validate_level(Difficulty.INTENSE, 0)


# ============================================================================
# Game progress table
# ============================================================================

class TestGameProgress:
    """Per-game level table"""

    def test_fresh_table_has_every_level(self):
        progress = GameProgress()
        for difficulty in Difficulty:
            assert sorted(progress.root[difficulty]) == list(range(1, difficulty.level_count + 1))
            assert all(level == LevelProgress() for level in progress.root[difficulty].values())

    def test_complete_level(self):
        progress = GameProgress()
        level = progress.complete_level(Difficulty.CALM, 1, 80)
        assert level.completed is True
        assert level.best_score == 80
        assert level.attempts == 1
        assert progress.completed_levels(Difficulty.CALM) == 1
        assert progress.total_completed_levels() == 1

    def test_best_score_never_decreases(self):
        progress = GameProgress()
        progress.complete_level(Difficulty.CALM, 1, 80)
        progress.complete_level(Difficulty.CALM, 1, 50)
        level = progress.level(Difficulty.CALM, 1)
        assert level.best_score == 80
        assert level.attempts == 2

        progress.complete_level(Difficulty.CALM, 1, 95)
        assert level.best_score == 95

    def test_add_attempt_only_counts(self):
        progress = GameProgress()
        progress.add_attempt(Difficulty.FOCUSED, 2)
        level = progress.level(Difficulty.FOCUSED, 2)
        assert level.attempts == 1
        assert level.completed is False
        assert level.best_score == 0

    def test_attempts_after_completion_keep_completion(self):
        progress = GameProgress()
        progress.complete_level(Difficulty.CALM, 2, 40)
        progress.add_attempt(Difficulty.CALM, 2)
        level = progress.level(Difficulty.CALM, 2)
        assert level.completed is True
        assert level.best_score == 40
        assert level.attempts == 2

    def test_missing_entries_are_created_on_demand(self):
        """A table without a tier still accepts results for it"""
        progress = GameProgress(root={})
        assert progress.completed_levels(Difficulty.INTENSE) == 0

        progress.complete_level(Difficulty.INTENSE, 3, 10)
        assert progress.root[Difficulty.INTENSE][3].completed is True
        assert progress.completed_levels(Difficulty.INTENSE) == 1

    def test_total_attempts(self):
        progress = GameProgress()
        progress.add_attempt(Difficulty.CALM, 1)
        progress.complete_level(Difficulty.CALM, 1, 10)
        progress.add_attempt(Difficulty.INTENSE, 10)
        assert progress.total_attempts() == 3


class TestUnlockGating:
    """Which levels can be played"""

    def test_calm_one_always_open(self):
        assert GameProgress().is_level_unlocked(Difficulty.CALM, 1) is True
        assert GameProgress(root={}).is_level_unlocked(Difficulty.CALM, 1) is True

    def test_later_levels_follow_previous(self):
        progress = GameProgress()
        assert progress.is_level_unlocked(Difficulty.CALM, 2) is False
        progress.complete_level(Difficulty.CALM, 1, 50)
        assert progress.is_level_unlocked(Difficulty.CALM, 2) is True
        assert progress.is_level_unlocked(Difficulty.CALM, 3) is False

    def test_failed_attempt_does_not_open_next_level(self):
        progress = GameProgress()
        progress.add_attempt(Difficulty.CALM, 1)
        assert progress.is_level_unlocked(Difficulty.CALM, 2) is False

    def test_focused_opens_after_three_calm(self):
        progress = GameProgress()
        for level in (1, 2):
            progress.complete_level(Difficulty.CALM, level, 50)
            assert progress.is_level_unlocked(Difficulty.FOCUSED, 1) is False
        progress.complete_level(Difficulty.CALM, 3, 50)
        assert progress.is_level_unlocked(Difficulty.FOCUSED, 1) is True

        progress.complete_level(Difficulty.CALM, 4, 50)
        assert progress.is_level_unlocked(Difficulty.FOCUSED, 1) is True

    def test_intense_opens_after_four_focused(self):
        progress = GameProgress()
        for level in range(1, 4):
            progress.complete_level(Difficulty.FOCUSED, level, 50)
        assert progress.is_level_unlocked(Difficulty.INTENSE, 1) is False
        progress.complete_level(Difficulty.FOCUSED, 4, 50)
        assert progress.is_level_unlocked(Difficulty.INTENSE, 1) is True

    def test_missing_predecessor_is_locked(self):
        progress = GameProgress(root={})
        assert progress.is_level_unlocked(Difficulty.FOCUSED, 4) is False
        # Queries do not create entries
        assert progress.root == {}


# ============================================================================
# Player progress
# ============================================================================

class TestUserProgress:
    """Aggregate defaults and derived values"""

    def test_fresh_defaults(self):
        progress = UserProgress()
        assert progress.has_completed_onboarding is False
        assert set(progress.game_progress) == set(GameType)
        assert [a.id for a in progress.achievements] == [a.id for a in ACHIEVEMENT_CATALOG]
        assert not any(a.unlocked for a in progress.achievements)
        assert progress.total_games_played == 0
        assert progress.energy_level == 1
        assert progress.current_stage == 1

    def test_catalog_is_not_shared(self):
        progress = UserProgress()
        progress.unlock_achievement("first_step", datetime(2026, 1, 1))
        assert ACHIEVEMENT_CATALOG[0].unlocked is False
        assert UserProgress().achievement("first_step").unlocked is False

    def test_missing_games_are_filled_in(self):
        progress = UserProgress(game_progress={GameType.PATTERN_FLOW: GameProgress()})
        assert set(progress.game_progress) == set(GameType)

    def test_counts_both_outcomes_as_played(self):
        progress = UserProgress()
        progress.complete_level(GameType.PATTERN_FLOW, Difficulty.CALM, 1, 20)
        progress.add_attempt(GameType.PATTERN_FLOW, Difficulty.CALM, 2)
        assert progress.total_games_played == 2
        assert progress.total_completed_levels == 1

    @pytest.mark.parametrize(
        "completed,expected",
        [(0, 1), (2, 1), (3, 2), (6, 3), (10, 4), (14, 5), (19, 6), (25, 7), (32, 8), (39, 8), (40, 9), (49, 9), (50, 10), (66, 10)],
    )
    def test_energy_bands(self, completed, expected):
        progress = UserProgress()
        done = 0
        for game in GameType:
            for difficulty in Difficulty:
                for level in range(1, difficulty.level_count + 1):
                    if done < completed:
                        progress.game(game).complete_level(difficulty, level, 1)
                        done += 1
        assert progress.total_completed_levels == completed
        assert progress.calculate_energy_level() == expected

    @pytest.mark.parametrize(
        "unlocked,expected",
        [(0, 1), (1, 1), (2, 2), (3, 2), (4, 3), (5, 3), (6, 4), (7, 4), (8, 5), (10, 5)],
    )
    def test_stage_bands(self, unlocked, expected):
        progress = UserProgress()
        for achievement in progress.achievements[:unlocked]:
            progress.unlock_achievement(achievement.id, datetime(2026, 1, 1))
        assert progress.unlocked_achievements == unlocked
        assert progress.calculate_stage() == expected

    def test_unlock_is_one_way(self):
        progress = UserProgress()
        first = datetime(2026, 1, 1)
        unlocked = progress.unlock_achievement("dedication", first)
        assert unlocked is not None and unlocked.unlocked_date == first

        assert progress.unlock_achievement("dedication", first + timedelta(days=1)) is None
        assert progress.achievement("dedication").unlocked_date == first

    def test_unlock_unknown_id(self):
        assert UserProgress().unlock_achievement("speedrun", datetime(2026, 1, 1)) is None

    def test_unlock_dates_are_naive(self):
        achievement = Achievement(
            id="x", title="X", description="x",
            unlocked=True, unlocked_date=datetime(2026, 1, 1, 12, tzinfo=timezone(timedelta(hours=2))),
        )
        assert achievement.unlocked_date == datetime(2026, 1, 1, 10)

    def test_unlock_with_aware_time_stores_naive(self):
        progress = UserProgress()
        progress.unlock_achievement("first_step", datetime(2026, 1, 1, 12, tzinfo=timezone(timedelta(hours=2))))
        assert progress.achievement("first_step").unlocked_date == datetime(2026, 1, 1, 10)
        assert progress.achievement("first_step").unlocked_date.tzinfo is None

    def test_recent_achievements_newest_first(self):
        progress = UserProgress()
        base = datetime(2026, 1, 1)
        for offset, achievement_id in enumerate(["first_step", "triple_crown", "calm_master"]):
            progress.unlock_achievement(achievement_id, base + timedelta(hours=offset))
        assert [a.id for a in progress.recent_achievements()] == ["calm_master", "triple_crown", "first_step"]
        assert [a.id for a in progress.recent_achievements(limit=1)] == ["calm_master"]

    def test_highest_unlocked_difficulty(self):
        progress = UserProgress()
        assert progress.highest_unlocked_difficulty() is Difficulty.CALM

        for level in (1, 2, 3):
            progress.game(GameType.BALANCE_TRIAL).complete_level(Difficulty.CALM, level, 10)
        assert progress.highest_unlocked_difficulty() is Difficulty.FOCUSED

        for level in (1, 2, 3, 4):
            progress.game(GameType.PRECISION_PATH).complete_level(Difficulty.FOCUSED, level, 10)
        assert progress.highest_unlocked_difficulty() is Difficulty.INTENSE

    def test_energy_progress(self):
        assert UserProgress(energy_level=7).energy_progress == pytest.approx(0.7)

    def test_reset_in_place(self):
        progress = UserProgress(has_completed_onboarding=True, total_games_played=9, energy_level=3)
        progress.complete_level(GameType.PATTERN_FLOW, Difficulty.CALM, 1, 20)
        progress.unlock_achievement("first_step", datetime(2026, 1, 1))

        progress.reset()

        assert progress == UserProgress()

    def test_summary(self):
        progress = UserProgress()
        progress.complete_level(GameType.PATTERN_FLOW, Difficulty.CALM, 1, 20)
        summary = progress.summary()
        assert summary["total_games_played"] == 1
        assert summary["total_completed_levels"] == 1
        assert summary["total_achievements"] == 10
        assert summary["highest_unlocked_difficulty"] == "calm"
