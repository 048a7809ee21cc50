"""Game routes - level tables and finished rounds."""

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from serene_arcade.models import Difficulty, GameProgress, GameType, InvalidLevelError, validate_level

router = APIRouter(prefix="/games")


class LevelResult(BaseModel):
    """Outcome of a finished round."""

    difficulty: Difficulty
    level: int = Field(ge=1)
    won: bool
    score: int = Field(default=0, ge=0)


def _level_table(game: GameType, progress: GameProgress) -> dict:
    difficulties = []
    for difficulty in Difficulty:
        levels = []
        for number in range(1, difficulty.level_count + 1):
            level = progress.root.get(difficulty, {}).get(number)
            levels.append(
                {
                    "level": number,
                    "unlocked": progress.is_level_unlocked(difficulty, number),
                    "completed": level is not None and level.completed,
                    "best_score": level.best_score if level else 0,
                    "attempts": level.attempts if level else 0,
                }
            )
        difficulties.append(
            {
                "difficulty": difficulty.value,
                "level_count": difficulty.level_count,
                "completed": progress.completed_levels(difficulty),
                "levels": levels,
            }
        )

    return {
        "game": game.value,
        "name": game.display_name,
        "tagline": game.tagline,
        "completed": progress.total_completed_levels(),
        "total_levels": progress.total_levels(),
        "attempts": progress.total_attempts(),
        "difficulties": difficulties,
    }


@router.get("")
async def list_games(request: Request):
    """Completion overview of every game."""
    tracker = request.app.state.tracker
    return [
        {
            "game": game.value,
            "name": game.display_name,
            "tagline": game.tagline,
            "completed": tracker.total_completed_levels(game),
            "total_levels": tracker.progress.game(game).total_levels(),
        }
        for game in GameType
    ]


@router.get("/{game}")
async def get_game(request: Request, game: GameType):
    """Level table of a game with unlock state."""
    tracker = request.app.state.tracker
    return _level_table(game, tracker.progress.game(game))


@router.post("/{game}/levels/finished")
async def level_finished(request: Request, game: GameType, result: LevelResult):
    """Record the outcome of a round."""
    tracker = request.app.state.tracker

    try:
        validate_level(result.difficulty, result.level)
    except InvalidLevelError as e:
        raise HTTPException(status_code=422, detail=str(e))

    if not tracker.is_level_unlocked(game, result.difficulty, result.level):
        raise HTTPException(status_code=409, detail="Level is locked")

    unlocked = tracker.on_level_finished(
        game, result.difficulty, result.level, won=result.won, score=result.score
    )
    level = tracker.progress.game(game).level(result.difficulty, result.level)

    return {
        "level": level.model_dump(mode="json"),
        "unlocked_achievements": [a.model_dump(mode="json") for a in unlocked],
        "progress": tracker.progress.summary(),
    }
