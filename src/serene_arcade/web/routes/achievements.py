"""Achievement routes."""

from fastapi import APIRouter, Query, Request

router = APIRouter(prefix="/achievements")


@router.get("")
async def list_achievements(request: Request):
    """All achievements in catalog order."""
    tracker = request.app.state.tracker
    return [a.model_dump(mode="json") for a in tracker.progress.achievements]


@router.get("/recent")
async def recent_achievements(
    request: Request,
    limit: int = Query(5, ge=1, le=10, description="Number of achievements"),
):
    """Most recently unlocked achievements, newest first."""
    tracker = request.app.state.tracker
    return [a.model_dump(mode="json") for a in tracker.progress.recent_achievements(limit)]
