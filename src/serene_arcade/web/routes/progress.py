"""Progress routes - overall summary, onboarding and reset."""

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/progress")
async def get_progress(request: Request):
    """Overall progress summary."""
    tracker = request.app.state.tracker
    return tracker.progress.summary()


@router.post("/onboarding")
async def finish_onboarding(request: Request):
    """Mark onboarding as finished."""
    tracker = request.app.state.tracker
    tracker.on_onboarding_finished()
    return tracker.progress.summary()


@router.post("/reset")
async def reset_progress(request: Request):
    """Erase all progress and achievements."""
    tracker = request.app.state.tracker
    tracker.on_reset_requested()
    return tracker.progress.summary()
