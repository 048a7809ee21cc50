"""FastAPI application for the Serene Arcade progress API."""

from fastapi import FastAPI

from serene_arcade.storage import ProgressStore
from serene_arcade.tracker import ProgressTracker
from serene_arcade.web.routes import achievements, games, progress


def create_app(store: ProgressStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Serene Arcade",
        description="Player progress for the Serene Arcade mini-games",
    )

    # One tracker per app, shared by every route
    app.state.tracker = ProgressTracker(store or ProgressStore())

    # Include routers
    app.include_router(progress.router)
    app.include_router(games.router)
    app.include_router(achievements.router)

    return app
