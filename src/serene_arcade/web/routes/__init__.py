"""Route handlers for the progress API."""

from serene_arcade.web.routes import achievements, games, progress

__all__ = ["achievements", "games", "progress"]
