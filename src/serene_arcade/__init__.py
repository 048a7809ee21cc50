"""Serene Arcade - player progress for a collection of calm mini-games."""

__version__ = "0.1.0"
