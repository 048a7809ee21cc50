"""HTTP API for Serene Arcade."""
