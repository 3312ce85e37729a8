"""Catalog sync backend: TMDB content synchronization and catalog retention."""

__version__ = "1.0.0"
