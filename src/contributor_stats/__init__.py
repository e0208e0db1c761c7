"""contributor-stats: GitHub contribution stat cards."""

__version__ = "0.1.0"
