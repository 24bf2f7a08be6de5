"""Interactive coding agent that reads and rewrites one project tree."""

__version__ = "0.1.0"
