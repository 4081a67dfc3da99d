"""pharmtasks - recurring task checklist and status engine for pharmacy portals."""

__version__ = "0.1.0"
