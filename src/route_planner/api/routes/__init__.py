"""Route group exports."""

from . import health, riders

__all__ = ["health", "riders"]
