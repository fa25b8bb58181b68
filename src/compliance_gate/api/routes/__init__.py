"""Route group exports."""

from . import compliance, health, reports

__all__ = ["compliance", "health", "reports"]
