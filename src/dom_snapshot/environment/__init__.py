"""Environment module - capture-time viewport and preference queries."""

from .base import EnvironmentService
from .static import StaticEnvironment

__all__ = ["EnvironmentService", "StaticEnvironment"]
