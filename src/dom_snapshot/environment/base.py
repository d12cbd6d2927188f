"""Base interface for the capture-time environment."""

from abc import ABC, abstractmethod


class EnvironmentService(ABC):
    """Answers questions about the rendering environment at capture time."""

    @abstractmethod
    def prefers_dark(self) -> bool:
        """
        Report the user's colour-scheme preference.

        Returns:
            True if a dark colour scheme is preferred
        """
        pass

    @abstractmethod
    def matches(self, query: str) -> bool:
        """
        Evaluate a single media condition, e.g. ``min-width: 500px``.

        Returns:
            True if the condition holds right now
        """
        pass
