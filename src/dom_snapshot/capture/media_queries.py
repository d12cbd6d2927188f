"""Freeze responsive CSS rules to the state observed at capture time."""

import logging
import re

from ..environment import EnvironmentService

logger = logging.getLogger(__name__)

ALWAYS_MATCH = "@media all"
NEVER_MATCH = "@media not all"

# A single parenthesised condition forming the whole prelude. Compound
# preludes (``and``/``or``/lists) do not match and are left as written.
_MEDIA_RULE = re.compile(r"@media\s*\(([^(){};]*)\)\s*(?=\{)", re.IGNORECASE)


class MediaQueryFreezer:
    """Rewrite ``@media(<condition>)`` rules to always or never match."""

    def __init__(self, environment: EnvironmentService):
        self.environment = environment

    def freeze(self, css: str) -> str:
        """Return the CSS with every single-condition media rule frozen."""
        frozen, _ = self.freeze_counted(css)
        return frozen

    def freeze_counted(self, css: str) -> tuple[str, int]:
        """Like ``freeze`` but also report how many rules were rewritten."""
        return _MEDIA_RULE.subn(self._replace, css)

    def _replace(self, match: re.Match) -> str:
        condition = match.group(1).strip()
        matched = self.environment.matches(condition)
        logger.debug(f"Froze @media({condition}) -> {'match' if matched else 'no match'}")
        return f"{ALWAYS_MATCH} " if matched else f"{NEVER_MATCH} "
