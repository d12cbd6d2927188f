"""Configuration-driven environment for evaluating media conditions."""

import logging
import operator
import re
from fractions import Fraction

from ..config import EnvironmentConfig
from .base import EnvironmentService

logger = logging.getLogger(__name__)

# Pixels per unit for the length units we can resolve without layout
LENGTH_UNITS = {
    "": 1.0,
    "px": 1.0,
    "em": 16.0,
    "rem": 16.0,
    "pt": 96.0 / 72.0,
    "pc": 16.0,
    "in": 96.0,
    "cm": 96.0 / 2.54,
    "mm": 96.0 / 25.4,
}

RANGE_OPERATORS = {
    "<=": operator.le,
    ">=": operator.ge,
    "<": operator.lt,
    ">": operator.gt,
    "=": operator.eq,
}

_LENGTH_RE = re.compile(r"^(-?\d*\.?\d+)\s*([a-z]*)$")
_RANGE_RE = re.compile(r"^([a-z-]+)\s*(<=|>=|<|>|=)\s*(.+)$")


class StaticEnvironment(EnvironmentService):
    """Evaluate single media conditions against a fixed viewport.

    Only one condition per query is understood: ``min-width: 500px``,
    ``prefers-color-scheme: dark``, ``width >= 40em``, ``hover`` or a bare
    media type. Anything else does not match.
    """

    def __init__(self, config: EnvironmentConfig | None = None):
        self.config = config or EnvironmentConfig()

    def prefers_dark(self) -> bool:
        return self.config.prefers_dark

    def matches(self, query: str) -> bool:
        condition = query.strip().lower()
        while condition.startswith("(") and condition.endswith(")"):
            condition = condition[1:-1].strip()

        if not condition:
            return False

        if condition in ("all", "screen", "print"):
            return condition == "all" or condition == self.config.media_type

        if ":" in condition:
            feature, _, value = condition.partition(":")
            return self._match_feature(feature.strip(), value.strip())

        if match := _RANGE_RE.match(condition):
            feature, op, value = match.groups()
            return self._match_range(feature, RANGE_OPERATORS[op], value.strip())

        return self._match_boolean(condition)

    def _match_feature(self, feature: str, value: str) -> bool:
        """Evaluate a ``feature: value`` condition."""
        prefix = ""
        name = feature
        if feature.startswith(("min-", "max-")):
            prefix, name = feature[:3], feature[4:]

        if name in ("width", "height", "aspect-ratio"):
            op = {"min": operator.ge, "max": operator.le}.get(prefix, operator.eq)
            return self._match_range(name, op, value)

        if prefix:
            logger.debug(f"Unsupported range feature in media query: {feature}")
            return False

        if name == "orientation":
            return value == self._orientation()
        if name == "prefers-color-scheme":
            return value == ("dark" if self.config.prefers_dark else "light")
        if name == "prefers-reduced-motion":
            wanted = "reduce" if self.config.prefers_reduced_motion else "no-preference"
            return value == wanted
        if name in ("hover", "any-hover"):
            return value == ("hover" if self.config.hover else "none")
        if name in ("pointer", "any-pointer"):
            return value == self.config.pointer

        logger.debug(f"Unsupported media feature: {feature}")
        return False

    def _match_range(self, feature: str, op, value: str) -> bool:
        """Compare a viewport dimension with a value."""
        actual = self._dimension(feature)
        if actual is None:
            logger.debug(f"Unsupported range feature in media query: {feature}")
            return False

        if feature == "aspect-ratio":
            expected = _parse_ratio(value)
        else:
            expected = _parse_length(value)

        if expected is None:
            logger.debug(f"Could not parse media query value: {value}")
            return False

        return op(actual, expected)

    def _match_boolean(self, feature: str) -> bool:
        """Evaluate a bare feature such as ``(hover)``."""
        if feature in ("hover", "any-hover"):
            return self.config.hover
        if feature in ("pointer", "any-pointer"):
            return self.config.pointer != "none"
        if feature in ("width", "height"):
            return bool(self._dimension(feature))
        if feature == "prefers-reduced-motion":
            return self.config.prefers_reduced_motion
        return False

    def _dimension(self, feature: str):
        if feature == "width":
            return self.config.viewport_width
        if feature == "height":
            return self.config.viewport_height
        if feature == "aspect-ratio":
            if not self.config.viewport_height:
                return None
            return Fraction(self.config.viewport_width, self.config.viewport_height)
        return None

    def _orientation(self) -> str:
        cfg = self.config
        return "portrait" if cfg.viewport_height >= cfg.viewport_width else "landscape"


def _parse_length(value: str) -> float | None:
    """Convert a CSS length to pixels; relative units assume a 16px root."""
    match = _LENGTH_RE.match(value.strip())
    if not match:
        return None
    number, unit = match.groups()
    scale = LENGTH_UNITS.get(unit)
    if scale is None:
        return None
    return float(number) * scale


def _parse_ratio(value: str) -> Fraction | None:
    """Parse ``16/9`` or ``1.5`` into a fraction."""
    try:
        if "/" in value:
            num, den = value.split("/", 1)
            return Fraction(num.strip()) / Fraction(den.strip())
        return Fraction(value.strip())
    except (ValueError, ZeroDivisionError):
        return None
