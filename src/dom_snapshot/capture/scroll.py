"""Per-capture scroll state and the script that replays it."""

import json
import logging

from ..errors import SnapshotError
from ..models import CaptureStats, ElementNode, ScrollPosition

logger = logging.getLogger(__name__)

# The head gains a baseline <style> block as its first child in the snapshot
INJECTED_HEAD_CHILDREN = 1


class CaptureCache:
    """Transient state owned by a single capture.

    Maps elements (by identity) to their non-zero scroll positions and
    remembers which elements serialized to nothing, so replay paths can
    count only what ends up in the snapshot.
    """

    def __init__(self):
        self._positions: dict[ElementNode, ScrollPosition] = {}
        self._dropped: set[ElementNode] = set()
        self.stats = CaptureStats()

    def record(self, element: ElementNode, position: ScrollPosition) -> None:
        """Remember an element's scroll position if it is non-zero."""
        if position.is_zero:
            return
        self._positions[element] = position

    def mark_dropped(self, element: ElementNode) -> None:
        self._dropped.add(element)
        self.stats.elements_dropped += 1

    def is_dropped(self, element: ElementNode) -> bool:
        return element in self._dropped

    def get(self, element: ElementNode) -> ScrollPosition | None:
        return self._positions.get(element)

    def items(self):
        return self._positions.items()

    def __contains__(self, element: object) -> bool:
        return element in self._positions

    def __len__(self) -> int:
        return len(self._positions)


class ReplayScriptGenerator:
    """Build the ``<script>`` block restoring recorded scroll positions."""

    def __init__(self, root: ElementNode):
        self.root = root

    def generate(self, cache: CaptureCache) -> str:
        """Return one script block with a statement per entry, or "" if none."""
        statements = [
            self.statement_for(element, position, cache)
            for element, position in cache.items()
        ]
        if not statements:
            return ""
        logger.debug(f"Replaying {len(statements)} scroll positions")
        return f"<script>{';'.join(statements)}</script>"

    def statement_for(self, element: ElementNode, position: ScrollPosition, cache: CaptureCache) -> str:
        path = self.path_for(element, cache)
        if len(path) == 1:
            target = "window"
        else:
            target = f"document.querySelector({json.dumps(selector_for(path))})"
        return f"{target}.scrollTo({_number(position.x)}, {_number(position.y)})"

    def path_for(self, element: ElementNode, cache: CaptureCache) -> list[int]:
        """
        Derive the ordinal path from the root to an element.

        The root's own path is ``[0]``; each further index is the element's
        position among the siblings that appear in the snapshot.
        """
        indices: list[int] = []
        current = element
        while current is not self.root:
            parent = current.parent
            if parent is None:
                raise SnapshotError(f"<{element.tag}> is not attached to the document root")
            indices.append(_rendered_index(parent, current, cache))
            current = parent
        indices.append(0)
        indices.reverse()
        return indices


def selector_for(path: list[int]) -> str:
    """Turn an ordinal path into a CSS selector anchored at ``:root``."""
    return ":root" + "".join(f">:nth-child({index + 1})" for index in path[1:])


def resolve_path(root: ElementNode, path: list[int], cache: CaptureCache | None = None) -> ElementNode:
    """Walk an ordinal path back down to the element it names."""
    if cache is None:
        cache = CaptureCache()
    current = root
    for index in path[1:]:
        offset = INJECTED_HEAD_CHILDREN if current.tag == "head" else 0
        children = _rendered_children(current, cache)
        position = index - offset
        if not 0 <= position < len(children):
            raise SnapshotError(f"Path {path} has no element at index {index} under <{current.tag}>")
        current = children[position]
    return current


def _rendered_children(parent: ElementNode, cache: CaptureCache) -> list[ElementNode]:
    return [c for c in parent.element_children if not cache.is_dropped(c)]


def _rendered_index(parent: ElementNode, child: ElementNode, cache: CaptureCache) -> int:
    offset = INJECTED_HEAD_CHILDREN if parent.tag == "head" else 0
    for index, sibling in enumerate(_rendered_children(parent, cache)):
        if sibling is child:
            return index + offset
    raise SnapshotError(f"<{child.tag}> is not a child of its recorded parent")


def _number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
