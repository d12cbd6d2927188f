"""Core data models for DOM Snapshot."""

import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class ColorScheme(Enum):
    """Colour scheme a document is rendered with."""

    LIGHT = "light"
    DARK = "dark"


@dataclass(frozen=True)
class ScrollPosition:
    """Horizontal and vertical scroll offsets of an element or the window."""

    x: float = 0
    y: float = 0

    @property
    def is_zero(self) -> bool:
        return not self.x and not self.y


@dataclass(frozen=True)
class TextNode:
    """A text node; its payload is emitted verbatim."""

    text: str


@dataclass(eq=False)
class ElementNode:
    """An element node owning its attributes and children.

    Elements compare and hash by identity so they can key per-capture
    lookups. The parent link is a weak reference and is only used to
    rebuild structural paths.
    """

    tag: str
    attributes: dict[str, str] = field(default_factory=dict)
    children: list["Node"] = field(default_factory=list)
    scroll_left: float = 0
    scroll_top: float = 0
    _parent: "weakref.ReferenceType[ElementNode] | None" = field(
        default=None, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        self.tag = self.tag.lower()
        for child in self.children:
            if isinstance(child, ElementNode):
                child._parent = weakref.ref(self)

    @property
    def parent(self) -> "ElementNode | None":
        """Parent element, or None for the root or a detached element."""
        return self._parent() if self._parent is not None else None

    @property
    def scroll(self) -> ScrollPosition:
        return ScrollPosition(self.scroll_left, self.scroll_top)

    @property
    def element_children(self) -> list["ElementNode"]:
        return [c for c in self.children if isinstance(c, ElementNode)]

    def append(self, child: "Node") -> "Node":
        """Append a child node, taking ownership of it."""
        if isinstance(child, ElementNode):
            child._parent = weakref.ref(self)
        self.children.append(child)
        return child

    def get(self, name: str, default: str | None = None) -> str | None:
        """Case-insensitive attribute lookup."""
        lowered = name.lower()
        for key, value in self.attributes.items():
            if key.lower() == lowered:
                return value
        return default

    def iter_elements(self):
        """Yield this element and all descendant elements in document order."""
        yield self
        for child in self.element_children:
            yield from child.iter_elements()


Node = Union[TextNode, ElementNode]


@dataclass
class Document:
    """Input to a capture: the root element plus window-level runtime state."""

    root: ElementNode
    window_scroll: ScrollPosition = field(default_factory=ScrollPosition)
    base_url: str | None = None


@dataclass
class FetchedResource:
    """Binary content returned by a resource fetcher."""

    content: bytes
    media_type: str | None = None


@dataclass
class CaptureStats:
    """Counters collected while a single capture runs."""

    stylesheets_inlined: int = 0
    stylesheets_failed: int = 0
    images_inlined: int = 0
    images_failed: int = 0
    media_queries_frozen: int = 0
    elements_dropped: int = 0


@dataclass
class CaptureResult:
    """Snapshot markup together with the statistics of its capture."""

    html: str
    stats: CaptureStats
    scroll_entries: int = 0
