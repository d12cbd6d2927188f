"""HTML parser for building capture input trees."""

from dataclasses import dataclass
from typing import Iterator, Mapping, Sequence
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Comment, NavigableString, Tag
from bs4.element import CData, Declaration, Doctype, ProcessingInstruction
from soupsieve import SelectorSyntaxError

from ..errors import SnapshotError
from ..models import Document, ElementNode, Node, ScrollPosition, TextNode

# String subclasses that are not text content
_NON_TEXT = (Comment, CData, Declaration, Doctype, ProcessingInstruction)


@dataclass
class ExternalResource:
    """A stylesheet or image reference that a capture would inline."""

    kind: str  # stylesheet, image
    url: str
    element: ElementNode


class HTMLParser:
    """Parse HTML and build the element tree a capture consumes."""

    def __init__(self, html: str):
        # Keep class/rel as plain strings, exactly as written
        self.soup = BeautifulSoup(html, "lxml", multi_valued_attributes=None)
        self._nodes: dict[int, ElementNode] = {}

    def to_document(
        self,
        scroll_offsets: Mapping[str, Sequence[float]] | None = None,
        window_scroll: Sequence[float] | None = None,
        base_url: str | None = None,
    ) -> Document:
        """
        Build a capture Document from the parsed markup.

        Args:
            scroll_offsets: CSS selector -> (x, y) runtime scroll offsets
            window_scroll: viewport scroll offset as (x, y)
            base_url: URL relative references resolve against; a ``<base>``
                element in the markup takes precedence

        Returns:
            Document rooted at the ``<html>`` element
        """
        root_tag = self.soup.find("html")
        if not isinstance(root_tag, Tag):
            raise SnapshotError("Document has no root element")

        self._nodes.clear()
        root = self._tag_to_element(root_tag)

        for selector, offsets in (scroll_offsets or {}).items():
            self._apply_scroll(selector, offsets)

        base_tag = self.soup.find("base", href=True)
        if isinstance(base_tag, Tag):
            base_url = _join(base_url, base_tag["href"])

        return Document(
            root=root,
            window_scroll=ScrollPosition(*window_scroll) if window_scroll else ScrollPosition(),
            base_url=base_url,
        )

    def _tag_to_element(self, tag: Tag) -> ElementNode:
        """Convert a BeautifulSoup Tag and its subtree to an ElementNode."""
        element = ElementNode(
            tag=tag.name,
            attributes={k: _attr_value(v) for k, v in tag.attrs.items()},
        )
        self._nodes[id(tag)] = element

        for child in tag.children:
            node = self._convert(child)
            if node is not None:
                element.append(node)

        return element

    def _convert(self, child) -> Node | None:
        if isinstance(child, Tag):
            return self._tag_to_element(child)
        if isinstance(child, _NON_TEXT):
            return None
        if isinstance(child, NavigableString):
            return TextNode(str(child))
        return None

    def _apply_scroll(self, selector: str, offsets: Sequence[float]) -> None:
        x, y = offsets
        try:
            tags = self.soup.select(selector)
        except SelectorSyntaxError as e:
            raise SnapshotError(f"Invalid scroll selector {selector!r}: {e}") from e

        matched = False
        for tag in tags:
            element = self._nodes.get(id(tag))
            if element is not None:
                element.scroll_left, element.scroll_top = x, y
                matched = True
        if not matched:
            raise SnapshotError(f"Scroll selector matched no element: {selector}")


def find_external_resources(document: Document) -> Iterator[ExternalResource]:
    """Iterate over the stylesheets and images a capture of this document would fetch."""
    for element in document.root.iter_elements():
        if is_stylesheet_link(element):
            href = element.get("href")
            if href:
                yield ExternalResource("stylesheet", _join(document.base_url, href), element)
        elif element.tag == "img":
            src = element.get("src")
            if src and not src.startswith("data:"):
                yield ExternalResource("image", _join(document.base_url, src), element)


def is_stylesheet_link(element: ElementNode) -> bool:
    """Check if an element is a ``<link rel="stylesheet">``."""
    if element.tag != "link":
        return False
    rel = (element.get("rel") or "").lower().split()
    return "stylesheet" in rel and "alternate" not in rel


def _attr_value(value) -> str:
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def _join(base: str | None, url: str) -> str:
    # Malformed references stay as written; fetching them fails later
    try:
        return urljoin(base, url) if base else url
    except ValueError:
        return url
