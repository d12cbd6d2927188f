"""Recursive tree-to-markup serializer."""

import asyncio
import logging
import re

from ..analyzer import is_stylesheet_link
from ..config import ThemeConfig
from ..environment import EnvironmentService
from ..models import ColorScheme, Document, ElementNode, Node, TextNode
from ..network import ResourceFetcher
from .inliners import ImageInliner, StylesheetInliner
from .media_queries import MediaQueryFreezer
from .scroll import CaptureCache

logger = logging.getLogger(__name__)

# Elements whose behaviour cannot survive in a static snapshot
SUPPRESSED_TAGS = frozenset({"script", "noscript", "link"})

EVENT_HANDLER_PREFIX = "on"

# HTML parsers read a stray </br> as a second <br>; other void end tags are ignored
UNCLOSED_TAGS = frozenset({"br"})

_COLOR_SCHEME_DECL = re.compile(r"(?:^|;)\s*color-scheme\s*:\s*([^;]+)", re.IGNORECASE)


class TreeSerializer:
    """Serialize a document tree into static snapshot markup.

    Children are serialized concurrently so resource fetches in sibling
    subtrees overlap, but always joined in document order.
    """

    def __init__(
        self,
        document: Document,
        fetcher: ResourceFetcher,
        environment: EnvironmentService,
        theme: ThemeConfig | None = None,
    ):
        self.document = document
        self.environment = environment
        self.theme = theme or ThemeConfig()
        self.freezer = MediaQueryFreezer(environment)
        self.stylesheets = StylesheetInliner(fetcher, self.freezer)
        self.images = ImageInliner(fetcher)

    async def serialize(self, node: Node, cache: CaptureCache) -> str:
        """Serialize a node and its subtree."""
        if isinstance(node, TextNode):
            return node.text
        return await self._serialize_element(node, cache)

    async def _serialize_element(self, element: ElementNode, cache: CaptureCache) -> str:
        tag = element.tag
        base_url = self.document.base_url

        if is_stylesheet_link(element):
            markup = await self.stylesheets.inline(element, base_url, cache.stats)
            if not markup:
                cache.mark_dropped(element)
            return markup

        if tag in SUPPRESSED_TAGS:
            cache.mark_dropped(element)
            return ""

        is_root = element is self.document.root
        cache.record(element, self.document.window_scroll if is_root else element.scroll)

        pending_scheme = self._color_scheme(element) if is_root else None

        attributes = []
        for name, value in element.attributes.items():
            if name.lower().startswith(EVENT_HANDLER_PREFIX):
                continue
            if name.lower() == "style" and pending_scheme:
                value = f"{value};color-scheme:{pending_scheme}"
                pending_scheme = None
            if tag == "img" and name.lower() == "src":
                value = await self.images.inline(value, base_url, cache.stats)
            attributes.append(f'{name}="{_escape_quotes(value)}"')

        if pending_scheme:
            attributes.append(f'style="color-scheme:{pending_scheme}"')

        children = await asyncio.gather(
            *(self.serialize(child, cache) for child in element.children)
        )
        content = "".join(children)

        if tag == "head":
            content = self._baseline_style() + content
        elif tag == "style":
            content, frozen = self.freezer.freeze_counted(content)
            cache.stats.media_queries_frozen += frozen

        attrs = f" {' '.join(attributes)}" if attributes else ""
        if tag in UNCLOSED_TAGS and not content:
            return f"<{tag}{attrs}>"
        return f"<{tag}{attrs}>{content}</{tag}>"

    def _color_scheme(self, element: ElementNode) -> str:
        """Declared ``color-scheme`` of the root, else the environment's preference."""
        style = element.get("style") or ""
        if match := _COLOR_SCHEME_DECL.search(style):
            return match.group(1).strip()
        return self._preferred_scheme().value

    def _preferred_scheme(self) -> ColorScheme:
        return ColorScheme.DARK if self.environment.prefers_dark() else ColorScheme.LIGHT

    def _baseline_style(self) -> str:
        """Background/foreground pair applied before any inlined stylesheet parses."""
        if self._preferred_scheme() is ColorScheme.DARK:
            background, foreground = self.theme.dark_background, self.theme.dark_foreground
        else:
            background, foreground = self.theme.light_background, self.theme.light_foreground
        return f"<style>:root{{background-color:{background};color:{foreground}}}</style>"


def _escape_quotes(value: str) -> str:
    return value.replace('"', '\\"')
