"""Tests for the recursive tree serializer."""

import re

import pytest

from dom_snapshot.capture import CaptureCache, TreeSerializer
from dom_snapshot.models import Document, ScrollPosition, TextNode

from fakes import FakeEnvironment, FakeFetcher, el

LIGHT_BASELINE = "<style>:root{background-color:#ffffff;color:#000000}</style>"
DARK_BASELINE = "<style>:root{background-color:#121212;color:#e8e8e8}</style>"


async def serialize(root, fetcher=None, environment=None, window_scroll=None, base_url=None):
    document = Document(root=root, window_scroll=window_scroll or ScrollPosition(), base_url=base_url)
    serializer = TreeSerializer(document, fetcher or FakeFetcher(), environment or FakeEnvironment())
    cache = CaptureCache()
    return await serializer.serialize(root, cache), cache


class TestTextNodes:
    """Text is emitted verbatim."""

    @pytest.mark.asyncio
    async def test_text_nodes_concatenate_unmodified(self):
        texts = ["a < b", " & ", '"quoted"']
        document = Document(root=el("html"))
        serializer = TreeSerializer(document, FakeFetcher(), FakeEnvironment())
        cache = CaptureCache()

        parts = [await serializer.serialize(TextNode(t), cache) for t in texts]

        assert "".join(parts) == "".join(texts)

    @pytest.mark.asyncio
    async def test_text_inside_elements_is_not_escaped(self):
        root = el("html", {}, el("body", {}, "1 < 2 && 3 > 2"))
        markup, _ = await serialize(root)
        assert "<body>1 < 2 && 3 > 2</body>" in markup


class TestElements:
    """Generic element handling."""

    @pytest.mark.asyncio
    async def test_simple_document(self):
        root = el("html", {}, el("head"), el("body", {}, el("div", {"style": "color:red"}, "Hi")))
        markup, cache = await serialize(root)

        assert markup == (
            '<html style="color-scheme:light">'
            f"<head>{LIGHT_BASELINE}</head>"
            '<body><div style="color:red">Hi</div></body>'
            "</html>"
        )
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_no_space_without_attributes(self):
        root = el("html", {}, el("body", {}, el("p", {}, "x")))
        markup, _ = await serialize(root)
        assert "<body><p>x</p></body>" in markup

    @pytest.mark.asyncio
    async def test_attribute_order_preserved(self):
        attrs = {"data-z": "1", "id": "main", "class": "a b", "aria-label": "Main"}
        root = el("html", {}, el("body", {}, el("section", attrs)))
        markup, _ = await serialize(root)
        assert '<section data-z="1" id="main" class="a b" aria-label="Main"></section>' in markup

    @pytest.mark.asyncio
    async def test_event_handlers_dropped(self):
        attrs = {"id": "b", "onclick": "steal()", "ONMOUSEOVER": "x()", "type": "button"}
        root = el("html", {"onload": "boot()"}, el("body", {}, el("button", attrs, "Go")))
        markup, _ = await serialize(root)

        assert '<button id="b" type="button">Go</button>' in markup
        assert not re.search(r"\son\w+=", markup, re.IGNORECASE)

    @pytest.mark.asyncio
    async def test_double_quotes_backslash_escaped(self):
        root = el("html", {}, el("body", {}, el("div", {"title": 'say "hi"'})))
        markup, _ = await serialize(root)
        assert '<div title="say \\"hi\\""></div>' in markup

    @pytest.mark.asyncio
    @pytest.mark.parametrize("tag", ["script", "noscript", "link"])
    async def test_suppressed_tags(self, tag):
        attrs = {"rel": "icon", "href": "/favicon.ico"} if tag == "link" else {}
        root = el("html", {}, el("body", {}, "a", el(tag, attrs, "payload"), "b"))
        markup, cache = await serialize(root)

        assert "<body>ab</body>" in markup
        assert cache.stats.elements_dropped == 1

    @pytest.mark.asyncio
    async def test_tags_balanced(self):
        root = el(
            "html", {},
            el("head", {}, el("title", {}, "T")),
            el("body", {}, el("div", {}, el("ul", {}, el("li", {}, "1"), el("li", {}, el("b", {}, "2")))), el("p")),
        )
        markup, _ = await serialize(root)

        opened = re.findall(r"<([a-z]+)[\s>]", markup)
        closed = re.findall(r"</([a-z]+)>", markup)
        assert sorted(opened) == sorted(closed)
        # Closing order mirrors nesting
        stack = []
        for match in re.finditer(r"<(/?)([a-z]+)[^>]*>", markup):
            closing, tag = match.groups()
            if closing:
                assert stack.pop() == tag
            else:
                stack.append(tag)
        assert stack == []

    @pytest.mark.asyncio
    async def test_br_has_no_end_tag(self):
        root = el("html", {}, el("body", {}, "a", el("br"), el("hr", {"class": "rule"}), el("p", {}, "b")))
        markup, _ = await serialize(root)
        assert '<body>a<br><hr class="rule"></hr><p>b</p></body>' in markup


class TestColorScheme:
    """Colour-scheme annotation on the root element."""

    @pytest.mark.asyncio
    async def test_appended_to_existing_style(self):
        root = el("html", {"lang": "en", "style": "font-size:14px"}, el("body"))
        markup, _ = await serialize(root, environment=FakeEnvironment(dark=True))
        assert markup.startswith('<html lang="en" style="font-size:14px;color-scheme:dark">')

    @pytest.mark.asyncio
    async def test_declared_value_wins(self):
        root = el("html", {"style": "color-scheme: light dark"}, el("body"))
        markup, _ = await serialize(root, environment=FakeEnvironment(dark=True))
        assert markup.startswith('<html style="color-scheme: light dark;color-scheme:light dark">')

    @pytest.mark.asyncio
    async def test_synthesized_after_other_attributes(self):
        root = el("html", {"lang": "en"}, el("body"))
        markup, _ = await serialize(root)
        assert markup.startswith('<html lang="en" style="color-scheme:light">')

    @pytest.mark.asyncio
    async def test_only_root_annotated(self):
        root = el("html", {}, el("body", {}, el("div", {"style": "color:red"})))
        markup, _ = await serialize(root, environment=FakeEnvironment(dark=True))
        assert '<div style="color:red"></div>' in markup

    @pytest.mark.asyncio
    async def test_dark_head_baseline(self):
        root = el("html", {}, el("head", {}, el("title", {}, "T")), el("body"))
        markup, _ = await serialize(root, environment=FakeEnvironment(dark=True))
        assert f"<head>{DARK_BASELINE}<title>T</title></head>" in markup


class TestResources:
    """Stylesheet, image and inline style handling."""

    @pytest.mark.asyncio
    async def test_stylesheet_inlined_in_place(self):
        fetcher = FakeFetcher(texts={"https://site.test/a.css": "body > p { color: red }"})
        root = el("html", {}, el("head", {}, el("link", {"rel": "stylesheet", "href": "/a.css"})), el("body"))
        markup, cache = await serialize(root, fetcher=fetcher, base_url="https://site.test/page")

        assert f"<head>{LIGHT_BASELINE}<style>body &gt; p {{ color: red }}</style></head>" in markup
        assert cache.stats.stylesheets_inlined == 1

    @pytest.mark.asyncio
    async def test_failed_stylesheet_leaves_siblings(self):
        root = el(
            "html", {},
            el("head", {}, el("meta", {"charset": "utf-8"}), el("link", {"rel": "stylesheet", "href": "x.css"}), el("title", {}, "T")),
            el("body"),
        )
        markup, cache = await serialize(root)

        assert f'<head>{LIGHT_BASELINE}<meta charset="utf-8"></meta><title>T</title></head>' in markup
        assert cache.stats.stylesheets_failed == 1

    @pytest.mark.asyncio
    async def test_image_src_inlined(self):
        fetcher = FakeFetcher(binaries={"http://x/y.png": (b"\x89PNG", "image/png")})
        root = el("html", {}, el("body", {}, el("img", {"alt": "y", "src": "http://x/y.png"})))
        markup, _ = await serialize(root, fetcher=fetcher)
        assert '<img alt="y" src="data:image/png;base64,iVBORw=="></img>' in markup

    @pytest.mark.asyncio
    async def test_failed_image_keeps_url(self):
        root = el("html", {}, el("body", {}, el("img", {"src": "http://x/y.png"})))
        markup, _ = await serialize(root)
        assert '<img src="http://x/y.png"></img>' in markup

    @pytest.mark.asyncio
    async def test_inline_style_frozen(self):
        css = "@media(min-width: 500px){p{color:red}}@media (max-width: 499px) {p{color:blue}}"
        environment = FakeEnvironment(matching={"min-width: 500px"})
        root = el("html", {}, el("head", {}, el("style", {}, css)), el("body"))
        markup, cache = await serialize(root, environment=environment)

        assert "<style>@media all {p{color:red}}@media not all {p{color:blue}}</style>" in markup
        assert cache.stats.media_queries_frozen == 2

    @pytest.mark.asyncio
    async def test_children_keep_document_order(self):
        fetcher = FakeFetcher(
            texts={"slow.css": "a{}", "fast.css": "b{}"},
            delays={"slow.css": 0.05},
        )
        root = el(
            "html", {},
            el("head", {},
               el("link", {"rel": "stylesheet", "href": "slow.css"}),
               el("link", {"rel": "stylesheet", "href": "fast.css"})),
            el("body"),
        )
        markup, _ = await serialize(root, fetcher=fetcher)

        assert f"<head>{LIGHT_BASELINE}<style>a{{}}</style><style>b{{}}</style></head>" in markup
        assert fetcher.max_in_flight == 2


class TestScrollRecording:
    """Scroll positions recorded into the capture cache."""

    @pytest.mark.asyncio
    async def test_non_zero_offsets_recorded(self):
        panel = el("div", {"id": "panel"}, scroll=(10, 0))
        still = el("div", {"id": "still"})
        root = el("html", {}, el("body", {}, panel, still))
        _, cache = await serialize(root)

        assert cache.get(panel) == ScrollPosition(10, 0)
        assert still not in cache

    @pytest.mark.asyncio
    async def test_root_uses_window_scroll(self):
        root = el("html", {}, el("body"), scroll=(99, 99))
        _, cache = await serialize(root, window_scroll=ScrollPosition(0, 300))
        assert cache.get(root) == ScrollPosition(0, 300)

    @pytest.mark.asyncio
    async def test_suppressed_elements_not_recorded(self):
        hidden = el("noscript", {}, scroll=(0, 5))
        root = el("html", {}, el("body", {}, hidden))
        _, cache = await serialize(root)
        assert hidden not in cache
