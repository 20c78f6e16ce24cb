# services/extractor/finalizer.py
"""
Turn the winning attempt's container into the published article tree:
page wrapper, text direction, absolute URIs, flattened wrappers and
stripped classes.
"""

from typing import Iterable, Optional, Tuple
from urllib.parse import urljoin, urlparse

from bs4 import BeautifulSoup, NavigableString, Tag
from loguru import logger

from services.extractor import dom, patterns
from services.extractor.grabber import Attempt

MEDIA_URI_ATTRIBUTES = ("src", "poster", "srcset")


# ----------------------------------------------------------------------
# Wrapper & direction
# ----------------------------------------------------------------------
def wrap_article(doc: BeautifulSoup, attempt: Attempt) -> Tuple[Tag, Optional[str]]:
    """
    Move the attempt's content into ``<div><div id="readability-page-1" class="page">``.

    Returns:
        tuple: The outer ``<div>`` and the text direction (``None`` if unknown).
    """
    outer = doc.new_tag("div")
    if attempt.synthesized:
        # the wrapper built around the whole page becomes the page div itself
        page = attempt.container.extract()
        page["id"] = patterns.PAGE_ID
        page["class"] = "page"
    else:
        page = doc.new_tag("div", attrs={"id": patterns.PAGE_ID, "class": "page"})
        for child in list(attempt.container.contents):
            page.append(child)
    outer.append(page)

    text_dir = attempt.dir
    if not text_dir:
        for node in (attempt.container, doc.body, doc.html):
            if node is not None and dom.attr_str(node, "dir"):
                text_dir = dom.attr_str(node, "dir")
                break
    if not text_dir:
        logger.debug("Could not determine text direction")
    return outer, text_dir


# ----------------------------------------------------------------------
# URIs
# ----------------------------------------------------------------------
def resolve_base_uri(doc: BeautifulSoup, document_uri: Optional[str]) -> Optional[str]:
    """The document URL joined with ``<base href>`` when the page declares one."""
    base = doc.find("base", href=True)
    if base is None:
        return document_uri
    href = dom.attr_str(base, "href").strip()
    if document_uri:
        return urljoin(document_uri, href)
    return href if urlparse(href).scheme else document_uri


class UriResolver:
    def __init__(self, base_uri: Optional[str], document_uri: Optional[str]):
        self.base_uri = base_uri
        self.document_uri = document_uri

    def to_absolute(self, uri: str) -> str:
        if not uri or not self.base_uri:
            return uri
        # in-page anchors stay relative when there is no <base>
        if self.base_uri == self.document_uri and uri.startswith("#"):
            return uri
        if uri.startswith("//"):
            uri = f"{urlparse(self.base_uri).scheme}:{uri}"
        try:
            return urljoin(self.base_uri, uri)
        except ValueError as exc:
            logger.warning(f"Could not resolve URI {uri!r} against {self.base_uri!r}: {exc}")
            return uri

    def rewrite_srcset(self, srcset: str) -> str:
        return patterns.SRCSET_URL.sub(
            lambda m: self.to_absolute(m.group(1)) + (m.group(2) or "") + m.group(3),
            srcset,
        )


def _unwrap_javascript_link(doc: BeautifulSoup, link: Tag) -> None:
    if len(link.contents) == 1 and isinstance(link.contents[0], NavigableString):
        link.replace_with(NavigableString(dom.inner_text(link, normalize=False)))
        return
    span = doc.new_tag("span")
    for child in list(link.contents):
        span.append(child)
    link.replace_with(span)


def fix_relative_uris(
    doc: BeautifulSoup,
    container: Tag,
    base_uri: Optional[str],
    document_uri: Optional[str] = None,
) -> None:
    """Make ``href``/``src``/``poster``/``srcset`` absolute; neutralise ``javascript:`` links."""
    resolver = UriResolver(base_uri, document_uri)

    for link in container.find_all("a"):
        href = dom.attr_str(link, "href")
        if not href:
            continue
        if href.startswith("javascript:"):
            _unwrap_javascript_link(doc, link)
        else:
            link["href"] = resolver.to_absolute(href)

    for medium in container.find_all(patterns.MEDIA_URI_TAGS):
        for name in MEDIA_URI_ATTRIBUTES:
            value = dom.attr_str(medium, name)
            if not value:
                continue
            if name == "srcset":
                medium[name] = resolver.rewrite_srcset(value)
            else:
                medium[name] = resolver.to_absolute(value)


# ----------------------------------------------------------------------
# Structure & classes
# ----------------------------------------------------------------------
def simplify_nested_elements(container: Tag) -> None:
    """Drop empty div/section wrappers and collapse single-child ones onto the child."""
    node = container
    while node is not None:
        if (
            node.parent is not None
            and node.name in ("div", "section")
            and not dom.attr_str(node, "id").startswith("readability")
        ):
            if dom.is_element_without_content(node):
                node = dom.remove_and_get_next(node)
                continue
            if dom.has_single_tag_inside(node, "div") or dom.has_single_tag_inside(node, "section"):
                child = dom.first_element_child(node)
                for name, value in node.attrs.items():
                    child[name] = list(value) if isinstance(value, list) else value
                node.replace_with(child.extract())
                node = child
                continue
        node = dom.get_next_node(node)


def clean_classes(container: Tag, preserved: Iterable[str]) -> None:
    preserved = set(preserved)
    for node in [container, *container.find_all(True)]:
        kept = [name for name in dom.attr_str(node, "class").split() if name in preserved]
        if kept:
            node["class"] = kept
        elif "class" in node.attrs:
            del node["class"]
