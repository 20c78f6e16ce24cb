# services/extractor/dom.py
"""
Tree helpers shared by every extraction stage.

BeautifulSoup gives us a mutable tree but none of the DOM conveniences the
heuristics lean on (``textContent``, element-only traversal, tag renaming).
The functions below fill that gap.  Two rules hold throughout:

* Nodes are compared by identity (``is``).  ``Tag.__eq__`` compares markup,
  so ``==``, ``in`` and ``list.index`` would confuse two identical ``<p>``.
* Traversal that mutates the tree always asks for the successor *before*
  touching the current node (see ``get_next_node`` / ``remove_and_get_next``).
"""

from __future__ import annotations

from typing import Callable, Iterable, List, Optional

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString
from loguru import logger

from services.extractor import patterns

# ----------------------------------------------------------------------
# Attributes & text
# ----------------------------------------------------------------------


def attr_str(node: Tag, name: str) -> str:
    """Attribute value as a plain string (multi-valued attributes joined by spaces)."""
    value = node.get(name)
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return str(value)


def class_and_id(node: Tag) -> str:
    return f"{attr_str(node, 'class')} {attr_str(node, 'id')}"


def _is_text(node) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def inner_text(node, normalize: bool = True) -> str:
    """
    Text content of *node* (comments and doctypes excluded).

    With *normalize* the result is stripped and runs of whitespace are
    collapsed to a single space.
    """
    if isinstance(node, NavigableString):
        text = str(node) if _is_text(node) else ""
    else:
        text = "".join(str(s) for s in node.descendants if _is_text(s))
    if not normalize:
        return text
    return patterns.NORMALIZE.sub(" ", text.strip())


def text_content(node) -> str:
    """Published text of *node*: every whitespace run, single newlines included, becomes one space."""
    return patterns.WHITESPACE_RUN.sub(" ", inner_text(node, normalize=False)).strip()


def get_char_count(node: Tag, sep: Optional[str] = None) -> int:
    """Occurrences of *sep* in the node text; any script's comma by default."""
    text = inner_text(node)
    if sep is None:
        return len(patterns.COMMAS.split(text)) - 1
    return len(text.split(sep)) - 1


def get_inner_html(node: Tag) -> str:
    return node.decode_contents()


def unescape_html_entities(text: Optional[str]) -> Optional[str]:
    """Decode the handful of entities that survive in metadata strings."""
    if not text:
        return text
    return (
        text.replace("&lt;", "<")
        .replace("&gt;", ">")
        .replace("&quot;", '"')
        .replace("&apos;", "'")
        .replace("&amp;", "&")
    )


def text_similarity(text_a: str, text_b: str) -> float:
    """
    Share of *text_b*'s tokens (by character length) that also occur in
    *text_a*; 1.0 means every token of *text_b* is present.
    """
    tokens_a = [t for t in patterns.TOKENIZE.split(text_a.lower()) if t]
    tokens_b = [t for t in patterns.TOKENIZE.split(text_b.lower()) if t]
    if not tokens_a or not tokens_b:
        return 0.0
    known = set(tokens_a)
    uniq_b = [t for t in tokens_b if t not in known]
    distance = len(" ".join(uniq_b)) / len(" ".join(tokens_b))
    return 1 - distance


# ----------------------------------------------------------------------
# Element traversal
# ----------------------------------------------------------------------


def element_children(node: Tag) -> List[Tag]:
    return [child for child in node.children if isinstance(child, Tag)]


def first_element_child(node: Tag) -> Optional[Tag]:
    for child in node.children:
        if isinstance(child, Tag):
            return child
    return None


def next_element_sibling(node) -> Optional[Tag]:
    sibling = node.next_sibling
    while sibling is not None and not isinstance(sibling, Tag):
        sibling = sibling.next_sibling
    return sibling


def previous_element_sibling(node) -> Optional[Tag]:
    sibling = node.previous_sibling
    while sibling is not None and not isinstance(sibling, Tag):
        sibling = sibling.previous_sibling
    return sibling


def next_significant_node(node):
    """*node* or the first following sibling that is not whitespace-only text."""
    while node is not None and not isinstance(node, Tag) and not str(node).strip():
        node = node.next_sibling
    return node


def get_next_node(node: Tag, ignore_self_and_kids: bool = False) -> Optional[Tag]:
    """
    Depth-first, pre-order successor of *node* over elements only.

    With *ignore_self_and_kids* the subtree of *node* is skipped, which is
    what callers want right before they remove or replace *node*.
    """
    if not ignore_self_and_kids:
        child = first_element_child(node)
        if child is not None:
            return child
    sibling = next_element_sibling(node)
    if sibling is not None:
        return sibling
    node = node.parent
    while node is not None:
        sibling = next_element_sibling(node)
        if sibling is not None:
            return sibling
        node = node.parent
    return None


def remove_and_get_next(node: Tag) -> Optional[Tag]:
    next_node = get_next_node(node, ignore_self_and_kids=True)
    node.extract()
    return next_node


def get_node_ancestors(node: Tag, max_depth: int = 0) -> List[Tag]:
    """Parents of *node*, nearest first; *max_depth* 0 means no limit."""
    ancestors = []
    parent = node.parent
    while parent is not None and not isinstance(parent, BeautifulSoup):
        ancestors.append(parent)
        if max_depth and len(ancestors) == max_depth:
            break
        parent = parent.parent
    return ancestors


def has_ancestor_tag(
    node: Tag,
    tag_name: str,
    max_depth: int = 3,
    filter_fn: Optional[Callable[[Tag], bool]] = None,
) -> bool:
    """True when an ancestor within *max_depth* levels is a *tag_name* (negative depth = unlimited)."""
    depth = 0
    while node.parent is not None:
        if 0 < max_depth < depth:
            return False
        parent = node.parent
        if parent.name == tag_name and (filter_fn is None or filter_fn(parent)):
            return True
        node = parent
        depth += 1
    return False


def remove_nodes(nodes: Iterable[Tag], filter_fn: Optional[Callable[[Tag], bool]] = None) -> None:
    """Detach every node of *nodes* (optionally only those passing *filter_fn*), last first."""
    for node in reversed(list(nodes)):
        if node.parent is None:
            continue
        if filter_fn is None or filter_fn(node):
            node.extract()


# ----------------------------------------------------------------------
# Shape predicates
# ----------------------------------------------------------------------


def is_whitespace(node) -> bool:
    if isinstance(node, Tag):
        return node.name == "br"
    return not str(node).strip()


def is_phrasing_content(node) -> bool:
    """Inline content: text, phrasing tags, or a/del/ins made only of phrasing content."""
    if not isinstance(node, Tag):
        return True
    if node.name in patterns.PHRASING_ELEMS:
        return True
    return node.name in patterns.CONDITIONAL_PHRASING_ELEMS and all(
        is_phrasing_content(child) for child in node.children
    )


def has_single_tag_inside(node: Tag, tag_name: str) -> bool:
    children = element_children(node)
    if len(children) != 1 or children[0].name != tag_name:
        return False
    return not any(
        _is_text(child) and str(child).strip() for child in node.children
    )


def has_child_block_element(node: Tag) -> bool:
    return any(
        child.name in patterns.DIV_TO_P_ELEMS or has_child_block_element(child)
        for child in element_children(node)
    )


def is_element_without_content(node: Tag) -> bool:
    """No text, and nothing inside but ``<br>``/``<hr>`` or equally empty containers."""
    if inner_text(node, normalize=False).strip():
        return False
    for child in element_children(node):
        if child.name in ("br", "hr"):
            continue
        if child.name in patterns.EMPTY_CANDIDATE_TAGS or child.name in ("p", "span"):
            if is_element_without_content(child):
                continue
        return False
    return True


def is_single_image(node: Tag) -> bool:
    while node is not None:
        if node.name == "img":
            return True
        children = element_children(node)
        if len(children) != 1 or inner_text(node, normalize=False).strip():
            return False
        node = children[0]
    return False


def is_probably_visible(node: Tag) -> bool:
    style = attr_str(node, "style")
    if style and (
        patterns.INLINE_DISPLAY_NONE.search(style)
        or patterns.INLINE_VISIBILITY_HIDDEN.search(style)
    ):
        return False
    if node.has_attr("hidden"):
        return False
    if attr_str(node, "aria-hidden") == "true":
        return "fallback-image" in attr_str(node, "class")
    return True


# ----------------------------------------------------------------------
# Density measures
# ----------------------------------------------------------------------


def get_link_density(node: Tag) -> float:
    """Anchor text length over total text length; in-page ``#hash`` links count 30%."""
    text_length = len(inner_text(node))
    if text_length == 0:
        return 0.0
    link_length = 0.0
    for link in node.find_all("a"):
        coefficient = 0.3 if patterns.HASH_URL.search(attr_str(link, "href")) else 1.0
        link_length += len(inner_text(link)) * coefficient
    return link_length / text_length


def get_text_density(node: Tag, tags: List[str]) -> float:
    """Text held by descendants named in *tags* over the node's own text."""
    text_length = len(inner_text(node))
    if text_length == 0:
        return 0.0
    children_length = sum(len(inner_text(child)) for child in node.find_all(tags))
    return children_length / text_length


# ----------------------------------------------------------------------
# Mutation
# ----------------------------------------------------------------------


def set_node_tag(doc: BeautifulSoup, node: Tag, tag_name: str, scores=None) -> Tag:
    """
    Replace *node* with a ``<tag_name>`` carrying the same children and
    attributes and return the replacement.

    Attribute names a DOM would reject are dropped one at a time.  When a
    ``ScoreTable`` is passed, the node's score moves to the replacement.
    """
    replacement = doc.new_tag(tag_name)
    for name, value in node.attrs.items():
        if not patterns.VALID_ATTRIBUTE_NAME.match(name):
            logger.debug(f"Dropping attribute {name!r} while retagging <{node.name}> to <{tag_name}>")
            continue
        replacement[name] = list(value) if isinstance(value, list) else value
    for child in list(node.contents):
        replacement.append(child)
    if scores is not None:
        scores.transfer(node, replacement)
    if node.parent is not None:
        node.replace_with(replacement)
    return replacement


def replace_node_tags(doc: BeautifulSoup, nodes: Iterable[Tag], tag_name: str) -> None:
    for node in list(nodes):
        set_node_tag(doc, node, tag_name)


def page_root(doc: BeautifulSoup) -> Tag:
    """``<body>``, else ``<html>``, else the document itself (fragments)."""
    return doc.body or doc.html or doc
