# services/extractor/preprocess.py
"""
Document-level clean-up that runs once, before any scoring attempt.

Call order inside ``Readability.parse``:
    unwrap_noscript_images → (JSON-LD read) → remove_scripts → prepare
"""

from bs4 import BeautifulSoup, Tag
from loguru import logger

from services.extractor import dom


# ----------------------------------------------------------------------
# <noscript> / <script>
# ----------------------------------------------------------------------
def _noscript_fragment(noscript: Tag) -> BeautifulSoup:
    """
    Parse the content of a ``<noscript>`` into its own fragment.

    ``html.parser`` keeps noscript children as markup; other builders store
    them as one raw text node, which is parsed here instead.
    """
    if dom.first_element_child(noscript) is not None:
        markup = noscript.decode_contents()
    else:
        markup = dom.inner_text(noscript, normalize=False)
    return BeautifulSoup(markup, "html.parser")


def unwrap_noscript_images(doc: BeautifulSoup) -> None:
    """
    Lazy-loading pages often ship ``<img placeholder><noscript><img real></noscript>``.
    Replace the placeholder (an ``<img>`` or an element that is just an image)
    with the noscript image, keeping placeholder attributes the real image lacks.
    """
    for noscript in doc.find_all("noscript"):
        fragment = _noscript_fragment(noscript)
        if not dom.is_single_image(fragment):
            continue

        previous = dom.previous_element_sibling(noscript)
        if previous is None or not (previous.name == "img" or dom.is_single_image(previous)):
            continue

        new_img = fragment.find("img")
        if new_img is None:
            continue

        placeholder = previous if previous.name == "img" else previous.find("img")
        if placeholder is not None:
            for name, value in placeholder.attrs.items():
                if name in ("src", "srcset"):
                    continue
                if not new_img.has_attr(name) and value:
                    new_img[name] = value

        logger.debug(f"Replacing placeholder <{previous.name}> with noscript image {new_img.get('src')!r}")
        previous.replace_with(new_img.extract())


def remove_scripts(doc: BeautifulSoup) -> None:
    dom.remove_nodes(doc.find_all(["script", "noscript"]))


# ----------------------------------------------------------------------
# <br><br> → <p>
# ----------------------------------------------------------------------
def replace_brs(doc: BeautifulSoup, elem: Tag) -> None:
    """
    Replace runs of two or more ``<br>`` (whitespace between them ignored)
    with a ``<p>`` that takes in the phrasing content that follows, up to the
    next block element or the next ``<br><br>``.
    """
    for br in elem.find_all("br"):
        if br.parent is None:
            continue

        replaced = False
        next_node = br.next_sibling
        while next_node is not None and dom.is_whitespace(next_node):
            following = next_node.next_sibling
            if isinstance(next_node, Tag):
                replaced = True
                next_node.extract()
            next_node = following

        if not replaced:
            continue

        p = doc.new_tag("p")
        br.replace_with(p)

        next_node = p.next_sibling
        while next_node is not None:
            if isinstance(next_node, Tag) and next_node.name == "br":
                after = dom.next_significant_node(next_node.next_sibling)
                if isinstance(after, Tag) and after.name == "br":
                    break
            if not dom.is_phrasing_content(next_node):
                break
            following = next_node.next_sibling
            p.append(next_node)
            next_node = following

        while p.contents and dom.is_whitespace(p.contents[-1]):
            p.contents[-1].extract()

        if p.parent is not None and p.parent.name == "p":
            dom.set_node_tag(doc, p.parent, "div")


# ----------------------------------------------------------------------
# Entry point
# ----------------------------------------------------------------------
def prepare(doc: BeautifulSoup) -> None:
    """Drop ``<style>``, turn ``<br><br>`` runs into paragraphs and ``<font>`` into ``<span>``."""
    dom.remove_nodes((doc.head or doc).find_all("style"))

    root = dom.page_root(doc)
    replace_brs(doc, root)
    dom.replace_node_tags(doc, root.find_all("font"), "span")
