# services/extractor/sanitizer.py
"""
Clean-up of the assembled article container.

``ContentSanitizer.prep_article`` strips presentational noise, forms, share
widgets and non-video embeds, then runs *conditional cleaning*: tables, lists
and divs whose link density, image/paragraph ratio or sheer emptiness say
"boilerplate" are removed.  Running it twice on the same container removes
nothing the second time.
"""

from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag
from loguru import logger

from models.extract_options import ExtractOptions
from services.extractor import dom, patterns
from services.extractor.scoring import HeuristicFlags, get_class_weight
from services.extractor.title import heading_duplicates_title

# Share widgets holding less text than this are dropped, whatever char_threshold says
SHARE_ELEMENT_MAX_CHARS = 500


def _looks_like_url(value: str) -> bool:
    return value.startswith(("http:", "https:", "//", "ftp://", "/", "#"))


class ContentSanitizer:
    """
    Args:
        doc: Document the container's nodes were created with (for ``new_tag``).
        options: Extraction options (video pattern, thresholds, link-density adjustment).
        flags: Heuristics active for the current attempt.
        article_title: Title used to spot headings that merely repeat it.
    """

    def __init__(
        self,
        doc: BeautifulSoup,
        options: ExtractOptions,
        flags: HeuristicFlags,
        article_title: Optional[str] = None,
    ):
        self.doc = doc
        self.options = options
        self.flags = flags
        self.article_title = article_title or ""
        self.video_pattern = options.allowed_video_pattern or patterns.VIDEOS
        # id(table) -> (table, is_data_table)
        self._data_tables: Dict[int, Tuple[Tag, bool]] = {}

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def prep_article(self, container: Tag) -> None:
        self.clean_styles(container)
        self.mark_data_tables(container)
        self.fix_lazy_images(container)

        self.clean_conditionally(container, "form")
        self.clean_conditionally(container, "fieldset")
        for tag in ("object", "embed", "footer", "link", "aside"):
            self.clean(container, tag)

        # Share widgets with little text, searched per top-level child
        for child in dom.element_children(container):
            self.clean_matched_nodes(
                child,
                lambda node, match: bool(patterns.SHARE_ELEMENTS.search(match))
                and len(dom.inner_text(node, normalize=False)) < SHARE_ELEMENT_MAX_CHARS,
            )

        for tag in ("iframe", *patterns.FORM_CONTROL_TAGS):
            self.clean(container, tag)
        self.clean_headers(container)

        self.clean_conditionally(container, "table")
        self.clean_conditionally(container, "ul")
        self.clean_conditionally(container, "div")

        dom.replace_node_tags(self.doc, container.find_all("h1"), "h2")

        dom.remove_nodes(
            container.find_all("p"),
            lambda p: not p.find_all(["img", "embed", "object", "iframe"])
            and not dom.inner_text(p, normalize=False).strip(),
        )

        for br in container.find_all("br"):
            following = dom.next_significant_node(br.next_sibling)
            if isinstance(following, Tag) and following.name == "p":
                br.extract()

        self.collapse_single_cell_tables(container)

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------
    def clean_styles(self, node: Tag) -> None:
        """Drop presentational attributes below *node*; ``<svg>`` subtrees are left alone."""
        if node.name == "svg":
            return
        for name in patterns.PRESENTATIONAL_ATTRIBUTES:
            if name in node.attrs:
                del node[name]
        if node.name in patterns.DEPRECATED_SIZE_ATTRIBUTE_ELEMS:
            for name in ("width", "height"):
                if name in node.attrs:
                    del node[name]
        for child in dom.element_children(node):
            self.clean_styles(child)

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------
    @staticmethod
    def _row_and_column_count(table: Tag) -> Tuple[int, int]:
        rows = columns = 0
        for tr in table.find_all("tr"):
            try:
                rows += int(dom.attr_str(tr, "rowspan") or 1)
            except ValueError:
                rows += 1
            in_row = 0
            for cell in dom.element_children(tr):
                if cell.name not in ("td", "th"):
                    continue
                try:
                    in_row += int(dom.attr_str(cell, "colspan") or 1)
                except ValueError:
                    in_row += 1
            columns = max(columns, in_row)
        return rows, columns

    def _classify_table(self, table: Tag) -> bool:
        role = dom.attr_str(table, "role")
        if role in ("presentation", "none"):
            return False
        if dom.attr_str(table, "datatable") == "0":
            return False
        if dom.attr_str(table, "summary"):
            return True
        caption = table.find("caption")
        if caption is not None and dom.inner_text(caption, normalize=False).strip():
            return True
        if table.find(patterns.DATA_TABLE_DESCENDANTS) is not None:
            logger.debug("Data table because of a data-y descendant")
            return True
        if table.find("table") is not None:
            return False
        rows, columns = self._row_and_column_count(table)
        if rows >= 10 or columns > 4:
            return True
        return rows * columns > 10

    def mark_data_tables(self, root: Tag) -> None:
        for table in root.find_all("table"):
            self._data_tables[id(table)] = (table, self._classify_table(table))

    def is_data_table(self, table: Tag) -> bool:
        entry = self._data_tables.get(id(table))
        return entry is not None and entry[1]

    def collapse_single_cell_tables(self, container: Tag) -> None:
        for table in container.find_all("table"):
            if table.parent is None:
                continue
            tbody = dom.first_element_child(table) if dom.has_single_tag_inside(table, "tbody") else table
            if not dom.has_single_tag_inside(tbody, "tr"):
                continue
            row = dom.first_element_child(tbody)
            if not dom.has_single_tag_inside(row, "td"):
                continue
            cell = dom.first_element_child(row)
            new_name = "p" if all(dom.is_phrasing_content(c) for c in cell.children) else "div"
            cell = dom.set_node_tag(self.doc, cell, new_name)
            table.replace_with(cell.extract())

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------
    def fix_lazy_images(self, root: Tag) -> None:
        """Promote ``data-src``-style attributes to ``src``/``srcset``."""
        for elem in root.find_all(["img", "picture", "figure"]):
            src = dom.attr_str(elem, "src")
            srcset = dom.attr_str(elem, "srcset")
            has_real_src = bool((src and not patterns.B64_DATA_URL.search(src)) or srcset)

            # Tiny base64 placeholders go when another attribute names a real image
            can_remove_placeholder = False
            parts = patterns.B64_DATA_URL.search(src) if src else None
            if parts and parts.group(1) != "image/svg+xml" and len(src) - len(parts.group(0)) < 150:
                can_remove_placeholder = any(
                    name != "src" and patterns.IMAGE_EXTENSIONS.search(dom.attr_str(elem, name))
                    for name in elem.attrs
                )
                if can_remove_placeholder:
                    del elem["src"]

            potential_src = potential_srcset = None
            for name in list(elem.attrs):
                value = dom.attr_str(elem, name)
                lowered = name.lower()
                if not value or lowered in ("src", "srcset"):
                    continue
                if patterns.SRCSET_CANDIDATE.search(value):
                    potential_srcset = potential_srcset or value
                elif patterns.IMAGE_EXTENSIONS.search(value) and " " not in value and _looks_like_url(value):
                    potential_src = potential_src or value
                if ("lazy" in lowered or "load" in lowered) and patterns.IMAGE_EXTENSIONS.search(value):
                    if not potential_src and not potential_srcset and _looks_like_url(value):
                        potential_src = value

            if not has_real_src or can_remove_placeholder:
                if potential_srcset:
                    elem["srcset"] = potential_srcset
                if potential_src and not elem.get("srcset"):
                    elem["src"] = potential_src

            if elem.name == "figure" and not elem.find(["img", "picture"]):
                if potential_src or potential_srcset:
                    img = self.doc.new_tag("img")
                    if potential_srcset:
                        img["srcset"] = potential_srcset
                    if potential_src:
                        img["src"] = potential_src
                    elem.append(img)

    # ------------------------------------------------------------------
    # Plain removal
    # ------------------------------------------------------------------
    def _is_video_embed(self, node: Tag) -> bool:
        if any(self.video_pattern.search(dom.attr_str(node, name)) for name in node.attrs):
            return True
        return node.name == "object" and bool(self.video_pattern.search(node.decode_contents()))

    def clean(self, root: Tag, tag: str) -> None:
        """Remove every ``<tag>`` under *root*; embeds pointing at allowed video hosts stay."""
        is_embed = tag in patterns.EMBED_TAGS
        dom.remove_nodes(
            root.find_all(tag),
            lambda node: not (is_embed and self._is_video_embed(node)),
        )

    def clean_matched_nodes(self, root: Tag, filter_fn) -> None:
        end = dom.get_next_node(root, ignore_self_and_kids=True)
        node = dom.get_next_node(root)
        while node is not None and node is not end:
            if filter_fn(node, dom.class_and_id(node)):
                node = dom.remove_and_get_next(node)
            else:
                node = dom.get_next_node(node)

    def clean_headers(self, root: Tag) -> None:
        def _unwanted(heading: Tag) -> bool:
            negative = get_class_weight(heading, self.flags) < 0
            duplicate = heading_duplicates_title(heading, self.article_title)
            if negative or duplicate:
                logger.debug(f"Removing <{heading.name}> (negative={negative}, duplicate={duplicate})")
            return negative or duplicate

        dom.remove_nodes(root.find_all(["h1", "h2"]), _unwanted)

    # ------------------------------------------------------------------
    # Conditional cleaning
    # ------------------------------------------------------------------
    def _skip_conditional(self, node: Tag) -> bool:
        if node.name == "table" and self.is_data_table(node):
            return True
        if dom.has_ancestor_tag(node, "table", -1, self.is_data_table):
            return True
        if dom.has_ancestor_tag(node, "code"):
            return True
        return any(self.is_data_table(table) for table in node.find_all("table"))

    def _is_image_list(self, node: Tag, li_count: int, img_count: int) -> bool:
        items = dom.element_children(node)
        if li_count == 0 or len(items) != li_count:
            return False
        if not all(item.name == "li" and dom.is_single_image(item) for item in items):
            return False
        return img_count == li_count

    def removal_reasons(self, node: Tag, weight: int) -> List[str]:
        """Why the strict (few-commas) rules would drop *node*; empty when it stays."""
        text_length = len(dom.inner_text(node))
        p_count = len(node.find_all("p"))
        img_count = len(node.find_all("img"))
        li_count = len(node.find_all("li"))
        input_count = len(node.find_all("input"))
        heading_density = dom.get_text_density(node, sorted(patterns.HEADING_TAGS))

        video_embeds = other_embeds = 0
        for embed in node.find_all(list(patterns.EMBED_TAGS)):
            if self._is_video_embed(embed):
                video_embeds += 1
            else:
                other_embeds += 1

        # nodes that are essentially a video player stay
        if video_embeds and not other_embeds and not img_count:
            return []

        is_list = node.name in ("ul", "ol")
        in_figure = dom.has_ancestor_tag(node, "figure")
        link_density = dom.get_link_density(node)
        text_density = dom.get_text_density(node, patterns.TEXTISH_TAGS)
        li_density = dom.get_text_density(node, ["li"])
        adjustment = self.options.link_density_adjustment

        reasons = []
        if not in_figure and img_count > 1 and p_count / img_count < 0.5:
            reasons.append(f"bad p/img ratio (img={img_count}, p={p_count})")
        if not is_list and li_count > 0 and p_count == 0 and li_density > 0.5:
            reasons.append(f"list items outside a list (li={li_count}, density={li_density:.2f})")
        if input_count > p_count // 3:
            reasons.append(f"too many inputs (input={input_count}, p={p_count})")
        if (
            text_length < 25
            and (img_count == 0 or img_count > 2)
            and not in_figure
            and not is_list
            and heading_density < 0.9
            and link_density > 0.2
        ):
            reasons.append(f"short and linky (len={text_length}, links={link_density:.2f})")
        if not is_list and weight < 25 and link_density > 0.2 + adjustment:
            reasons.append(f"low weight and linky (weight={weight}, links={link_density:.2f})")
        if weight >= 25 and link_density > 0.5 + adjustment:
            reasons.append(f"high weight and very linky (weight={weight}, links={link_density:.2f})")
        if (other_embeds == 1 and text_length < 75 and img_count == 0) or other_embeds > 1:
            reasons.append(f"suspicious embeds (embeds={other_embeds}, len={text_length})")
        if img_count == 0 and video_embeds == 0 and text_density < 0.1 and text_length < 100:
            reasons.append(f"low text density (density={text_density:.2f}, len={text_length})")

        if reasons and is_list and self._is_image_list(node, li_count, img_count):
            logger.debug("Keeping list of standalone images")
            return []
        return reasons

    def clean_conditionally(self, root: Tag, tag: str) -> None:
        """Remove ``<tag>`` descendants of *root* that look like boilerplate."""
        if not self.flags.clean_conditionally:
            return

        for node in root.find_all(tag):
            if node.parent is None or self._skip_conditional(node):
                continue
            if not self._is_attached_under(node, root):
                continue

            weight = get_class_weight(node, self.flags)
            if weight < 0:
                logger.debug(f"Removing <{node.name}> with negative weight {weight}")
                node.extract()
                continue

            text = dom.inner_text(node)
            if 0 < len(text) < 50 and (
                patterns.AD_WORDS.search(text) or patterns.LOADING_WORDS.search(text)
            ):
                logger.debug(f"Removing ad/loading placeholder {text!r}")
                node.extract()
                continue

            if dom.get_char_count(node) >= 10:
                continue

            reasons = self.removal_reasons(node, weight)
            if reasons:
                logger.debug(f"Conditionally removing <{node.name}>: {'; '.join(reasons)}")
                node.extract()

    @staticmethod
    def _is_attached_under(node: Tag, root: Tag) -> bool:
        parent = node.parent
        while parent is not None:
            if parent is root:
                return True
            parent = parent.parent
        return False
