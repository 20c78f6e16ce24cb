# services/extractor/grabber.py
"""
Candidate scoring, top-candidate selection and sibling collection.

``ArticleGrabber.grab`` runs up to four attempts, each on a fresh deep copy
of the preprocessed page and each with one more heuristic switched off
(see ``ATTEMPT_FLAGS``).  The first attempt whose cleaned text reaches
``char_threshold`` wins; otherwise the longest non-empty attempt is returned.
"""

import copy
from dataclasses import dataclass
from typing import List, Optional, Tuple

from bs4 import BeautifulSoup, Tag
from loguru import logger

from models.extract_options import ExtractOptions
from services.extractor import dom, patterns
from services.extractor.sanitizer import ContentSanitizer
from services.extractor.scoring import ATTEMPT_FLAGS, CandidateList, HeuristicFlags, ScoreTable
from services.extractor.title import heading_duplicates_title

# Alternative candidates needed before their common ancestor is promoted
MINIMUM_TOPCANDIDATES = 3


@dataclass
class Attempt:
    """Outcome of one scoring pass."""
    container: Tag
    text_length: int
    flags: HeuristicFlags
    byline: Optional[str] = None
    dir: Optional[str] = None
    synthesized: bool = False


class ArticleGrabber:
    def __init__(self, doc: BeautifulSoup, options: ExtractOptions, article_title: Optional[str] = None):
        self.doc = doc
        self.options = options
        self.article_title = article_title or ""

    # ------------------------------------------------------------------
    # Attempt loop
    # ------------------------------------------------------------------
    def grab(self, page: Optional[Tag] = None) -> Optional[Attempt]:
        """
        Run the attempts against *page* (default: the document's page root).

        Returns:
            Attempt | None: The accepted attempt, the longest non-empty
            fallback, or ``None`` when no attempt produced any text.
        """
        page = page if page is not None else dom.page_root(self.doc)
        attempts: List[Attempt] = []

        for index, flags in enumerate(ATTEMPT_FLAGS, start=1):
            attempt = self._run_attempt(page, flags)
            if attempt.text_length >= self.options.char_threshold:
                logger.info(f"Attempt #{index} ({flags.describe()}) succeeded with {attempt.text_length} chars")
                return attempt
            logger.info(
                f"Attempt #{index} ({flags.describe()}) produced {attempt.text_length} chars "
                f"(threshold {self.options.char_threshold})"
            )
            attempts.append(attempt)

        best = max(attempts, key=lambda a: a.text_length)
        if best.text_length > 0:
            logger.info(f"Falling back to the longest attempt ({best.text_length} chars)")
            return best
        logger.info("No attempt produced any text")
        return None

    def _run_attempt(self, page: Tag, flags: HeuristicFlags) -> Attempt:
        root = copy.copy(page)
        if root.name != "body":
            # html.parser adds no <body> of its own, so the walk may start above <head>
            for head in root.find_all("head", recursive=False):
                head.extract()
        scores = ScoreTable(flags)

        elements_to_score, byline = self._walk(root, flags, scores)
        top_candidates = self._score_elements(elements_to_score, scores)
        top, synthesized = self._select_top_candidate(root, top_candidates, scores)
        text_dir = self._text_direction(top)

        if synthesized:
            container = top
        else:
            container = self._collect_siblings(top, scores)

        ContentSanitizer(self.doc, self.options, flags, self.article_title).prep_article(container)
        text_length = len(dom.inner_text(container))
        return Attempt(container, text_length, flags, byline=byline, dir=text_dir, synthesized=synthesized)

    # ------------------------------------------------------------------
    # Node walk
    # ------------------------------------------------------------------
    @staticmethod
    def _is_valid_byline(node: Tag, match_string: str) -> bool:
        is_byline = (
            dom.attr_str(node, "rel") == "author"
            or "author" in dom.attr_str(node, "itemprop")
            or patterns.BYLINE.search(match_string)
        )
        if not is_byline:
            return False
        length = len(dom.inner_text(node, normalize=False).strip())
        return 0 < length <= 100

    @staticmethod
    def _byline_text(node: Tag) -> str:
        for candidate in node.find_all(lambda t: dom.attr_str(t, "itemprop") == "name"):
            text = dom.inner_text(candidate)
            if text:
                return text
        return dom.inner_text(node)

    def _is_unlikely_candidate(self, node: Tag, match_string: str) -> bool:
        return (
            bool(patterns.UNLIKELY_CANDIDATES.search(match_string))
            and not patterns.OK_MAYBE_ITS_A_CANDIDATE.search(match_string)
            and node.name not in ("body", "a")
            and not dom.has_ancestor_tag(node, "table")
            and not dom.has_ancestor_tag(node, "code")
        )

    def _wrap_phrasing_children(self, div: Tag) -> None:
        """Put runs of inline children of *div* into ``<p>`` wrappers."""

        def _finish(p: Tag) -> None:
            while p.contents and dom.is_whitespace(p.contents[-1]):
                p.contents[-1].extract()
            if not p.contents:
                p.extract()

        p = None
        child = div.contents[0] if div.contents else None
        while child is not None:
            next_sibling = child.next_sibling
            if dom.is_phrasing_content(child):
                if p is None and not dom.is_whitespace(child):
                    p = self.doc.new_tag("p")
                    child.insert_before(p)
                if p is not None:
                    p.append(child)
            elif p is not None:
                _finish(p)
                p = None
            child = next_sibling
        if p is not None:
            _finish(p)

    def _walk(self, root: Tag, flags: HeuristicFlags, scores: ScoreTable) -> Tuple[List[Tag], Optional[str]]:
        """
        Depth-first pass over *root* that removes junk, restructures divs
        and collects the elements worth scoring.
        """
        elements_to_score: List[Tag] = []
        byline = None
        should_remove_title_header = True

        node = dom.first_element_child(root)
        while node is not None:
            match_string = dom.class_and_id(node)

            if not dom.is_probably_visible(node):
                logger.debug(f"Removing hidden node {match_string.strip()!r}")
                node = dom.remove_and_get_next(node)
                continue

            if dom.attr_str(node, "aria-modal") == "true" and dom.attr_str(node, "role") == "dialog":
                logger.debug(f"Removing modal dialog {match_string.strip()!r}")
                node = dom.remove_and_get_next(node)
                continue

            if byline is None and self._is_valid_byline(node, match_string):
                byline = self._byline_text(node)
                logger.debug(f"Found byline {byline!r}")
                node = dom.remove_and_get_next(node)
                continue

            if should_remove_title_header and heading_duplicates_title(node, self.article_title):
                logger.debug(f"Removing heading that repeats the title: {dom.inner_text(node)!r}")
                should_remove_title_header = False
                node = dom.remove_and_get_next(node)
                continue

            if flags.strip_unlikely:
                if self._is_unlikely_candidate(node, match_string):
                    logger.debug(f"Removing unlikely candidate {match_string.strip()!r}")
                    node = dom.remove_and_get_next(node)
                    continue
                role = dom.attr_str(node, "role")
                if role in patterns.UNLIKELY_ROLES:
                    logger.debug(f"Removing content with role {role!r}")
                    node = dom.remove_and_get_next(node)
                    continue

            if node.name in patterns.EMPTY_CANDIDATE_TAGS and dom.is_element_without_content(node):
                node = dom.remove_and_get_next(node)
                continue

            if node.name in patterns.TAGS_TO_SCORE:
                elements_to_score.append(node)

            if node.name == "div":
                self._wrap_phrasing_children(node)
                if dom.has_single_tag_inside(node, "p") and dom.get_link_density(node) < 0.25:
                    paragraph = dom.first_element_child(node).extract()
                    node.replace_with(paragraph)
                    node = paragraph
                    elements_to_score.append(node)
                elif not dom.has_child_block_element(node):
                    node = dom.set_node_tag(self.doc, node, "p", scores)
                    elements_to_score.append(node)

            node = dom.get_next_node(node)

        return elements_to_score, byline

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------
    def _score_elements(self, elements: List[Tag], scores: ScoreTable) -> CandidateList:
        candidates: List[Tag] = []
        for element in elements:
            if element.parent is None:
                continue
            text = dom.inner_text(element)
            if len(text) < 25:
                continue
            ancestors = dom.get_node_ancestors(element, 5)
            if not ancestors:
                continue

            content_score = 1.0
            content_score += dom.get_char_count(element)
            content_score += min(len(text) // 100, 3)

            for level, ancestor in enumerate(ancestors):
                # a detached root only counts when it is <body>; <html> never does
                if ancestor.parent is None and ancestor.name != "body":
                    continue
                if ancestor not in scores:
                    scores.initialize(ancestor)
                    candidates.append(ancestor)
                divider = 1 if level == 0 else 2 if level == 1 else level * 3
                scores.add(ancestor, content_score / divider)

        top_candidates = CandidateList(self.options.top_candidate_count)
        for candidate in candidates:
            scaled = scores.score(candidate) * (1 - dom.get_link_density(candidate))
            scores.set(candidate, scaled)
            logger.debug(f"Candidate <{candidate.name} {dom.class_and_id(candidate).strip()!r}> scored {scaled:.2f}")
            top_candidates.offer(candidate, scores)
        return top_candidates

    # ------------------------------------------------------------------
    # Top candidate
    # ------------------------------------------------------------------
    @staticmethod
    def _climbable(node: Optional[Tag], root: Tag) -> bool:
        return node is not None and node is not root and node.name != "body"

    def _select_top_candidate(
        self, root: Tag, top_candidates: CandidateList, scores: ScoreTable
    ) -> Tuple[Tag, bool]:
        top = top_candidates[0] if len(top_candidates) else None

        if top is None or top.name == "body":
            logger.debug("No usable top candidate; wrapping the whole page")
            wrapper = self.doc.new_tag("div")
            for child in list(root.contents):
                wrapper.append(child)
            root.append(wrapper)
            scores.initialize(wrapper)
            return wrapper, True

        # Several near-best candidates under one ancestor: that ancestor is the article
        top_score = scores.score(top)
        alternative_ancestors = [
            dom.get_node_ancestors(candidate)
            for candidate in top_candidates.nodes[1:]
            if top_score and scores.score(candidate) / top_score >= 0.75
        ]
        if len(alternative_ancestors) >= MINIMUM_TOPCANDIDATES:
            parent = top.parent
            while self._climbable(parent, root):
                containing = sum(
                    1 for ancestors in alternative_ancestors if any(a is parent for a in ancestors)
                )
                if containing >= MINIMUM_TOPCANDIDATES:
                    top = parent
                    break
                parent = parent.parent
            scores.initialize(top)

        # Adopt a parent that scores better than the candidate itself
        parent = top.parent
        last_score = scores.score(top)
        score_threshold = last_score / 3
        while self._climbable(parent, root):
            if parent not in scores:
                parent = parent.parent
                continue
            parent_score = scores.score(parent)
            if parent_score < score_threshold:
                break
            if parent_score > last_score:
                top = parent
                break
            last_score = parent_score
            parent = parent.parent

        # An only child is as good as its parent
        parent = top.parent
        while self._climbable(parent, root) and len(dom.element_children(parent)) == 1:
            top = parent
            parent = top.parent
        scores.initialize(top)

        return top, False

    @staticmethod
    def _text_direction(top: Tag) -> Optional[str]:
        parent = top.parent
        chain = [top] if parent is None else [parent, top, *dom.get_node_ancestors(parent)]
        for node in chain:
            text_dir = dom.attr_str(node, "dir")
            if text_dir:
                return text_dir
        return None

    # ------------------------------------------------------------------
    # Siblings
    # ------------------------------------------------------------------
    def _collect_siblings(self, top: Tag, scores: ScoreTable) -> Tag:
        """New ``<div>`` holding *top* plus the siblings that look like more of the article."""
        container = self.doc.new_tag("div")
        top_score = scores.score(top)
        threshold = max(10.0, top_score * 0.2)
        top_class = dom.attr_str(top, "class")

        for sibling in dom.element_children(top.parent):
            append = sibling is top
            if not append:
                bonus = top_score * 0.2 if top_class and dom.attr_str(sibling, "class") == top_class else 0.0
                sibling_score = scores.get(sibling)
                if sibling_score is not None and sibling_score + bonus >= threshold:
                    append = True
                elif sibling.name == "p":
                    link_density = dom.get_link_density(sibling)
                    content = dom.inner_text(sibling)
                    if len(content) > 80 and link_density < 0.25:
                        append = True
                    elif 0 < len(content) < 80 and link_density == 0 and "." in content:
                        append = True

            if append:
                if sibling.name not in patterns.ALTER_TO_DIV_EXCEPTIONS:
                    logger.debug(f"Altering sibling <{sibling.name}> to <div>")
                    sibling = dom.set_node_tag(self.doc, sibling, "div", scores)
                container.append(sibling)
        return container
