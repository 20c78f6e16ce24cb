# services/extractor/title.py
"""
Derive a clean article title from ``<title>`` and the page headings.

Site names and section paths are usually glued to the headline with a
separator (``Headline | Site``) or a colon (``Site: Headline``); the rules
below peel them off without cutting a genuine short headline in half.
"""

from bs4 import BeautifulSoup
from loguru import logger

from services.extractor import dom, patterns


def word_count(text: str) -> int:
    return len(patterns.WORDS.split(text)) if text else 0


def _raw_title(doc: BeautifulSoup) -> str:
    title = doc.find("title")
    if title is None:
        return ""
    return dom.inner_text(title, normalize=False).strip()


def _split_on_separators(title: str) -> str:
    segments = [s.strip() for s in patterns.TITLE_SEPARATOR.split(title) if s.strip()]
    if not segments:
        return title
    longest = max(segments, key=len)
    if word_count(longest) >= 3:
        return longest
    # the longest piece is too short to be a headline: keep everything after the first separator
    first = patterns.TITLE_SEPARATOR.search(title)
    return title[first.end():]


def _split_on_colon(doc: BeautifulSoup, title: str, raw_title: str) -> str:
    first_colon = title.find(": ")
    after_first = title[first_colon + 2:].strip()
    if after_first:
        for heading in doc.find_all(["h1", "h2"]):
            if dom.inner_text(heading, normalize=False).strip() == after_first:
                return after_first

    last_colon = title.rfind(": ")
    if last_colon <= 0:
        return title
    after_last = title[last_colon + 2:]
    if word_count(after_last) >= 3:
        return after_last
    if first_colon > 0 and word_count(title[:first_colon]) <= 5:
        return title[first_colon + 2:]
    return raw_title


def get_article_title(doc: BeautifulSoup) -> str:
    """
    Best guess at the headline, or ``""`` when the page has no title.

    Args:
        doc: The parsed document (after preprocessing).

    Returns:
        str: The cleaned title.
    """
    raw_title = cur_title = _raw_title(doc)

    # Overlong or tiny titles: a single, reasonably sized <h1> is a better bet
    if cur_title and (len(cur_title) > 150 or len(cur_title) < 15):
        h_ones = doc.find_all("h1")
        if len(h_ones) == 1:
            h1_text = dom.inner_text(h_ones[0], normalize=False).strip()
            if h1_text and 10 < len(h1_text) < len(cur_title):
                cur_title = h1_text

    if cur_title and word_count(cur_title) > 4:
        if patterns.TITLE_SEPARATOR.search(cur_title):
            cur_title = _split_on_separators(cur_title)
        elif ": " in cur_title:
            cur_title = _split_on_colon(doc, cur_title, raw_title)

    cur_title = patterns.NORMALIZE.sub(" ", (cur_title or "").strip())

    # Never shorten a long title down to a few words
    cur_words = word_count(cur_title)
    raw_words = word_count(patterns.TITLE_SEPARATOR_CHARS.sub("", raw_title))
    if cur_words <= 4 and cur_words <= raw_words - 2 and word_count(raw_title) > 4:
        logger.debug(f"Title {cur_title!r} shortened too much; keeping {raw_title!r}")
        cur_title = raw_title

    return cur_title or raw_title


def heading_duplicates_title(node, title: str) -> bool:
    """True for an ``<h1>``/``<h2>`` whose text is (nearly) the article title."""
    if node.name not in ("h1", "h2") or not title:
        return False
    heading = dom.inner_text(node, normalize=False).strip()
    similarity = dom.text_similarity(title, heading)
    logger.debug(f"Heading similarity {heading!r} vs {title!r}: {similarity:.2f}")
    return similarity > 0.75 or (similarity > 0.5 and len(heading) * 1.5 < len(title))
