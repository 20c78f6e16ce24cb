# services/extractor/readability.py
"""
Public entry points of the extraction engine.

    from services.extractor import extract, extract_from_html

    article = extract(BeautifulSoup(html, "html.parser"))
    article = extract_from_html(html, url="https://example.com/post")

Both return an ``Article`` or ``None`` when no readable text was found, and
raise ``TooManyElementsError`` when the document exceeds
``max_elements_to_parse``.
"""

from typing import Optional

from bs4 import BeautifulSoup
from loguru import logger

from core.config import get_settings
from core.exceptions import InvalidDocumentError, TooManyElementsError
from models.article import Article
from models.extract_options import ExtractOptions
from models.metadata import ArticleMetadata
from services.extractor import dom, finalizer, preprocess
from services.extractor.grabber import ArticleGrabber
from services.extractor.metadata import get_article_metadata, get_json_ld
from services.extractor.serializers import get_serializer

EXCERPT_LENGTH = 300


class Readability:
    """
    One extraction run over one document.

    The document is modified in place (scripts, styles and ``<br>`` runs are
    rewritten before scoring), so pass a copy if the caller still needs the
    original tree.
    """

    def __init__(self, doc: BeautifulSoup, options: Optional[ExtractOptions] = None):
        if not isinstance(doc, BeautifulSoup):
            raise InvalidDocumentError(
                f"Expected a parsed BeautifulSoup document, got {type(doc).__name__}"
            )
        self.doc = doc
        self.options = options if options is not None else get_settings().extractor
        self.metadata: Optional[ArticleMetadata] = None

    def _check_size(self) -> None:
        limit = self.options.max_elements_to_parse
        if limit <= 0:
            return
        element_count = len(self.doc.find_all(True))
        if element_count > limit:
            raise TooManyElementsError(element_count, limit)

    def parse(self) -> Optional[Article]:
        self._check_size()

        preprocess.unwrap_noscript_images(self.doc)
        json_ld = {} if self.options.disable_json_ld_metadata else get_json_ld(self.doc)
        preprocess.remove_scripts(self.doc)
        preprocess.prepare(self.doc)
        self.metadata = get_article_metadata(self.doc, json_ld)

        attempt = ArticleGrabber(self.doc, self.options, self.metadata.title).grab()
        if attempt is None:
            logger.info("No readable content found")
            return None

        container, text_dir = finalizer.wrap_article(self.doc, attempt)
        base_uri = finalizer.resolve_base_uri(self.doc, self.options.url)
        finalizer.fix_relative_uris(self.doc, container, base_uri, self.options.url)
        finalizer.simplify_nested_elements(container)
        if not self.options.keep_all_classes:
            finalizer.clean_classes(container, self.options.preserved_classes)

        excerpt = self.metadata.excerpt
        if not excerpt:
            first_p = container.find("p")
            if first_p is not None:
                excerpt = dom.inner_text(first_p)[:EXCERPT_LENGTH]

        text_content = dom.text_content(container)
        logger.debug(
            f"Article text of {len(text_content)} chars kept with heuristics {attempt.flags.describe()}"
        )
        serializer = get_serializer(self.options.serializer)

        return Article(
            title=self.metadata.title,
            # metadata wins; the in-page byline only fills the gap
            byline=self.metadata.byline or attempt.byline,
            dir=text_dir,
            lang=self.metadata.lang,
            content=serializer(container),
            text_content=text_content,
            length=len(text_content),
            excerpt=excerpt or None,
            site_name=self.metadata.site_name,
            published_time=self.metadata.published_time,
        )


def extract(document: BeautifulSoup, options: Optional[ExtractOptions] = None) -> Optional[Article]:
    """Extract the main article from an already parsed document."""
    return Readability(document, options).parse()


def extract_from_html(
    html: str,
    url: Optional[str] = None,
    options: Optional[ExtractOptions] = None,
) -> Optional[Article]:
    """
    Parse *html* with ``html.parser`` and extract from it.  *url*, when
    given, overrides ``options.url`` as the base for relative links.
    """
    options = options if options is not None else get_settings().extractor
    if url is not None:
        options = options.model_copy(update={"url": url})
    return extract(BeautifulSoup(html, "html.parser"), options)
