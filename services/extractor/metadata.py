# services/extractor/metadata.py
"""
Structured metadata: JSON-LD first, ``<meta>`` tags to fill the gaps, the
cleaned ``<title>`` as the last resort for the title.
"""

import json
from typing import Any, Dict, Optional

from bs4 import BeautifulSoup
from loguru import logger

from models.metadata import ArticleMetadata
from services.extractor import dom, patterns
from services.extractor.title import get_article_title

# Meta keys consulted per field, highest priority first
META_PRIORITIES = {
    "title": ["og:title", "twitter:title", "dcterm:title", "dc:title", "name:title", "parsely-title"],
    "byline": ["article:author", "dcterm:creator", "dc:creator", "name:author", "parsely-author"],
    "excerpt": [
        "og:description", "twitter:description", "dcterm:description",
        "dc:description", "name:description",
    ],
    "site_name": ["og:site_name"],
    "published_time": [
        "article:published_time", "dcterm:published", "name:pub-date", "parsely-pub-date",
    ],
}


# ----------------------------------------------------------------------
# JSON-LD
# ----------------------------------------------------------------------
def _type_matches(obj: Any) -> bool:
    if not isinstance(obj, dict) or not obj.get("@type"):
        return False
    schema_type = obj["@type"]
    if isinstance(schema_type, list):
        schema_type = ",".join(str(t) for t in schema_type)
    return bool(patterns.JSON_LD_ARTICLE_TYPES.search(str(schema_type)))


def _find_article_object(data: Any) -> Optional[Dict[str, Any]]:
    if isinstance(data, list):
        return next((obj for obj in data if _type_matches(obj)), None)
    if isinstance(data, dict):
        if not data.get("@type") and isinstance(data.get("@graph"), list):
            return next((obj for obj in data["@graph"] if _type_matches(obj)), None)
        if _type_matches(data):
            return data
    return None


def _has_schema_context(parsed: Dict[str, Any]) -> bool:
    context = parsed.get("@context")
    if isinstance(context, str):
        return bool(patterns.SCHEMA_DOT_ORG.match(context))
    if isinstance(context, dict):
        return any(
            isinstance(value, str) and patterns.SCHEMA_DOT_ORG.match(value)
            for value in context.values()
        )
    return False


def _json_ld_title(parsed: Dict[str, Any], doc: BeautifulSoup) -> Optional[str]:
    name = parsed.get("name")
    headline = parsed.get("headline")
    if isinstance(name, str) and isinstance(headline, str) and name != headline:
        html_title = get_article_title(doc)
        name_similarity = dom.text_similarity(name, html_title)
        headline_similarity = dom.text_similarity(headline, html_title)
        if headline_similarity > name_similarity and headline_similarity > 0.75:
            return headline
        return name
    for value in (name, headline):
        if isinstance(value, str) and value:
            return value
    return None


def _json_ld_byline(author: Any) -> Optional[str]:
    if isinstance(author, dict) and isinstance(author.get("name"), str):
        return author["name"].strip()
    if isinstance(author, list):
        names = [
            a["name"].strip()
            for a in author
            if isinstance(a, dict) and isinstance(a.get("name"), str) and a["name"].strip()
        ]
        return ", ".join(names)
    return None


def get_json_ld(doc: BeautifulSoup) -> Dict[str, Optional[str]]:
    """
    Metadata from the first schema.org article object found in a
    ``<script type="application/ld+json">`` block that names a title, byline
    or excerpt; failing that, from the first article object at all.  Blocks
    that fail to parse are logged and skipped.
    """
    first_found: Optional[Dict[str, Optional[str]]] = None
    for script in doc.find_all("script"):
        if dom.attr_str(script, "type") != "application/ld+json":
            continue
        content = patterns.CDATA_WRAPPER.sub("", dom.inner_text(script, normalize=False))
        if not content.strip():
            continue
        try:
            data = json.loads(content)
        except ValueError as exc:
            logger.warning(f"Skipping malformed JSON-LD block: {exc}")
            continue

        parsed = _find_article_object(data)
        if parsed is None:
            continue
        if not _has_schema_context(parsed):
            logger.debug(f"JSON-LD @context is not schema.org: {parsed.get('@context')!r}")

        metadata: Dict[str, Optional[str]] = {}
        metadata["title"] = _json_ld_title(parsed, doc)
        metadata["byline"] = _json_ld_byline(parsed.get("author"))
        description = parsed.get("description")
        metadata["excerpt"] = description if isinstance(description, str) else None
        publisher = parsed.get("publisher")
        if isinstance(publisher, dict) and isinstance(publisher.get("name"), str):
            metadata["site_name"] = publisher["name"].strip()
        published = parsed.get("datePublished") or parsed.get("dateCreated")
        metadata["published_time"] = published if isinstance(published, str) else None

        for key, value in metadata.items():
            if isinstance(value, str):
                metadata[key] = dom.unescape_html_entities(value.strip())

        logger.debug(f"JSON-LD metadata: {metadata}")
        if metadata.get("title") or metadata.get("byline") or metadata.get("excerpt"):
            return metadata
        if first_found is None:
            first_found = metadata
    return first_found or {}


# ----------------------------------------------------------------------
# <meta> tags
# ----------------------------------------------------------------------
def collect_meta_values(doc: BeautifulSoup) -> Dict[str, str]:
    """Map normalised meta keys (``og:title``, ``name:author`` …) to their content."""
    values: Dict[str, str] = {}
    for meta in doc.find_all("meta"):
        content = dom.attr_str(meta, "content").strip()
        if not content:
            continue

        prop = dom.attr_str(meta, "property")
        matched = False
        for match in patterns.META_PROPERTY.finditer(prop):
            values[f"{match.group(1).lower()}:{match.group(2).lower()}"] = content
            matched = True
        if matched:
            continue

        name = dom.attr_str(meta, "name")
        match = patterns.META_NAME.match(name) if name else None
        if match:
            key = "".join(name.split()).lower().replace(".", ":")
            if match.group(1) is None:
                key = f"name:{key}"
            values[key] = content
    return values


def get_article_metadata(doc: BeautifulSoup, json_ld: Optional[Dict[str, Optional[str]]] = None) -> ArticleMetadata:
    """Merge *json_ld* with the ``<meta>`` tags; JSON-LD values are never overwritten."""
    metadata: Dict[str, Optional[str]] = dict(json_ld or {})
    values = collect_meta_values(doc)

    for field, keys in META_PRIORITIES.items():
        if metadata.get(field):
            continue
        for key in keys:
            value = values.get(key)
            if not value:
                continue
            if key == "article:author" and patterns.URL_LIKE.search(value):
                # profile URL, not a name
                continue
            metadata[field] = value
            break

    if not metadata.get("title"):
        metadata["title"] = get_article_title(doc)

    metadata = {
        key: dom.unescape_html_entities(value) if isinstance(value, str) else value
        for key, value in metadata.items()
    }
    metadata["lang"] = get_document_lang(doc)
    return ArticleMetadata(**metadata)


def get_document_lang(doc: BeautifulSoup) -> Optional[str]:
    """``<html lang>``, ``xml:lang``, then a content-language / language meta tag."""
    html = doc.find("html")
    if html is not None:
        for attr in ("lang", "xml:lang"):
            lang = dom.attr_str(html, attr).strip()
            if lang:
                return lang
    for meta in doc.find_all("meta"):
        http_equiv = dom.attr_str(meta, "http-equiv").lower()
        name = dom.attr_str(meta, "name").lower()
        if http_equiv == "content-language" or name == "language":
            lang = dom.attr_str(meta, "content").strip()
            if lang:
                return lang
    return None


def resolve_metadata(doc: BeautifulSoup, disable_json_ld: bool = False) -> ArticleMetadata:
    """JSON-LD plus meta tags for a document that still has its scripts."""
    json_ld = {} if disable_json_ld else get_json_ld(doc)
    return get_article_metadata(doc, json_ld)
