# services/extractor/serializers.py
"""
Turn the finished article tree into the ``content`` string.

``ExtractOptions.serializer`` is either a callable ``Tag -> str`` or one of
the names registered here.  ``None`` means inner markup.
"""

from typing import Callable, Dict, Optional, Union

import html2text
from bs4 import Tag

from services.extractor import dom

Serializer = Callable[[Tag], str]


def _html2text_handler() -> html2text.HTML2Text:
    """Markdown converter set up to keep links, images and tables."""
    handler = html2text.HTML2Text()
    handler.ignore_links = False
    handler.ignore_images = False
    handler.ignore_tables = False
    handler.body_width = 0
    return handler


def inner_html(node: Tag) -> str:
    return dom.get_inner_html(node)


def outer_html(node: Tag) -> str:
    return node.decode()


def plain_text(node: Tag) -> str:
    return dom.inner_text(node)


def markdown(node: Tag) -> str:
    # HTML2Text keeps parser state, so every call gets its own handler
    return _html2text_handler().handle(node.decode()).strip()


SERIALIZERS: Dict[str, Serializer] = {
    "html": inner_html,
    "outer_html": outer_html,
    "text": plain_text,
    "markdown": markdown,
}


def get_serializer(choice: Optional[Union[str, Serializer]]) -> Serializer:
    if choice is None:
        return inner_html
    if callable(choice):
        return choice
    try:
        return SERIALIZERS[choice]
    except KeyError:
        raise ValueError(f"Unknown serializer '{choice}'; expected one of {sorted(SERIALIZERS)}") from None
