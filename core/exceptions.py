# core/exceptions.py
"""
Exceptions raised by the extraction engine.

Only the element-count ceiling is fatal.  Everything else the engine meets
(broken JSON-LD, odd attribute names, unresolvable URIs) is logged and
recovered where it happens, and "nothing found" is reported as ``None``.
"""


class ExtractorException(Exception):
    """Base class for every error the extractor raises on purpose."""


class TooManyElementsError(ExtractorException):
    """Raised before any mutation when a document exceeds ``max_elements_to_parse``."""

    def __init__(self, element_count: int, limit: int):
        super().__init__(
            f"Aborting parsing document; {element_count} elements found (max: {limit})"
        )
        self.element_count = element_count
        self.limit = limit


class InvalidDocumentError(ExtractorException, TypeError):
    """Raised when ``extract`` is handed something that is not a parsed document."""
