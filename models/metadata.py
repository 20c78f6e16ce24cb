# models/metadata.py
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class ArticleMetadata(BaseModel):
    """
    Metadata gathered from JSON-LD, ``<meta>`` tags and the document title.
    Every field is optional; blank strings are stored as ``None``.
    """

    title: Optional[str] = None
    byline: Optional[str] = None
    excerpt: Optional[str] = None
    site_name: Optional[str] = None
    published_time: Optional[str] = None
    lang: Optional[str] = None
    dir: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def _strip_and_nullify(cls, v: Any) -> Any:
        """
        * Strip leading/trailing whitespace from strings.
        * Convert empty strings (after stripping) to ``None``.
        * Leave non-string values untouched.
        """
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v
