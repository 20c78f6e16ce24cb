# models/article.py
from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class Article(BaseModel):
    """
    The extracted article.  Immutable once returned.

    Field names are snake_case; ``to_dict`` emits the camelCase keys
    (``textContent``, ``siteName``, ``publishedTime``) that reader-view
    consumers expect.
    """

    title: Optional[str] = None
    byline: Optional[str] = None
    dir: Optional[str] = None
    lang: Optional[str] = None

    # ------------------------------------------------------------------
    # Body
    # ------------------------------------------------------------------
    content: str = ""
    text_content: str = Field(default="", alias="textContent")
    length: int = 0

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------
    excerpt: Optional[str] = None
    site_name: Optional[str] = Field(default=None, alias="siteName")
    published_time: Optional[str] = Field(default=None, alias="publishedTime")

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_dict(self) -> Dict[str, Any]:
        """Serialise with the camelCase keys of the reader-view contract."""
        return self.model_dump(by_alias=True)
