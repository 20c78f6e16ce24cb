# models/extract_options.py
from __future__ import annotations

import re
from typing import Any, Callable, FrozenSet, List, Literal, Optional, Pattern, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Named serializers understood by ``services.extractor.serializers``
SerializerName = Literal["html", "outer_html", "text", "markdown"]


class ExtractOptions(BaseModel):
    """
    Tuning knobs for a single ``extract`` call.

    Every field is optional; the defaults reproduce the stock heuristics.
    Instances are frozen so one options object can be shared between calls
    without any call leaking state into the next one.
    """

    # ------------------------------------------------------------------
    #  Limits
    # ------------------------------------------------------------------
    max_elements_to_parse: int = Field(
        default=0,
        ge=0,
        description="Abort before starting if the tree holds more elements (0 = unlimited)",
    )
    top_candidate_count: int = Field(
        default=5,
        ge=1,
        description="Breadth of the candidate shortlist",
    )
    char_threshold: int = Field(
        default=500,
        ge=0,
        description="Minimum extracted text length for an attempt to be accepted",
    )

    # ------------------------------------------------------------------
    #  Output shaping
    # ------------------------------------------------------------------
    classes_to_preserve: List[str] = Field(
        default_factory=lambda: ["page"],
        description="Class names that survive class stripping ('page' is always kept)",
    )
    keep_all_classes: bool = Field(
        default=False,
        description="Skip class stripping entirely",
    )
    serializer: Optional[Union[SerializerName, Callable[[Any], str]]] = Field(
        default=None,
        description="Callable turning the final container into a string, or a serializer name",
    )

    # ------------------------------------------------------------------
    #  Heuristic tweaks
    # ------------------------------------------------------------------
    disable_json_ld_metadata: bool = Field(
        default=False,
        description="Skip JSON-LD metadata extraction",
    )
    allowed_video_pattern: Optional[Pattern[str]] = Field(
        default=None,
        description="Regex for iframe/object/embed sources that count as video",
    )
    link_density_adjustment: float = Field(
        default=0.0,
        description="Added to the 0.2 / 0.5 link-density removal thresholds",
    )

    # ------------------------------------------------------------------
    #  Document context
    # ------------------------------------------------------------------
    url: Optional[str] = Field(
        default=None,
        description="URL the document was loaded from; base for relative URIs",
    )

    model_config = ConfigDict(frozen=True, extra="forbid", arbitrary_types_allowed=True)

    @field_validator("classes_to_preserve", mode="before")
    @classmethod
    def _split_class_names(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.split()
        if isinstance(value, (list, tuple, set, frozenset)):
            return [str(name).strip() for name in value if str(name).strip()]
        return value

    @field_validator("allowed_video_pattern", mode="before")
    @classmethod
    def _compile_video_pattern(cls, value: Any) -> Any:
        """Compile string patterns case-insensitively, as the built-in one is."""
        if value is None or isinstance(value, re.Pattern):
            return value
        try:
            return re.compile(str(value), re.IGNORECASE)
        except re.error as exc:
            raise ValueError(f"Invalid regex pattern '{value}': {exc}") from exc

    @property
    def preserved_classes(self) -> FrozenSet[str]:
        return frozenset(["page", *self.classes_to_preserve])
