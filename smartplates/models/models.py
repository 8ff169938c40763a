"""Data models and schemas for the recipe query engine.

Defines Pydantic models for upstream recipe records, query requests and query results.
All models use Pydantic v2 for strict validation.
"""

import re
from enum import Enum
from typing import Any, List, Optional, Annotated

from pydantic import BaseModel, Field, field_validator, ConfigDict


_HTML_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def strip_html(text: Optional[str]) -> str:
    """Remove HTML tags and collapse whitespace."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", _HTML_TAG_RE.sub(" ", text)).strip()


class Difficulty(str, Enum):
    """Derived three-level classification computed from a recipe's ready time."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class QueryMode(str, Enum):
    """How a query obtains and narrows its candidates."""

    REMOTE_PAGINATED = "remote-paginated"
    LOCAL_FILTERED = "local-filtered"


class MoreAction(str, Enum):
    """What the caller should offer below the last item of a page."""

    LOAD_MORE = "load_more"
    REGISTER_PROMPT = "register_prompt"
    NONE = "none"


class Ingredient(BaseModel):
    """Ingredient entry as found in upstream `extendedIngredients`."""

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True, extra="ignore")

    name: Annotated[str, Field("", max_length=200, description="Ingredient name")]
    original_name: Annotated[Optional[str], Field(None, alias="originalName")]

    @field_validator("name", mode="before")
    @classmethod
    def none_name_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v


class Recipe(BaseModel):
    """Read-only recipe record from the upstream source or the local collection.

    Only title is required. Identifiers come in three shapes: a local `_id`,
    an upstream `spoonacularId`, or an `id` that may be either. Timing is
    spread over several optional fields depending on where the record came from.
    """

    model_config = ConfigDict(str_strip_whitespace=True, populate_by_name=True, extra="ignore")

    local_id: Annotated[Optional[str], Field(None, alias="_id", description="Stable local identifier")]
    id: Annotated[Optional[str | int], Field(None, description="Local identifier or upstream numeric ID")]
    spoonacular_id: Annotated[
        Optional[int], Field(None, alias="spoonacularId", ge=0, description="Upstream numeric ID")
    ]
    title: Annotated[str, Field(min_length=1, max_length=300, description="Recipe name (1-300 chars)")]
    image: Annotated[Optional[str], Field(None, description="URL to recipe image")]
    summary: Annotated[Optional[str], Field(None, description="Upstream summary, may contain HTML")]
    description: Annotated[Optional[str], Field(None, description="Plain description")]
    ready_in_minutes: Annotated[Optional[int], Field(None, alias="readyInMinutes")]
    cooking_time: Annotated[Optional[int], Field(None, alias="cookingTime")]
    total_time: Annotated[Optional[int], Field(None, alias="totalTime")]
    prep_time: Annotated[Optional[int], Field(None, alias="prepTime")]
    cook_time: Annotated[Optional[int], Field(None, alias="cookTime")]
    servings: Annotated[Optional[int], Field(None, ge=0)]
    diets: Annotated[List[str], Field(default_factory=list)]
    dish_types: Annotated[List[str], Field(default_factory=list, alias="dishTypes")]
    tags: Annotated[List[str], Field(default_factory=list)]
    extended_ingredients: Annotated[
        List[Ingredient], Field(default_factory=list, alias="extendedIngredients")
    ]

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> Any:
        """Accept strings and non-negative integers only."""
        if v is None or v == "":
            return None
        if isinstance(v, bool) or not isinstance(v, (str, int)):
            raise ValueError(f"Unusable recipe identifier: {v!r}")
        if isinstance(v, int) and v < 0:
            raise ValueError(f"Unusable recipe identifier: {v!r}")
        return v

    @field_validator("local_id", mode="before")
    @classmethod
    def validate_local_id(cls, v: Any) -> Any:
        if v is None or v == "":
            return None
        if isinstance(v, bool) or isinstance(v, (dict, list)):
            raise ValueError(f"Unusable local identifier: {v!r}")
        return str(v)

    @field_validator(
        "ready_in_minutes", "cooking_time", "total_time", "prep_time", "cook_time", mode="before"
    )
    @classmethod
    def coerce_minutes(cls, v: Any) -> Optional[int]:
        """Normalize timing fields; anything unusable counts as absent."""
        if v is None or isinstance(v, bool):
            return None
        try:
            minutes = int(float(v))
        except (TypeError, ValueError, OverflowError):
            return None
        return minutes if minutes >= 0 else None

    @field_validator("diets", "dish_types", "tags", "extended_ingredients", mode="before")
    @classmethod
    def none_to_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def identity_key(self) -> str:
        """Key used for de-duplication: local ID, then upstream ID, then title."""
        if self.local_id:
            return self.local_id
        if isinstance(self.id, str) and self.id and not self.id.isdigit():
            return self.id
        upstream = self.spoonacular_id if self.spoonacular_id is not None else self.id
        if upstream is not None and str(upstream):
            return str(upstream)
        return self.title

    @property
    def plain_text(self) -> str:
        """Description and summary with HTML removed."""
        parts = [strip_html(self.description), strip_html(self.summary)]
        return " ".join(p for p in parts if p)

    @property
    def ingredient_names(self) -> list[str]:
        names = []
        for ingredient in self.extended_ingredients:
            name = ingredient.name or ingredient.original_name or ""
            if name:
                names.append(name.lower())
        return names


class QueryRequest(BaseModel):
    """Input for one query engine call, constructed fresh per UI interaction.

    `page_size` may be left unset so the access policy picks it.
    Camel-case names from the web client are accepted as aliases.
    """

    model_config = ConfigDict(populate_by_name=True)

    search_text: Annotated[str, Field("", alias="searchText", max_length=200)]
    category: Annotated[str, Field("", max_length=50)]
    diet: Annotated[str, Field("", max_length=50)]
    intolerance: Annotated[str, Field("", max_length=50)]
    difficulty: Annotated[Optional[Difficulty], Field(None)]
    page: Annotated[int, Field(1, ge=1)]
    page_size: Annotated[Optional[int], Field(None, alias="pageSize", ge=1, le=100)]
    is_authenticated: Annotated[bool, Field(False, alias="isAuthenticated")]

    @field_validator("search_text", "category", "diet", "intolerance", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("category", "diet", "intolerance")
    @classmethod
    def normalize_facet(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("difficulty", mode="before")
    @classmethod
    def normalize_difficulty(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        if isinstance(v, str):
            return v.strip().lower()
        return v


class QueryResult(BaseModel):
    """One page of recipes plus pagination metadata. Items are unique by identity key."""

    items: Annotated[List[Recipe], Field(default_factory=list)]
    page: Annotated[int, Field(ge=1)]
    total_pages: Annotated[int, Field(ge=1)]
    has_more: bool
    mode: QueryMode
    total_results: Annotated[int, Field(0, ge=0, description="Matches before pagination")]
    more_action: Annotated[MoreAction, Field(MoreAction.NONE)]


class UpstreamQuery(BaseModel):
    """Parameters forwarded to the upstream recipe source."""

    query: Annotated[str, Field("")]
    type: Annotated[str, Field("", description="Upstream dish type")]
    diet: Annotated[str, Field("")]
    intolerances: Annotated[str, Field("")]
    max_ready_time: Annotated[Optional[int], Field(None, ge=0)]
    number: Annotated[int, Field(ge=1, le=100)]
    page: Annotated[int, Field(1, ge=1)]


class UpstreamBatch(BaseModel):
    """Raw recipe records returned by the upstream source plus its total match count."""

    results: Annotated[List[Any], Field(default_factory=list, description="Unvalidated recipe records")]
    total_results: Annotated[int, Field(0, ge=0)]


class QuotaInfo(BaseModel):
    """Upstream quota usage read from response headers (points, not requests)."""

    request_cost: Optional[float] = None
    used: Optional[float] = None
    remaining: Optional[float] = None
