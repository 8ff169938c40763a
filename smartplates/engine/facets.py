"""Facet filtering and free-text matching over already-fetched recipes.

Upstream tagging is inconsistent, so these filters are deliberately loose:
- Category: substring match of dish types against a synonym table; recipes
  without dish types are kept rather than hidden.
- Diet: diet tag match, falling back to a keyword search of the description.
- Intolerance: BEST EFFORT ONLY. Excludes recipes whose description or
  ingredient names mention the allergen. A recipe that mentions nothing is
  treated as safe; this is not an allergen guarantee.
- Difficulty: recomputed from ready time via `difficulty_for()`.

The synonym/keyword tables are data (`FacetTables`) and can be overridden
from a JSON file (see FACET_TABLES_FILE).
"""

import json
import re
from pathlib import Path
from typing import Iterable, Optional, Annotated

from pydantic import BaseModel, Field

from smartplates.engine.difficulty import difficulty_for
from smartplates.models.models import Difficulty, QueryRequest, Recipe
from smartplates.utils.logger import logger


DEFAULT_CATEGORY_SYNONYMS: dict[str, list[str]] = {
    "breakfast": ["breakfast", "brunch", "morning meal"],
    "lunch": ["lunch", "main course", "main dish"],
    "dinner": ["dinner", "main course", "main dish"],
    "main course": ["main course", "main dish", "dinner", "lunch"],
    "dessert": ["dessert"],
    "snack": ["snack", "fingerfood", "appetizer", "antipasti"],
    "snacks": ["snack", "fingerfood", "appetizer", "antipasti"],
}

# Facet values the upstream source does not know as dish types
DEFAULT_UPSTREAM_CATEGORIES: dict[str, str] = {
    "lunch": "main course",
    "dinner": "main course",
    "snacks": "snack",
}

DEFAULT_DIET_SYNONYMS: dict[str, list[str]] = {
    "vegetarian": ["vegetarian", "lacto ovo vegetarian", "lacto vegetarian", "ovo vegetarian"],
    "vegan": ["vegan"],
    "gluten free": ["gluten free"],
    "ketogenic": ["ketogenic", "keto"],
    "keto": ["ketogenic", "keto"],
    "paleo": ["paleolithic", "paleo"],
    "primal": ["primal"],
    "whole30": ["whole 30", "whole30"],
    "pescatarian": ["pescatarian", "pescetarian"],
    "dairy free": ["dairy free"],
}

DEFAULT_ALLERGEN_PATTERNS: dict[str, str] = {
    "egg": r"\beggs?\b",
    "eggs": r"\beggs?\b",
    "gluten": r"gluten|wheat|flour|barley|rye",
    "dairy": r"milk|cheese|butter|cream|yogurt|lactose",
    "peanut": r"peanut",
    "seafood": r"fish|shrimp|prawn|crab|lobster|tuna|salmon",
    "shellfish": r"shrimp|prawn|crab|lobster|clam|mussel|oyster|scallop",
    "fish": r"fish|tuna|salmon|cod|anchov",
    "sesame": r"sesame",
    "soy": r"soy|soya|tofu|soybean",
    "sulfite": r"sulfite|sulphite",
    "tree nut": r"almond|walnut|hazelnut|cashew|pecan|pistachio|macadamia",
    "nuts": r"\bnuts?\b|almond|walnut|hazelnut|cashew|pecan|pistachio|macadamia",
    "wheat": r"wheat|flour",
}

DEFAULT_TYPO_CORRECTIONS: dict[str, list[str]] = {
    "pasta": ["pata", "past"],
    "chicken": ["chiken", "chicen", "chikken"],
    "tomato": ["tomate", "tomatoe", "tomatos"],
    "potato": ["potatoe", "kartoffel", "kartoffeln"],
    "cheese": ["chese", "ches", "käse"],
    "mushroom": ["mushrom", "pilz", "pilze"],
    "salmon": ["salomon", "lachs"],
    "beef": ["beaf", "bef", "rindfleisch"],
    "pork": ["prok", "schwein", "schweinefleisch"],
    "soup": ["sope", "supe", "soupe", "suppe"],
}


class FacetTables(BaseModel):
    """Lookup tables driving the loose facet matching. Keys are lower-case facet values."""

    category_synonyms: Annotated[dict[str, list[str]], Field(default_factory=lambda: dict(DEFAULT_CATEGORY_SYNONYMS))]
    upstream_categories: Annotated[dict[str, str], Field(default_factory=lambda: dict(DEFAULT_UPSTREAM_CATEGORIES))]
    diet_synonyms: Annotated[dict[str, list[str]], Field(default_factory=lambda: dict(DEFAULT_DIET_SYNONYMS))]
    allergen_patterns: Annotated[dict[str, str], Field(default_factory=lambda: dict(DEFAULT_ALLERGEN_PATTERNS))]
    typo_corrections: Annotated[dict[str, list[str]], Field(default_factory=lambda: dict(DEFAULT_TYPO_CORRECTIONS))]

    def upstream_category(self, category: str) -> str:
        return self.upstream_categories.get(category, category)

    def correct_typo(self, text: str) -> str:
        for correct, variants in self.typo_corrections.items():
            if text in variants:
                return correct
        return text


def load_facet_tables(path: Optional[str] = None) -> FacetTables:
    """Build facet tables, merging overrides from a JSON file over the defaults.

    Each top-level key of the file replaces or extends the matching table
    entry by entry.

    Args:
        path: JSON file path. None or empty returns the defaults.

    Returns:
        FacetTables instance.

    Raises:
        ValueError: If the file cannot be read or has the wrong shape.
    """
    tables = FacetTables()
    if not path:
        return tables

    try:
        overrides = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ValueError(f"Cannot load facet tables from {path}: {e}") from e

    if not isinstance(overrides, dict):
        raise ValueError(f"Facet tables file must contain a JSON object, got: {type(overrides).__name__}")

    merged = tables.model_dump()
    for key, entries in overrides.items():
        if key not in merged:
            raise ValueError(f"Unknown facet table: {key}")
        if not isinstance(entries, dict):
            raise ValueError(f"Facet table {key} must be a JSON object")
        merged[key].update({str(k).lower(): v for k, v in entries.items()})

    logger.info(f"Loaded facet table overrides from {path}")
    return FacetTables.model_validate(merged)


def matches_category(recipe: Recipe, category: str, tables: FacetTables) -> bool:
    if not recipe.dish_types:
        return True
    synonyms = tables.category_synonyms.get(category, [category])
    dish_types = [d.lower() for d in recipe.dish_types]
    return any(s in d for s in synonyms for d in dish_types)


def matches_diet(recipe: Recipe, diet: str, tables: FacetTables) -> bool:
    synonyms = tables.diet_synonyms.get(diet, [diet])
    diets = {d.lower() for d in recipe.diets}
    if any(s in diets for s in synonyms):
        return True
    return diet in recipe.plain_text.lower()


def mentions_allergen(recipe: Recipe, allergen: str, tables: FacetTables) -> bool:
    """Best-effort check whether a recipe mentions an allergen in its text or ingredients."""
    pattern = tables.allergen_patterns.get(allergen) or re.escape(allergen)
    rx = re.compile(pattern, re.IGNORECASE)
    if rx.search(recipe.plain_text):
        return True
    return any(rx.search(name) for name in recipe.ingredient_names)


def matches_difficulty(recipe: Recipe, difficulty: Difficulty) -> bool:
    return difficulty_for(recipe) == difficulty


def matches_search_text(recipe: Recipe, text: str, tables: FacetTables) -> bool:
    """Case-insensitive substring search over title, description, tags and ingredients.

    A known misspelling is corrected before matching ("chiken" finds chicken).
    """
    term = tables.correct_typo(text.strip().lower())
    if not term:
        return True
    if term in recipe.title.lower():
        return True
    if term in recipe.plain_text.lower():
        return True
    if any(term in tag.lower() for tag in recipe.tags):
        return True
    return any(term in name for name in recipe.ingredient_names)


def filter_by_difficulty(candidates: Iterable[Recipe], difficulty: Optional[Difficulty]) -> list[Recipe]:
    if difficulty is None:
        return list(candidates)
    return [r for r in candidates if matches_difficulty(r, difficulty)]


def apply_facet_filters(
    candidates: Iterable[Recipe],
    request: QueryRequest,
    tables: Optional[FacetTables] = None,
) -> list[Recipe]:
    """Narrow candidates by every non-empty facet of the request, preserving order.

    Args:
        candidates: Recipes to filter.
        request: Query request carrying category, diet, intolerance and difficulty.
        tables: Lookup tables. Defaults to the built-in tables.

    Returns:
        Filtered list of recipes.
    """
    tables = tables or FacetTables()
    filtered = list(candidates)
    before = len(filtered)

    if request.category:
        filtered = [r for r in filtered if matches_category(r, request.category, tables)]
    if request.diet:
        filtered = [r for r in filtered if matches_diet(r, request.diet, tables)]
    if request.intolerance:
        filtered = [r for r in filtered if not mentions_allergen(r, request.intolerance, tables)]
    filtered = filter_by_difficulty(filtered, request.difficulty)

    if len(filtered) < before:
        logger.debug(f"Facet filters: {before} → {len(filtered)} recipes")

    return filtered
