"""Result assembly helpers: record parsing, de-duplication and in-memory pagination."""

import math
from typing import Any, Iterable, NamedTuple

from pydantic import ValidationError

from smartplates.engine.errors import MalformedRecipeError
from smartplates.models.models import Recipe
from smartplates.utils.logger import logger


class Page(NamedTuple):
    items: list[Recipe]
    total_pages: int
    has_more: bool


def parse_recipe(raw: Any) -> Recipe:
    """Validate one upstream record.

    Raises:
        MalformedRecipeError: If the record is not an object, has no title,
            or carries an unusable identifier.
    """
    if isinstance(raw, Recipe):
        return raw
    if not isinstance(raw, dict):
        raise MalformedRecipeError(f"Recipe record must be an object, got {type(raw).__name__}")
    try:
        return Recipe.model_validate(raw)
    except ValidationError as e:
        raise MalformedRecipeError(f"Malformed recipe record: {e.error_count()} validation error(s)") from e


def parse_recipes(records: Iterable[Any]) -> list[Recipe]:
    """Parse upstream records, dropping malformed ones so the rest can still be shown."""
    recipes: list[Recipe] = []
    dropped = 0
    for raw in records:
        try:
            recipes.append(parse_recipe(raw))
        except MalformedRecipeError as e:
            dropped += 1
            logger.debug(f"Dropping record: {e}")

    if dropped:
        logger.warning(f"Dropped {dropped} malformed recipe record(s)")
    return recipes


def deduplicate(items: Iterable[Recipe]) -> list[Recipe]:
    """Keep the first recipe seen for each identity key, preserving order.

    Falling back to the title as key merges distinct recipes that share a
    title and carry no identifier. Records without any identifier leave no
    better option.
    """
    seen: set[str] = set()
    unique: list[Recipe] = []
    for recipe in items:
        key = recipe.identity_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(recipe)
    return unique


def total_pages_for(count: int, page_size: int) -> int:
    return max(1, math.ceil(count / page_size))


def paginate(items: list[Recipe], page: int, page_size: int) -> Page:
    """Slice one 1-indexed page out of a fully filtered list.

    Args:
        items: Filtered recipes in display order.
        page: Page number (>= 1).
        page_size: Items per page (>= 1).

    Returns:
        Page with its items, total page count (at least 1) and has_more flag.

    Raises:
        ValueError: If page or page_size is below 1.
    """
    if page < 1:
        raise ValueError(f"page must be at least 1, got: {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got: {page_size}")

    total_pages = total_pages_for(len(items), page_size)
    start = (page - 1) * page_size
    return Page(
        items=items[start:start + page_size],
        total_pages=total_pages,
        has_more=page < total_pages,
    )
