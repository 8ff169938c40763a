"""RecipeQueryEngine: turns a QueryRequest into one page of recipes.

Two query modes:

1. REMOTE-PAGINATED (no free text):
   - Facets are translated into upstream parameters (type, diet, intolerances, maxReadyTime)
   - The upstream source paginates; its total is passed through as page metadata
   - Difficulty is still re-checked in memory (the upstream has no "hard" bound,
     and maxReadyTime for "medium" also returns easy recipes)

2. LOCAL-FILTERED (free text present):
   - One unfiltered batch (LOCAL_BATCH_SIZE records) is fetched
   - Text matching, facet filtering and pagination all run in memory, so page
     boundaries follow text relevance rather than upstream pages

Each call on a surface supersedes earlier calls on the same surface: a result
that comes back after a newer call started is discarded (last request wins).
"""

import itertools
from dataclasses import dataclass
from typing import Optional, Protocol

from smartplates.engine.difficulty import max_ready_time_for
from smartplates.engine.errors import UpstreamFetchError
from smartplates.engine.facets import (
    FacetTables,
    apply_facet_filters,
    filter_by_difficulty,
    load_facet_tables,
    matches_search_text,
)
from smartplates.engine.results import deduplicate, paginate, parse_recipes, total_pages_for
from smartplates.models.models import (
    MoreAction,
    QueryMode,
    QueryRequest,
    QueryResult,
    UpstreamBatch,
    UpstreamQuery,
)
from smartplates.utils.config import Config, config
from smartplates.utils.logger import logger


DEFAULT_SURFACE = "default"


class RecipeSource(Protocol):
    """Upstream recipe source as seen by the engine."""

    async def search(self, query: UpstreamQuery) -> UpstreamBatch: ...


@dataclass(frozen=True)
class AccessPolicy:
    """Product policy for anonymous vs. signed-in users."""

    anonymous_page_size: int = 30
    authenticated_page_size: int = 60
    anonymous_page_limit: int = 1

    @classmethod
    def from_config(cls, settings: Config = config) -> "AccessPolicy":
        return cls(
            anonymous_page_size=settings.ANONYMOUS_PAGE_SIZE,
            authenticated_page_size=settings.AUTHENTICATED_PAGE_SIZE,
            anonymous_page_limit=settings.ANONYMOUS_PAGE_LIMIT,
        )

    def page_size_for(self, request: QueryRequest) -> int:
        if request.page_size is not None:
            return request.page_size
        if request.is_authenticated:
            return self.authenticated_page_size
        return self.anonymous_page_size

    def more_action(self, request: QueryRequest, has_more: bool) -> MoreAction:
        if not has_more:
            return MoreAction.NONE
        if request.is_authenticated or request.page < self.anonymous_page_limit:
            return MoreAction.LOAD_MORE
        return MoreAction.REGISTER_PROMPT


def resolve_query_mode(request: QueryRequest) -> QueryMode:
    """Free text selects local filtering; facets alone are delegated upstream."""
    if request.search_text.strip():
        return QueryMode.LOCAL_FILTERED
    return QueryMode.REMOTE_PAGINATED


class RecipeQueryEngine:
    """Resolve query requests against an upstream recipe source.

    Args:
        source: Upstream recipe source (e.g. SpoonacularClient).
        policy: Access tier policy. Defaults to the configured policy.
        tables: Facet lookup tables. Defaults to built-ins plus FACET_TABLES_FILE overrides.
        local_batch_size: Candidate pool size for free-text search (max 100).
    """

    def __init__(
        self,
        source: RecipeSource,
        policy: Optional[AccessPolicy] = None,
        tables: Optional[FacetTables] = None,
        local_batch_size: Optional[int] = None,
    ) -> None:
        self.source = source
        self.policy = policy or AccessPolicy.from_config()
        self.tables = tables or load_facet_tables(config.FACET_TABLES_FILE)
        self.local_batch_size = local_batch_size or config.LOCAL_BATCH_SIZE
        if not (1 <= self.local_batch_size <= 100):
            raise ValueError(f"local_batch_size must be between 1 and 100, got: {self.local_batch_size}")

        self._request_ids = itertools.count(1)
        self._latest_by_surface: dict[str, int] = {}

    def is_superseded(self, surface: str, request_id: int) -> bool:
        return self._latest_by_surface.get(surface) != request_id

    def build_upstream_query(self, request: QueryRequest, mode: QueryMode, page_size: int) -> UpstreamQuery:
        if mode == QueryMode.LOCAL_FILTERED:
            return UpstreamQuery(number=self.local_batch_size, page=1)

        return UpstreamQuery(
            type=self.tables.upstream_category(request.category) if request.category else "",
            diet=request.diet,
            intolerances=request.intolerance,
            max_ready_time=max_ready_time_for(request.difficulty),
            number=page_size,
            page=request.page,
        )

    async def execute(self, request: QueryRequest, surface: str = DEFAULT_SURFACE) -> Optional[QueryResult]:
        """Run one query.

        Args:
            request: The query request.
            surface: Logical query surface (recipe list, quick-add modal, ...).
                Newer calls on the same surface supersede older ones.

        Returns:
            QueryResult, or None when a newer call on the same surface started
            while this one was waiting on the upstream source.

        Raises:
            UpstreamFetchError: If the upstream fetch failed. No partial result is produced.
        """
        request_id = next(self._request_ids)
        self._latest_by_surface[surface] = request_id
        log_extra = {"request_id": request_id, "surface": surface}

        mode = resolve_query_mode(request)
        page_size = self.policy.page_size_for(request)
        upstream_query = self.build_upstream_query(request, mode, page_size)

        logger.info(
            f"Query #{request_id} on {surface!r}: mode={mode.value}, page={request.page}, page_size={page_size}",
            extra=log_extra,
        )

        try:
            batch = await self.source.search(upstream_query)
        except UpstreamFetchError as e:
            if self.is_superseded(surface, request_id):
                logger.debug(f"Ignoring failure of superseded query #{request_id}: {e}", extra=log_extra)
                return None
            logger.warning(f"Query #{request_id} failed: {e}", extra=log_extra)
            raise

        if self.is_superseded(surface, request_id):
            logger.debug(f"Discarding result of superseded query #{request_id}", extra=log_extra)
            return None

        if mode == QueryMode.LOCAL_FILTERED:
            result = self._assemble_local(request, batch, page_size)
        else:
            result = self._assemble_remote(request, batch, page_size)

        logger.info(
            f"Query #{request_id} returned {len(result.items)} item(s), "
            f"page {result.page}/{result.total_pages}, more={result.more_action.value}",
            extra=log_extra,
        )
        return result

    def _assemble_remote(self, request: QueryRequest, batch: UpstreamBatch, page_size: int) -> QueryResult:
        recipes = deduplicate(parse_recipes(batch.results))
        items = filter_by_difficulty(recipes, request.difficulty)

        total_pages = total_pages_for(batch.total_results, page_size)
        has_more = request.page < total_pages
        return QueryResult(
            items=items,
            page=request.page,
            total_pages=total_pages,
            has_more=has_more,
            mode=QueryMode.REMOTE_PAGINATED,
            total_results=batch.total_results,
            more_action=self.policy.more_action(request, has_more),
        )

    def _assemble_local(self, request: QueryRequest, batch: UpstreamBatch, page_size: int) -> QueryResult:
        recipes = deduplicate(parse_recipes(batch.results))
        matches = [r for r in recipes if matches_search_text(r, request.search_text, self.tables)]
        filtered = apply_facet_filters(matches, request, self.tables)

        page = paginate(filtered, request.page, page_size)
        return QueryResult(
            items=page.items,
            page=request.page,
            total_pages=page.total_pages,
            has_more=page.has_more,
            mode=QueryMode.LOCAL_FILTERED,
            total_results=len(filtered),
            more_action=self.policy.more_action(request, page.has_more),
        )
