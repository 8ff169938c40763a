#!/usr/bin/env python3
"""Ad hoc query runner for the SmartPlates recipe query engine.

Run one query against Spoonacular and print the resulting page.

Usage:
    python query.py "pasta"                             # Free-text search (local-filtered mode)
    python query.py --category dinner --page 2          # Facet browse (remote-paginated mode)
    python query.py --difficulty easy --auth "chicken"  # As a signed-in user
    python query.py --debug "soup"                      # Show full JSON result
    python query.py --quota                             # Show remaining Spoonacular quota

Requires SPOONACULAR_API_KEY in the environment or .env file.
"""

import asyncio
import sys

from rich.console import Console
from rich.table import Table

from smartplates.engine.difficulty import difficulty_for, resolve_ready_minutes
from smartplates.engine.errors import UpstreamFetchError
from smartplates.engine.query_engine import RecipeQueryEngine
from smartplates.models.models import MoreAction, QueryRequest, QueryResult
from smartplates.sources.spoonacular import SpoonacularClient
from smartplates.utils.logger import logger

console = Console()

# Flags that take a value, mapped to QueryRequest fields
VALUE_FLAGS = {
    "--category": "category",
    "--diet": "diet",
    "--intolerance": "intolerance",
    "--difficulty": "difficulty",
    "--page": "page",
    "--page-size": "page_size",
}

USAGE = (
    "Usage: python query.py [--debug] [--auth] [--quota] [--category C] [--diet D] "
    "[--intolerance I] [--difficulty easy|medium|hard] [--page N] [--page-size N] [\"search text\"]"
)


def render_result(result: QueryResult) -> None:
    """Print one result page as a table followed by pagination info."""
    table = Table(title=f"Recipes ({result.mode.value})")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="bold")
    table.add_column("Ready (min)", justify="right")
    table.add_column("Difficulty")
    table.add_column("Dish types")

    for recipe in result.items:
        table.add_row(
            recipe.identity_key,
            recipe.title,
            str(resolve_ready_minutes(recipe)),
            difficulty_for(recipe).value,
            ", ".join(recipe.dish_types),
        )

    console.print(table)
    console.print(
        f"Page {result.page} of {result.total_pages} "
        f"({result.total_results} matching recipes)"
    )
    if result.more_action == MoreAction.LOAD_MORE:
        console.print("[green]More recipes available.[/green]")
    elif result.more_action == MoreAction.REGISTER_PROMPT:
        console.print("[yellow]Sign up or log in to see more recipes.[/yellow]")


async def _run(request: QueryRequest, debug: bool) -> None:
    async with SpoonacularClient.from_config() as client:
        engine = RecipeQueryEngine(client)
        result = await engine.execute(request)

        if result is None:
            console.print("[yellow]Query was superseded[/yellow]")
            return

        if debug:
            console.print("[bold cyan]Debug Mode: Full Result[/bold cyan]")
            console.print("[dim]" + "=" * 60 + "[/dim]")
            console.print_json(result.model_dump_json(by_alias=True))
            console.print("[dim]" + "=" * 60 + "[/dim]")
            console.print()

        render_result(result)

        if client.last_quota and client.last_quota.remaining is not None:
            logger.info(f"Spoonacular quota remaining: {client.last_quota.remaining}")


async def _show_quota() -> None:
    async with SpoonacularClient.from_config() as client:
        quota = await client.check_quota()

    if quota is None:
        console.print("[yellow]Spoonacular did not report quota headers[/yellow]")
        return
    console.print(f"Used: {quota.used} points, remaining: {quota.remaining} points")


def run_query(fields: dict, debug: bool = False) -> None:
    """Execute a single ad hoc query and print the page.

    Args:
        fields: QueryRequest fields parsed from the command line.
        debug: If True, display the full JSON result.
    """
    try:
        request = QueryRequest(**fields)
        logger.info(f"Running query: {request.model_dump(exclude_defaults=True)}")
        asyncio.run(_run(request, debug))
    except KeyboardInterrupt:
        logger.info("\nQuery interrupted by user.")
        sys.exit(0)
    except UpstreamFetchError as e:
        console.print(f"[red]✗ Recipe source unavailable: {e}. Please retry.[/red]")
        sys.exit(1)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)


def parse_args(argv: list[str]) -> tuple[dict, bool, bool]:
    """Parse command-line flags into QueryRequest fields.

    Returns:
        (fields, debug, quota) tuple.

    Raises:
        ValueError: On an unknown flag or a flag missing its value.
    """
    fields: dict = {}
    debug = False
    quota = False
    i = 0

    while i < len(argv) and argv[i].startswith("--"):
        flag = argv[i]
        if flag == "--debug":
            debug = True
            i += 1
        elif flag == "--auth":
            fields["is_authenticated"] = True
            i += 1
        elif flag == "--quota":
            quota = True
            i += 1
        elif flag in VALUE_FLAGS:
            if i + 1 >= len(argv):
                raise ValueError(f"{flag} flag requires a value")
            fields[VALUE_FLAGS[flag]] = argv[i + 1]
            i += 2
        else:
            raise ValueError(f"Unknown flag: {flag}")

    # Join all arguments after flags as the search text (handles queries with spaces)
    search_text = " ".join(argv[i:])
    if search_text:
        fields["search_text"] = search_text

    return fields, debug, quota


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(USAGE)
        print("")
        print("Examples:")
        print('  python query.py "pasta"')
        print("  python query.py --category dinner --page 2")
        print('  python query.py --auth --difficulty easy "chicken"')
        sys.exit(1)

    try:
        cli_fields, debug_mode, quota_mode = parse_args(sys.argv[1:])
    except ValueError as e:
        print(f"Error: {e}")
        print(USAGE)
        sys.exit(1)

    if quota_mode:
        try:
            asyncio.run(_show_quota())
        except UpstreamFetchError as e:
            console.print(f"[red]✗ Recipe source unavailable: {e}[/red]")
            sys.exit(1)
        sys.exit(0)

    run_query(cli_fields, debug=debug_mode)
