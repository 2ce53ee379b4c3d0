#!/usr/bin/env python3
"""Ad hoc recipe search from the terminal.

Drives a SuggestionClient the way the browser UI does: adds each ingredient,
selects the matching mode, runs one search and renders the suggestions.

Usage:
    python query.py chicken rice "bell pepper"
    python query.py --mode few tomato basil
    python query.py --lang fr --mode flexible oeufs farine lait
    python query.py --debug chicken rice  # Print records as JSON

Modes:
- exact: only the listed ingredients (default)
- few: listed ingredients plus 1-2 extras
- flexible: at least half of the listed ingredients
"""

import asyncio
import sys

from rich.console import Console

from chef_assistant.client.completers import create_completer
from chef_assistant.client.display import render_suggestions
from chef_assistant.client.suggestion_client import SuggestionClient
from chef_assistant.models.models import MatchingMode
from chef_assistant.utils.config import config
from chef_assistant.utils.logger import logger

console = Console()

USAGE = 'Usage: python query.py [--mode exact|few|flexible] [--lang en|fr] [--debug] <ingredient> [<ingredient> ...]'


async def run_search(ingredients: list[str], mode: str, language: str) -> SuggestionClient:
    """Run a single search and return the client holding the results.

    Args:
        ingredients: Raw ingredient names (normalized by the client).
        mode: Matching mode value.
        language: Prompt language.
    """
    client = SuggestionClient(
        completer=create_completer(config),
        suggestion_count=config.SUGGESTION_COUNT,
        language=language,
    )
    for ingredient in ingredients:
        client.add_item(ingredient)
    client.set_mode(mode)

    with console.status(f"Searching recipes for: {', '.join(client.items)}..."):
        await client.search()
    return client


def run_query(ingredients: list[str], mode: str = "exact", language: str = "en", debug: bool = False) -> None:
    try:
        client = asyncio.run(run_search(ingredients, mode, language))
    except KeyboardInterrupt:
        logger.info("Query interrupted by user.")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Query execution failed: {e}", exc_info=True)
        sys.exit(1)

    if debug:
        console.print("[bold cyan]Debug Mode: Parsed Records[/bold cyan]")
        console.print_json(data=[record.model_dump(by_alias=True) for record in client.results])
        console.print()

    if not client.results:
        console.print("[yellow]No recipes suggested[/yellow]")
        return

    render_suggestions(client.results, console)


if __name__ == "__main__":
    mode = "exact"
    language = config.PROMPT_LANGUAGE
    debug_mode = False
    args = sys.argv[1:]

    while args and args[0].startswith("--"):
        flag = args.pop(0)
        if flag == "--debug":
            debug_mode = True
        elif flag in ("--mode", "--lang"):
            if not args:
                print(f"Error: {flag} flag requires a value")
                sys.exit(1)
            value = args.pop(0)
            if flag == "--mode":
                if value not in [m.value for m in MatchingMode]:
                    print(f"Error: unknown mode '{value}'")
                    sys.exit(1)
                mode = value
            else:
                if value not in ("en", "fr"):
                    print(f"Error: unknown language '{value}'")
                    sys.exit(1)
                language = value
        else:
            print(f"Unknown flag: {flag}")
            sys.exit(1)

    if not args:
        print("Error: No ingredients provided")
        print(USAGE)
        sys.exit(1)

    run_query(args, mode=mode, language=language, debug=debug_mode)
