#!/usr/bin/env python
"""
indepth command line.

Usage:
    indepth transcript VIDEO_ID [--language en]
    indepth taxonomy show [--version v1.3]
    indepth analysis apply RESPONSE_JSON --video-id VIDEO_ID

Examples:
    # Fetch a transcript (served from the SurrealDB cache when present)
    indepth transcript dQw4w9WgXcQ

    # Show the latest taxonomy
    indepth taxonomy show

    # Run the post-analysis handlers on a saved LLM response
    indepth analysis apply response.json --video-id dQw4w9WgXcQ
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from indepth.lib.config_manager import config
from indepth.lib.logging_config import log_with_context, setup_logging
from indepth.services.analysis.models import parse_llm_response
from indepth.services.factory import create_handler_chain, create_transcript_provider
from indepth.services.surrealdb.driver import close_db
from indepth.services.taxonomy.repository import SurrealTaxonomyRepository
from indepth.services.taxonomy.version import InvalidTaxonomyVersion, TaxonomyVersion

logger = logging.getLogger(__name__)

app = typer.Typer(help="Video transcript analysis tools")
taxonomy_app = typer.Typer(help="Inspect the achievement taxonomy")
analysis_app = typer.Typer(help="Post-process LLM analyses")
app.add_typer(taxonomy_app, name="taxonomy")
app.add_typer(analysis_app, name="analysis")

console = Console(force_terminal=True, force_interactive=False, width=120)


@app.callback()
def main() -> None:
    """Configure logging from LOG_LEVEL and LOG_FORMAT."""
    setup_logging(
        "indepth-cli",
        level=config.get("LOG_LEVEL", "INFO"),
        structured=config.get("LOG_FORMAT", "json") == "json",
    )


async def _with_db(coro):
    try:
        return await coro
    finally:
        await close_db()


@app.command()
def transcript(
    video_id: str = typer.Argument(..., help="YouTube video ID"),
    language: Optional[list[str]] = typer.Option(
        None,
        "--language",
        "-l",
        help="Preferred language, repeatable (default: TRANSCRIPT_PREFERRED_LANGUAGES)",
    ),
):
    """Fetch a transcript through the caching provider."""
    languages = language or config.get_list("TRANSCRIPT_PREFERRED_LANGUAGES", ["en"])

    async def run():
        provider = create_transcript_provider()
        result = await provider.get_transcript(video_id, languages)
        # Let the background cache write finish before the loop closes
        while provider.pending_writes:
            await asyncio.sleep(0.05)
        return result

    result = asyncio.run(_with_db(run()))

    if not result.is_success:
        console.print(f"[red]Failed: {result.error}[/]")
        raise typer.Exit(code=1)
    if result.data is None:
        console.print(f"[yellow]No transcript available for {video_id}[/]")
        raise typer.Exit(code=1)

    data = result.data
    console.print(
        f"[bold]{video_id}[/] language={data.language} "
        f"segments={len(data.segments)} chars={len(data.text)}"
    )
    console.print(data.text)


@taxonomy_app.command("show")
def taxonomy_show(
    version: Optional[str] = typer.Option(
        None, "--version", "-v", help="Version to show, e.g. v1.2 (default: latest)"
    ),
):
    """Print a taxonomy version."""
    try:
        wanted = TaxonomyVersion.parse(version) if version else None
    except InvalidTaxonomyVersion as e:
        console.print(f"[red]{e}[/]")
        raise typer.Exit(code=2)

    repository = SurrealTaxonomyRepository()
    if wanted is None:
        result = asyncio.run(_with_db(repository.get_latest()))
    else:
        result = asyncio.run(_with_db(repository.get_version(wanted)))

    if not result.is_success:
        console.print(f"[red]Failed: {result.error}[/]")
        raise typer.Exit(code=1)
    if result.data is None:
        console.print("[yellow]Taxonomy version not found[/]")
        raise typer.Exit(code=1)

    document = result.data
    console.print(f"[bold green]Taxonomy {document.version}[/] (updated {document.updated_at})")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Domain")
    table.add_column("Category")
    table.add_column("Subcategories")
    table.add_column("Attributes")
    for domain, group in document.tree.items():
        for category, node in group.items():
            table.add_row(
                domain,
                category,
                ", ".join(node.subcategories),
                ", ".join(node.attributes),
            )
    console.print(table)

    if document.changes:
        console.print("[bold]Changes:[/]")
        for change in document.changes:
            console.print(f"  - {change}")


@analysis_app.command("apply")
def analysis_apply(
    response_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="LLM response JSON"),
    video_id: str = typer.Option(..., "--video-id", help="Video the response belongs to"),
):
    """Parse an LLM response and run the post-analysis handlers on it."""
    try:
        analysis = parse_llm_response(response_file.read_text(encoding="utf-8"), video_id)
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Invalid LLM response: {e}[/]")
        raise typer.Exit(code=2)

    log_with_context(
        logger,
        "info",
        f"Running handlers for video {video_id}",
        video_id=video_id,
        achievements=len(analysis.achievements),
        proposals=len(analysis.proposals),
    )

    chain = create_handler_chain()
    context = asyncio.run(_with_db(chain.run(analysis)))

    console.print(f"[bold]{video_id}[/] taxonomy_version={context.taxonomy_version or '-'}")
    if context.failures:
        console.print(f"[yellow]Failures ({len(context.failures)}):[/]")
        for failure in context.failures:
            console.print(f"  - {failure.handler}: {failure.message}")
        raise typer.Exit(code=1)
    console.print("[green]All handlers succeeded[/]")


if __name__ == "__main__":
    app()
