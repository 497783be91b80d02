# ABOUTME: The `tagmatch search` command for a one-off candidate search.
# ABOUTME: Queries every enabled provider for a title and prints the ranked candidates.

from pathlib import Path

import click
from rich.console import Console

from tagmatch.cli.options import config_option, load_cli_config
from tagmatch.cli.review import candidate_table
from tagmatch.config import TaggerConfig
from tagmatch.core.tagger import Tagger
from tagmatch.metadata.http import HttpClient, TagmatchHttpClient
from tagmatch.metadata.types import LocalTrack

console = Console()


def _create_tagger(config: TaggerConfig, http_client: HttpClient) -> Tagger:
    return Tagger.from_config(config, http_client, fetch_artwork=False)


@click.command("search")
@click.argument("title")
@click.option("-a", "--artist", default=None, help="Artist name to narrow the search.")
@click.option(
    "-d",
    "--duration",
    type=click.FloatRange(min=0.0),
    default=None,
    help="Track length in seconds, used for scoring.",
)
@config_option
def search(
    title: str,
    artist: str | None,
    duration: float | None,
    config_path: Path | None,
) -> None:
    """Search online catalogs for TITLE and show ranked candidates."""
    config = load_cli_config(config_path)
    track = LocalTrack(id="search", title=title, artist=artist, duration=duration)

    http_client = TagmatchHttpClient(timeout=config.request_timeout)
    try:
        result = _create_tagger(config, http_client).find_candidates(track)
    finally:
        http_client.close()

    if result.has_error:
        console.print(f"[red]Search failed:[/red] {result.error}")
        raise SystemExit(1)

    if not result.candidates:
        if result.found_nothing:
            console.print("[yellow]No candidates found.[/yellow]")
        else:
            console.print(
                f"[yellow]No candidates found.[/yellow] "
                f"[dim]{result.raw_count} result(s) scored below the minimum.[/dim]"
            )
        return

    console.print(candidate_table(result.candidates))
    if result.auto_selected is not None:
        console.print(
            f"\n[green]Auto-accept:[/green] {result.auto_selected.candidate_id} "
            f"({result.auto_selected.similarity_score:.0%})"
        )
    console.print(f"\n[dim]{len(result.candidates)} candidate(s)[/dim]")
