# ABOUTME: The `tagmatch score` command for inspecting how a candidate would be scored.
# ABOUTME: Prints the title, artist, and duration sub-scores and the weighted total.

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from tagmatch.cli.options import config_option, load_cli_config
from tagmatch.metadata.scoring import CandidateScorer
from tagmatch.metadata.types import ProviderSource, RawCandidate

console = Console()


@click.command("score")
@click.option("--title", required=True, help="Local track title.")
@click.option("--artist", default=None, help="Local track artist.")
@click.option("--duration", type=click.FloatRange(min=0.0), default=None, help="Local length (s).")
@click.option("--cand-title", required=True, help="Candidate title.")
@click.option(
    "--cand-artist",
    multiple=True,
    help="Candidate artist (repeat for several artists).",
)
@click.option(
    "--cand-duration",
    type=click.FloatRange(min=0.0),
    default=None,
    help="Candidate length (s).",
)
@config_option
def score(
    title: str,
    artist: str | None,
    duration: float | None,
    cand_title: str,
    cand_artist: tuple[str, ...],
    cand_duration: float | None,
    config_path: Path | None,
) -> None:
    """Score a candidate against a local track without any network access."""
    config = load_cli_config(config_path)
    scorer = CandidateScorer(config.weights)
    candidate = RawCandidate(
        source=ProviderSource.BEATPORT,
        id="manual",
        title=cand_title,
        artists=list(cand_artist),
        duration_secs=cand_duration,
    )

    title_sim, artist_sim, duration_sim = scorer.components(title, artist, duration, candidate)
    total = scorer.combine(title_sim, artist_sim, duration_sim)
    weights = scorer.weights

    table = Table(title="Score breakdown")
    table.add_column("Component", style="bold")
    table.add_column("Similarity", justify="right")
    table.add_column("Weight", justify="right")
    table.add_row("Title", f"{title_sim:.3f}", f"{weights.title:g}")
    table.add_row("Artist", f"{artist_sim:.3f}", f"{weights.artist:g}")
    table.add_row("Duration", f"{duration_sim:.3f}", f"{weights.duration:g}")
    console.print(table)

    if total >= config.auto_accept_score:
        verdict = "auto-accept"
    elif total >= config.min_score:
        verdict = "candidate"
    else:
        verdict = "rejected"
    console.print(f"Score: [bold]{total:.3f}[/bold] ({verdict})")
