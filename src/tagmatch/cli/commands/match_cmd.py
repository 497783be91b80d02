# ABOUTME: The `tagmatch match` command for batch candidate search and retagging.
# ABOUTME: Matches every track of a library export, reviews candidates, and writes merged tags.

import logging
import re
from pathlib import Path

import click
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
)

from tagmatch.cli.options import config_option, load_cli_config
from tagmatch.cli.review import ReviewSession
from tagmatch.config import TaggerConfig
from tagmatch.core.library import LibraryError, load_library
from tagmatch.core.pipeline import safe_stem, write_result
from tagmatch.core.tagger import Tagger
from tagmatch.metadata.errors import MetadataFetchError
from tagmatch.metadata.http import HttpClient, TagmatchHttpClient
from tagmatch.metadata.types import LocalTrack

logger = logging.getLogger(__name__)


def _create_tagger(
    config: TaggerConfig,
    http_client: HttpClient,
    *,
    fetch_artwork: bool = True,
) -> Tagger:
    """Create the tagger with every enabled provider."""
    return Tagger.from_config(config, http_client, fetch_artwork=fetch_artwork)


def _is_already_processed(track: LocalTrack, output_dir: Path) -> bool:
    """Check if a track's tags have already been written to the output directory.

    Matches by direct filename or collision-suffixed variants (_1, _2, etc.).
    """
    stem = safe_stem(track.id)
    if (output_dir / f"{stem}.json").exists():
        return True
    pattern = re.compile(re.escape(stem) + r"_\d+\.json")
    return any(pattern.fullmatch(child.name) for child in output_dir.iterdir())


def _make_progress(console: Console) -> Progress:
    """Create a Rich progress bar for batch searching."""
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.description}"),
        BarColumn(),
        MofNCompleteColumn(),
        TimeRemainingColumn(),
        console=console,
    )


@click.command()
@click.argument("library", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for merged tag files (default: ./tagmatch-output).",
)
@click.option(
    "-q",
    "--quiet",
    is_flag=True,
    default=False,
    help="Auto-accept high-confidence matches without prompting.",
)
@click.option(
    "-t",
    "--threshold",
    type=click.FloatRange(0.0, 1.0),
    default=None,
    help="Confidence cutoff for auto-accept (0.0-1.0, default from config: 0.85).",
)
@click.option(
    "--resume/--no-resume",
    default=True,
    help="Skip tracks already in output-dir (default: --resume).",
)
@click.option(
    "--artwork/--no-artwork",
    default=True,
    help="Download cover art for accepted matches (default: --artwork).",
)
@config_option
def match(
    library: Path,
    output_dir: Path | None,
    quiet: bool,
    threshold: float | None,
    resume: bool,
    artwork: bool,
    config_path: Path | None,
) -> None:
    """Match tracks of a LIBRARY JSON export against online catalogs."""
    console = Console()
    config = load_cli_config(config_path)

    if output_dir is None:
        output_dir = Path("tagmatch-output")
    if threshold is None:
        threshold = config.auto_accept_score

    try:
        tracks = load_library(library)
    except LibraryError as exc:
        console.print(f"[red]Error reading library:[/red] {exc}")
        raise SystemExit(1) from exc

    if not tracks:
        console.print("[yellow]No tracks found.[/yellow]")
        return

    # Resume: filter out already-processed tracks
    if resume and output_dir.exists():
        original_count = len(tracks)
        tracks = [t for t in tracks if not _is_already_processed(t, output_dir)]
        skipped_count = original_count - len(tracks)
        if skipped_count:
            console.print(
                f"[dim]Skipping {skipped_count} already-processed "
                f"track{'s' if skipped_count != 1 else ''}.[/dim]"
            )
        if not tracks:
            console.print("[green]All tracks already processed.[/green]")
            return

    http_client = TagmatchHttpClient(timeout=config.request_timeout)
    try:
        tagger = _create_tagger(config, http_client, fetch_artwork=artwork)
        counts = _run(console, tagger, tracks, output_dir, quiet, threshold)
    finally:
        http_client.close()

    matched, skipped, errors = counts
    console.print(
        f"\nDone: [green]{matched} matched[/green], "
        f"[yellow]{skipped} skipped[/yellow], "
        f"[red]{errors} error{'s' if errors != 1 else ''}[/red]"
    )


def _run(
    console: Console,
    tagger: Tagger,
    tracks: list[LocalTrack],
    output_dir: Path,
    quiet: bool,
    threshold: float,
) -> tuple[int, int, int]:
    """Search all tracks, then review and write them one by one."""
    total = len(tracks)
    with _make_progress(console) as progress:
        task_id = progress.add_task("Searching", total=total)
        results = tagger.find_candidates_for_many(
            tracks,
            on_progress=lambda done, _total: progress.update(task_id, completed=done),
        )

    review = ReviewSession(console=console, quiet=quiet, threshold=threshold)
    matched = skipped = errors = 0

    for position, (track, candidates) in enumerate(zip(tracks, results, strict=True), start=1):
        if not quiet:
            console.print(
                f"\n[bold][{position}/{total}] Processing:[/bold] "
                f"{track.artist or 'Unknown'} - {track.title}"
            )

        if candidates.has_error:
            if not quiet:
                console.print(f"  [red]Search failed:[/red] {candidates.error}")
            errors += 1
            continue

        if not candidates.candidates:
            if not quiet and candidates.found_nothing:
                console.print("  [yellow]No candidates found.[/yellow]")
            elif not quiet:
                console.print(
                    f"  [yellow]No candidates found.[/yellow] "
                    f"[dim]{candidates.raw_count} result(s) scored below the minimum.[/dim]"
                )
            skipped += 1
            continue

        selection = review.review(track, candidates)
        if selection is None or selection.is_no_match:
            if not quiet and selection is not None:
                console.print("  [dim]Marked as no match.[/dim]")
            skipped += 1
            continue

        try:
            merged = tagger.apply_selection(track, selection, candidates)
        except (MetadataFetchError, ValueError) as exc:
            if not quiet:
                console.print(f"  [red]Error applying match:[/red] {exc}")
            errors += 1
            continue
        write = write_result(track.id, merged, output_dir)
        if write.success:
            if not quiet:
                console.print(f"  [green]Written:[/green] {write.path}")
                if merged.preserved:
                    console.print(f"  [dim]Kept local:[/dim] {', '.join(merged.preserved)}")
            matched += 1
        else:
            if not quiet:
                console.print(f"  [red]Write failed:[/red] {write.error}")
            errors += 1

    return matched, skipped, errors
