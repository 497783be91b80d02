# ABOUTME: Interactive review session for track candidate selection.
# ABOUTME: Displays ranked candidates in a Rich table and prompts the user to choose.

import click
from rich.console import Console
from rich.table import Table

from tagmatch.metadata.candidate import ScoredCandidate, TrackCandidateSet, TrackSelection
from tagmatch.metadata.scoring import duration_score, text_similarity
from tagmatch.metadata.types import LocalTrack


def format_duration(seconds: float | None) -> str:
    if not seconds:
        return "—"
    minutes, secs = divmod(int(round(seconds)), 60)
    return f"{minutes}:{secs:02d}"


def candidate_table(candidates: list[ScoredCandidate], title: str = "Candidates") -> Table:
    """Build the ranked candidate table shared by `match` and `search`."""
    table = Table(title=title)
    table.add_column("#", style="bold", width=3)
    table.add_column("Title")
    table.add_column("Artist")
    table.add_column("Length", justify="right")
    table.add_column("BPM", justify="right")
    table.add_column("Key")
    table.add_column("Label")
    table.add_column("Score", justify="right")
    table.add_column("Source")

    for i, scored in enumerate(candidates, start=1):
        candidate = scored.candidate
        table.add_row(
            str(i),
            candidate.full_title,
            candidate.artist or "—",
            format_duration(candidate.duration_secs),
            f"{candidate.bpm:g}" if candidate.bpm else "—",
            candidate.key or "—",
            candidate.label or "—",
            f"{scored.similarity_score:.0%}",
            candidate.source.value,
        )
    return table


class ReviewSession:
    """Interactive review for track candidates.

    Displays the local track and a table of candidates, then prompts the
    user to select one, mark the track as having no match, or skip it.
    """

    def __init__(
        self,
        *,
        console: Console | None = None,
        quiet: bool = False,
        threshold: float = 0.85,
    ) -> None:
        self._console = console or Console()
        self._quiet = quiet
        self._threshold = threshold

    def review(self, track: LocalTrack, candidates: TrackCandidateSet) -> TrackSelection | None:
        """Present candidates for user review and return the selection.

        Returns:
            A TrackSelection (possibly an explicit no-match), or None if the
            user skips the track.
        """
        if not candidates.candidates:
            return None

        # Quiet mode: auto-accept best candidate if above threshold
        if self._quiet:
            best = candidates.best
            if best is not None and best.similarity_score >= self._threshold:
                return TrackSelection.of(candidates, best)
            return None

        self._console.print(f"\n[bold]Current:[/bold] {track.title}")
        if track.artist:
            self._console.print(f"  Artist: {track.artist}")
        if track.duration:
            self._console.print(f"  Length: {format_duration(track.duration)}")

        self._console.print(candidate_table(candidates.candidates))
        default = "s"
        best = candidates.best
        if best is not None and best.similarity_score >= self._threshold:
            self._console.print("[green]Candidate 1 is a high-confidence match.[/green]")
            default = "1"

        prompt = "[1-N] Accept  [v1-vN] View details  [n] No match  [s] Skip"
        while True:
            choice = click.prompt(prompt, type=str, default=default).strip().lower()

            if choice == "s":
                return None
            if choice == "n":
                return TrackSelection.no_match(track.id)

            # Detail view: v<N>
            if choice.startswith("v"):
                scored = self._pick(candidates, choice[1:])
                if scored is not None and self._detail_prompt(track, scored):
                    return TrackSelection.of(candidates, scored)
                continue

            # Direct selection: <N>
            scored = self._pick(candidates, choice)
            if scored is not None:
                return TrackSelection.of(candidates, scored)

    @staticmethod
    def _pick(candidates: TrackCandidateSet, text: str) -> ScoredCandidate | None:
        try:
            idx = int(text) - 1
        except ValueError:
            return None
        if 0 <= idx < len(candidates.candidates):
            return candidates.candidates[idx]
        return None

    def _show_detail(self, track: LocalTrack, scored: ScoredCandidate) -> None:
        """Render a side-by-side comparison of the local track and a candidate."""
        candidate = scored.candidate
        detail = Table(title="Detail Comparison")
        detail.add_column("Field", style="bold")
        detail.add_column("Current → Candidate")
        detail.add_column("Match", justify="right")

        rows = [
            ("Title", track.title, candidate.full_title, f"{text_similarity(track.title, candidate.title):.0%}"),
            ("Artist", track.artist, candidate.artist, f"{text_similarity(track.artist, candidate.artist):.0%}"),
            (
                "Length",
                format_duration(track.duration),
                format_duration(candidate.duration_secs),
                f"{duration_score(track.duration, candidate.duration_secs):.0%}",
            ),
            ("BPM", track.bpm, candidate.bpm, ""),
            ("Key", track.key, candidate.key, ""),
            ("Genre", track.genre, candidate.genre, ""),
            ("Album", track.album, candidate.album, ""),
            ("Year", track.year, candidate.year, ""),
            ("Label", track.label, candidate.label, ""),
        ]
        for label, current, proposed, match in rows:
            cur = current or "—"
            prop = proposed or "—"
            detail.add_row(label, f"{cur} → {prop}", match)

        self._console.print(detail)
        if candidate.url:
            self._console.print(f"  [dim]{candidate.url}[/dim]")

    def _detail_prompt(self, track: LocalTrack, scored: ScoredCandidate) -> bool:
        """Show detail view and prompt to accept or go back."""
        self._show_detail(track, scored)
        detail_choice = click.prompt("[a] Accept  [b] Back to list", type=str, default="b")
        return detail_choice.strip().lower() == "a"
