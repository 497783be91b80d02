# ABOUTME: Unit tests for the core track data structures.
# ABOUTME: Validates display titles, artist joining, year extraction, and qualified ids.

import pytest

from tagmatch.metadata.types import (
    LocalTrack,
    ProviderSource,
    RawCandidate,
    full_title,
    year_from_date,
)


class TestFullTitle:
    """Tests for the display title rule."""

    def test_appends_mix_name(self) -> None:
        """A mix name is appended in parentheses."""
        assert full_title("Strobe", "Radio Edit") == "Strobe (Radio Edit)"

    @pytest.mark.parametrize("mix", ["Original Mix", "original mix", "ORIGINAL MIX", " Original Mix "])
    def test_original_mix_is_omitted(self, mix: str) -> None:
        """'Original Mix' in any case leaves the bare name."""
        assert full_title("Strobe", mix) == "Strobe"

    @pytest.mark.parametrize("mix", [None, "", "   "])
    def test_missing_mix(self, mix: str | None) -> None:
        """No mix name leaves the bare name."""
        assert full_title("Strobe", mix) == "Strobe"

    def test_other_original_variants_are_kept(self) -> None:
        """Only the literal 'Original Mix' is omitted."""
        assert full_title("Strobe", "Original Club Mix") == "Strobe (Original Club Mix)"


class TestYearFromDate:
    """Tests for release-date year extraction."""

    def test_iso_date(self) -> None:
        assert year_from_date("2021-08-13") == 2021

    def test_year_only(self) -> None:
        assert year_from_date("1999") == 1999

    @pytest.mark.parametrize("value", [None, "", "unknown", "21-08-13"])
    def test_unparseable(self, value: str | None) -> None:
        assert year_from_date(value) is None


class TestRawCandidate:
    """Tests for RawCandidate properties."""

    def test_artist_joins_artists(self) -> None:
        """Multiple artists are joined with a comma."""
        candidate = RawCandidate(
            source=ProviderSource.TRAXSOURCE,
            id="1",
            title="Gypsy Woman",
            artists=["Crystal Waters", "Basement Boys"],
        )
        assert candidate.artist == "Crystal Waters, Basement Boys"

    def test_no_artists(self) -> None:
        """No artists gives an empty artist string."""
        assert RawCandidate(source=ProviderSource.BEATPORT, id="1", title="T").artist == ""

    def test_derived_fields(self, strobe_candidate: RawCandidate) -> None:
        """Display title, year, and qualified id are derived from stored fields."""
        assert strobe_candidate.full_title == "Strobe"
        assert strobe_candidate.year == 2009
        assert strobe_candidate.candidate_id == "beatport:17606729"

    def test_is_frozen(self, strobe_candidate: RawCandidate) -> None:
        """Candidates are immutable."""
        with pytest.raises(AttributeError):
            strobe_candidate.title = "Other"  # type: ignore[misc]


class TestLocalTrack:
    """Tests for LocalTrack."""

    def test_minimal_track(self) -> None:
        """Only id and title are required."""
        track = LocalTrack(id="1", title="Strobe")
        assert track.artist is None
        assert track.duration is None

    def test_provider_source_values(self) -> None:
        """Provider sources serialize to their lowercase names."""
        assert [s.value for s in ProviderSource] == ["beatport", "traxsource", "bandcamp"]
