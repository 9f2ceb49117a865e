"""Unit tests for safenpm.models.resolution."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from safenpm.constants import DEFAULT_REGISTRY, NO_MATCH_REASON
from safenpm.models.resolution import (
    ResolutionOutcome,
    ResolutionReport,
    ResolutionRequest,
    ResolutionStatus,
)

CUTOFF = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.mark.unit
class TestResolutionRequest:
    """Tests for ResolutionRequest."""

    def test_defaults(self) -> None:
        """Test registry and ignore_age defaults."""
        request = ResolutionRequest(name="react", range="^18", cutoff_date=CUTOFF)

        assert request.registry == DEFAULT_REGISTRY
        assert request.ignore_age is False


@pytest.mark.unit
class TestResolutionOutcome:
    """Tests for ResolutionOutcome constructors and rendering."""

    def test_resolved(self) -> None:
        """Test the resolved constructor."""
        outcome = ResolutionOutcome.resolved("react", "^18", "18.2.0")

        assert outcome.status is ResolutionStatus.RESOLVED
        assert outcome.ok is True
        assert outcome.reason is None
        assert str(outcome) == "react@18.2.0"

    def test_no_match(self) -> None:
        """Test the no-match constructor carries the default reason."""
        outcome = ResolutionOutcome.no_match("react", "^19", ignored_age=True)

        assert outcome.status is ResolutionStatus.NO_MATCH
        assert outcome.ok is False
        assert outcome.reason == NO_MATCH_REASON
        assert outcome.ignored_age is True
        assert str(outcome) == f"react@^19: {NO_MATCH_REASON}"

    def test_error(self) -> None:
        """Test the error constructor."""
        outcome = ResolutionOutcome.error("ghost", "*", "Package 'ghost' not found in registry")

        assert outcome.status is ResolutionStatus.ERROR
        assert outcome.version is None

    def test_to_json(self) -> None:
        """Test JSON rendering uses plain values."""
        outcome = ResolutionOutcome.resolved("a", "*", "1.0.0", ignored_age=True)

        assert outcome.to_json() == {
            "name": "a",
            "range": "*",
            "status": "resolved",
            "version": "1.0.0",
            "reason": None,
            "ignored_age": True,
        }

    def test_status_is_str(self) -> None:
        """Test status values compare equal to their strings."""
        assert ResolutionStatus.NO_MATCH == "no_match"


@pytest.mark.unit
class TestResolutionReport:
    """Tests for ResolutionReport."""

    @pytest.fixture
    def report(self) -> ResolutionReport:
        return ResolutionReport(
            outcomes=[
                ResolutionOutcome.resolved("b", "*", "2.0.0"),
                ResolutionOutcome.no_match("c", "^1"),
                ResolutionOutcome.resolved("a", "*", "1.0.0"),
                ResolutionOutcome.error("d", "*", "boom"),
            ],
            cutoff_date=CUTOFF,
        )

    def test_resolved_in_input_order(self, report: ResolutionReport) -> None:
        """Test resolved keeps input order rather than sorting."""
        assert list(report.resolved.items()) == [("b", "2.0.0"), ("a", "1.0.0")]

    def test_failures(self, report: ResolutionReport) -> None:
        """Test failures lists no-match and error outcomes in order."""
        assert [o.name for o in report.failures] == ["c", "d"]
        assert report.has_failures is True
        assert len(report) == 4

    def test_to_json(self, report: ResolutionReport) -> None:
        """Test the JSON document shape."""
        data = report.to_json()

        assert data["cutoff"] == "2024-01-01T00:00:00+00:00"
        assert data["resolved"] == {"b": "2.0.0", "a": "1.0.0"}
        assert [f["name"] for f in data["failures"]] == ["c", "d"]
        assert len(data["packages"]) == 4

    def test_empty(self) -> None:
        """Test an empty report."""
        report = ResolutionReport()

        assert report.resolved == {}
        assert report.has_failures is False
        assert report.to_json()["cutoff"] is None
