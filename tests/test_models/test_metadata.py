"""Unit tests for safenpm.models.metadata."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from safenpm.models.metadata import PackageMetadata, parse_timestamp


@pytest.mark.unit
class TestParseTimestamp:
    """Tests for parse_timestamp."""

    def test_zulu(self) -> None:
        """Test the npm Z-suffixed format."""
        assert parse_timestamp("2024-01-02T03:04:05.678Z") == datetime(
            2024, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc
        )

    def test_offset_converted_to_utc(self) -> None:
        """Test explicit offsets are normalized to UTC."""
        result = parse_timestamp("2024-01-02T05:00:00+02:00")

        assert result == datetime(2024, 1, 2, 3, 0, tzinfo=timezone.utc)
        assert result.utcoffset() == timedelta(0)

    def test_naive_is_utc(self) -> None:
        """Test naive timestamps are taken as UTC."""
        assert parse_timestamp("2024-01-02T03:04:05") == datetime(
            2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc
        )

    @pytest.mark.parametrize("value", [None, "", "   ", "yesterday", 1700000000, {}])
    def test_unusable(self, value) -> None:
        """Test missing or invalid values yield None."""
        assert parse_timestamp(value) is None


@pytest.mark.unit
class TestPackageMetadata:
    """Tests for PackageMetadata."""

    def test_from_document(self) -> None:
        """Test the three registry sections are read."""
        metadata = PackageMetadata.from_document(
            "react",
            {
                "name": "react",
                "versions": {"18.2.0": {"name": "react"}},
                "time": {"created": "2011-10-26T17:46:21.942Z", "18.2.0": "2022-06-14T19:46:38.369Z"},
                "dist-tags": {"latest": "18.2.0", "next": "19.0.0-rc"},
            },
        )

        assert metadata.name == "react"
        assert metadata.candidate_versions() == ["18.2.0"]
        assert metadata.latest_tag == "18.2.0"
        assert metadata.published_at("18.2.0") == datetime(
            2022, 6, 14, 19, 46, 38, 369000, tzinfo=timezone.utc
        )
        assert str(metadata) == "react (1 versions)"

    def test_missing_sections(self) -> None:
        """Test absent sections read as empty."""
        metadata = PackageMetadata.from_document("x", {})

        assert metadata.candidate_versions() == []
        assert metadata.latest_tag is None
        assert metadata.published_at("1.0.0") is None

    def test_null_sections(self) -> None:
        """Test null sections read as empty."""
        metadata = PackageMetadata.from_document(
            "x", {"versions": None, "time": None, "dist-tags": None}
        )

        assert metadata.candidate_versions() == []

    @pytest.mark.parametrize("key", ["versions", "time", "dist-tags"])
    def test_non_object_section(self, key: str) -> None:
        """Test a section of the wrong type raises ValueError."""
        with pytest.raises(ValueError, match=key):
            PackageMetadata.from_document("x", {key: "oops"})

    def test_non_string_latest(self) -> None:
        """Test a non-string latest tag is ignored."""
        metadata = PackageMetadata.from_document("x", {"dist-tags": {"latest": 1}})

        assert metadata.latest_tag is None

    def test_pseudo_keys_excluded(self) -> None:
        """Test created/modified never count as versions."""
        metadata = PackageMetadata(name="x", versions={"created": {}, "modified": {}, "1.0.0": {}})

        assert metadata.candidate_versions() == ["1.0.0"]

    def test_frozen(self) -> None:
        """Test metadata snapshots are immutable."""
        metadata = PackageMetadata(name="x")

        with pytest.raises(AttributeError):
            metadata.name = "y"  # type: ignore[misc]
