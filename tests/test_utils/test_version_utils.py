from __future__ import annotations

import pytest
import semantic_version

from safenpm.exceptions import InvalidRangeError
from safenpm.utils.version_utils import (
    highest_version,
    is_latest_tag,
    parse_range,
    parse_semver,
    sort_versions,
)


@pytest.mark.unit
class TestParseSemver:
    """Tests for parse_semver."""

    @pytest.mark.parametrize("value", ["1.2.3", "0.0.1", "2.0.0-beta.1", "1.0.0+build.5"])
    def test_valid(self, value: str) -> None:
        """Test strict semver strings parse."""
        assert isinstance(parse_semver(value), semantic_version.Version)

    @pytest.mark.parametrize("value", ["1.2", "v1.2.3", "latest", "", "1.2.3.4"])
    def test_invalid(self, value: str) -> None:
        """Test non-semver strings yield None."""
        assert parse_semver(value) is None


@pytest.mark.unit
class TestSortVersions:
    """Tests for sort_versions and highest_version."""

    def test_semver_precedence(self) -> None:
        """Test numeric, not lexical, ordering with pre-releases first."""
        values = ["1.10.0", "1.2.0", "1.2.0-rc.1", "0.9.0"]

        assert sort_versions(values) == ["0.9.0", "1.2.0-rc.1", "1.2.0", "1.10.0"]

    def test_reverse_and_invalid_dropped(self) -> None:
        """Test reverse ordering drops invalid strings."""
        assert sort_versions(["1.0.0", "junk", "2.0.0"], reverse=True) == ["2.0.0", "1.0.0"]

    def test_highest(self) -> None:
        """Test highest_version picks the greatest."""
        assert highest_version(["1.9.9", "1.10.0", "1.10.0-beta"]) == "1.10.0"

    def test_highest_empty(self) -> None:
        """Test highest_version of nothing is None."""
        assert highest_version([]) is None
        assert highest_version(["junk"]) is None


@pytest.mark.unit
class TestIsLatestTag:
    """Tests for is_latest_tag."""

    @pytest.mark.parametrize("value", ["latest", "  latest "])
    def test_latest(self, value: str) -> None:
        """Test the latest keyword is recognised with surrounding whitespace."""
        assert is_latest_tag(value) is True

    @pytest.mark.parametrize("value", ["next", "*", "^1.0.0", "", "LATEST", "Latest"])
    def test_not_latest(self, value: str) -> None:
        """Test other expressions are not the latest keyword."""
        assert is_latest_tag(value) is False


@pytest.mark.unit
class TestParseRange:
    """Tests for parse_range."""

    @pytest.mark.parametrize(
        "expression,matching,not_matching",
        [
            ("^1.2.0", "1.9.0", "2.0.0"),
            ("~1.2.0", "1.2.9", "1.3.0"),
            ("1.x", "1.5.0", "2.0.0"),
            (">=1.0.0 <2.0.0", "1.5.0", "2.0.0"),
            ("1.0.0 - 1.5.0", "1.5.0", "1.5.1"),
            ("^1.0.0 || ^3.0.0", "3.1.0", "2.0.0"),
            ("*", "5.0.0", "5.0.0-rc.1"),
            ("1.2.3", "1.2.3", "1.2.4"),
        ],
    )
    def test_npm_ranges(self, expression: str, matching: str, not_matching: str) -> None:
        """Test npm range syntax is honoured."""
        spec = parse_range(expression)

        assert spec.match(semantic_version.Version(matching))
        assert not spec.match(semantic_version.Version(not_matching))

    def test_operator_gap_accepted(self) -> None:
        """Test whitespace between an operator and its version is tolerated."""
        spec = parse_range(">= 1.2.0  <  2.0.0")

        assert spec.match(semantic_version.Version("1.5.0"))
        assert not spec.match(semantic_version.Version("2.0.0"))

    @pytest.mark.parametrize("expression", ["~>1.2.0", "~> 1.2.0"])
    def test_tilde_arrow_alias(self, expression: str) -> None:
        """Test ``~>`` is read as a tilde range."""
        spec = parse_range(expression)

        assert spec.match(semantic_version.Version("1.2.9"))
        assert not spec.match(semantic_version.Version("1.3.0"))

    def test_empty_matches_any_release(self) -> None:
        """Test an empty range matches every release."""
        assert parse_range("").match(semantic_version.Version("9.9.9"))

    @pytest.mark.parametrize("expression", ["latest", "not-a-range!!", ">>1.0.0"])
    def test_invalid(self, expression: str) -> None:
        """Test invalid ranges raise InvalidRangeError."""
        with pytest.raises(InvalidRangeError) as exc_info:
            parse_range(expression, package_name="pkg")

        assert exc_info.value.range_spec == expression
        assert exc_info.value.package_name == "pkg"
        assert exc_info.value.message == f"Invalid semver range '{expression}'"
