"""
Resolution request and result models for safenpm.

A :class:`ResolutionRequest` describes one package to resolve. Each
request yields exactly one :class:`ResolutionOutcome`: a resolved version,
a "nothing qualifies" signal, or an error with a human-readable reason.
Outcomes are collected, in input order, into a :class:`ResolutionReport`.
"""

from __future__ import annotations

from enum import Enum
from datetime import datetime
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from safenpm.constants import DEFAULT_REGISTRY, NO_MATCH_REASON


class ResolutionStatus(str, Enum):
    """Tag of a per-package resolution outcome."""

    RESOLVED = "resolved"
    NO_MATCH = "no_match"
    ERROR = "error"


@dataclass(frozen=True)
class ResolutionRequest:
    """Everything needed to resolve one package.

    Attributes:
        name: Package name, e.g. ``"lodash"`` or ``"@types/node"``.
        range: npm range expression, or the literal ``"latest"``.
        cutoff_date: Aware datetime; versions published after it are too
            young.
        registry: Registry endpoint. Ignored by the fixture backend.
        ignore_age: Skip the age filter for this package.
    """

    name: str
    range: str
    cutoff_date: datetime
    registry: str = DEFAULT_REGISTRY
    ignore_age: bool = False


@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of resolving a single package.

    Attributes:
        name: Package name.
        range: Range that was requested.
        status: Which of the three outcomes occurred.
        version: Chosen version (only for ``RESOLVED``).
        reason: Why nothing was chosen (``NO_MATCH`` and ``ERROR``).
        ignored_age: Whether the age filter was bypassed.
    """

    name: str
    range: str
    status: ResolutionStatus
    version: Optional[str] = None
    reason: Optional[str] = None
    ignored_age: bool = False

    @classmethod
    def resolved(
        cls, name: str, range: str, version: str, *, ignored_age: bool = False
    ) -> "ResolutionOutcome":
        return cls(
            name=name,
            range=range,
            status=ResolutionStatus.RESOLVED,
            version=version,
            ignored_age=ignored_age,
        )

    @classmethod
    def no_match(
        cls, name: str, range: str, *, ignored_age: bool = False
    ) -> "ResolutionOutcome":
        return cls(
            name=name,
            range=range,
            status=ResolutionStatus.NO_MATCH,
            reason=NO_MATCH_REASON,
            ignored_age=ignored_age,
        )

    @classmethod
    def error(
        cls, name: str, range: str, reason: str, *, ignored_age: bool = False
    ) -> "ResolutionOutcome":
        return cls(
            name=name,
            range=range,
            status=ResolutionStatus.ERROR,
            reason=reason,
            ignored_age=ignored_age,
        )

    @property
    def ok(self) -> bool:
        """True when a version was resolved."""
        return self.status is ResolutionStatus.RESOLVED

    def to_json(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "range": self.range,
            "status": self.status.value,
            "version": self.version,
            "reason": self.reason,
            "ignored_age": self.ignored_age,
        }

    def __str__(self) -> str:
        if self.ok:
            return f"{self.name}@{self.version}"
        return f"{self.name}@{self.range}: {self.reason}"


@dataclass
class ResolutionReport:
    """Per-package outcomes of a batch, in the caller's input order.

    Attributes:
        outcomes: One outcome per requested package.
        cutoff_date: Cutoff the batch was resolved against.
    """

    outcomes: List[ResolutionOutcome] = field(default_factory=list)
    cutoff_date: Optional[datetime] = None

    @property
    def resolved(self) -> Dict[str, str]:
        """Name to resolved version, in input order."""
        return {o.name: o.version for o in self.outcomes if o.ok and o.version}

    @property
    def failures(self) -> List[ResolutionOutcome]:
        """Outcomes that did not produce a version, in input order."""
        return [o for o in self.outcomes if not o.ok]

    @property
    def has_failures(self) -> bool:
        return any(not o.ok for o in self.outcomes)

    def to_json(self) -> Dict[str, Any]:
        return {
            "cutoff": self.cutoff_date.isoformat() if self.cutoff_date else None,
            "resolved": self.resolved,
            "failures": [o.to_json() for o in self.failures],
            "packages": [o.to_json() for o in self.outcomes],
        }

    def __len__(self) -> int:
        return len(self.outcomes)
