"""
Core types for the hdlint engine.

This module provides the shared dataclasses and protocols used by the
dispatcher, the reporter and the rules.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Protocol, TYPE_CHECKING

from .errors import ConfigError

if TYPE_CHECKING:
    from .tree import CompilationUnit, FileId


# Reserved ids for diagnostics produced by the engine itself rather than a rule
INTERNAL_RULE_FAILURE = "INTERNAL_RULE_FAILURE"
UNIT_SKIPPED = "UNIT_SKIPPED"
RESERVED_RULE_IDS = frozenset({INTERNAL_RULE_FAILURE, UNIT_SKIPPED})


class Severity(str, Enum):
    """Diagnostic severity, ordered from least to most severe."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @property
    def label(self) -> str:
        """Capitalized name used in rendered output (e.g. ``Error``)."""
        return self.value.capitalize()

    def at_least(self, other: "Severity") -> bool:
        return self.rank >= other.rank

    @classmethod
    def parse(cls, value: Any) -> "Severity":
        """Parse a severity from a config value; accepts ``warn`` as an alias."""
        if isinstance(value, Severity):
            return value
        name = str(value).strip().lower()
        name = _SEVERITY_ALIASES.get(name, name)
        try:
            return cls(name)
        except ValueError:
            raise ConfigError(f"Unknown severity '{value}'") from None


_SEVERITY_RANK = {
    Severity.INFO: 0,
    Severity.WARNING: 1,
    Severity.ERROR: 2,
    Severity.FATAL: 3,
}

_SEVERITY_ALIASES = {"warn": "warning", "err": "error"}


@dataclass(frozen=True)
class RuleMeta:
    """Metadata about a rule.

    Attributes:
        id: Stable, globally unique rule identifier (e.g. "PROTOTYPE_RETURN_DATA_TYPE")
        category: Rule category for grouping
        description: Human-readable description
        severity: Severity the rule assigns to its diagnostics by default
    """
    id: str
    category: str
    description: str = ""
    severity: Severity = Severity.ERROR


@dataclass(frozen=True)
class Diagnostic:
    """A reported rule violation. Immutable once constructed."""
    rule_id: str
    severity: Severity
    message: str
    file_id: "FileId"
    line: int
    meta: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class SkippedUnit:
    """Notice that a compilation unit was not linted because its tree is invalid."""
    unit: str
    file_id: "FileId"
    reason: str


@dataclass(frozen=True)
class FatalEvent:
    """A fatal elaboration condition reported by the fatal condition observer.

    Kept apart from ordinary diagnostics; never merged into that stream.
    """
    source: str
    message: str
    unit: str
    file_id: Optional["FileId"] = None
    line: Optional[int] = None


@dataclass
class RunResult:
    """Everything one dispatcher run produced."""
    diagnostics: List[Diagnostic] = field(default_factory=list)
    skipped_units: List[SkippedUnit] = field(default_factory=list)
    fatal_events: List[FatalEvent] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)

    def diagnostics_for(self, rule_id: str) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.rule_id == rule_id]

    def max_severity(self) -> Optional[Severity]:
        if not self.diagnostics:
            return None
        return max((d.severity for d in self.diagnostics), key=lambda s: s.rank)


class Rule(Protocol):
    """Protocol for all rules in the engine.

    Rules are stateless: they read the unit passed to ``evaluate`` and must not
    keep a reference to it once they return. A missing optional child means
    the rule does not apply there, never that the rule failed.
    """
    meta: RuleMeta

    def evaluate(self, unit: "CompilationUnit") -> Iterable[Diagnostic]:
        """Check one compilation unit.

        Args:
            unit: Compilation unit holding the tree and its root node

        Returns:
            Iterable of diagnostics, in the rule's own emission order
        """
        ...
