"""
Boundary to the elaboration-stage fatal condition observer.

The dispatcher hands each linted unit to an observer once the syntactic rules
are done with it. Whatever the observer reports travels in its own channel
(``RunResult.fatal_events``) and is never mixed with rule diagnostics.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping

from .tree import CompilationUnit
from .types import FatalEvent


class FatalConditionObserver(ABC):
    """Observes a unit's wider design context for fatal elaboration failures."""

    name = "FATAL_LISTENER"

    @abstractmethod
    def observe(self, unit: CompilationUnit) -> Iterable[FatalEvent]:
        """Return the fatal conditions that apply to ``unit``."""


class NullFatalObserver(FatalConditionObserver):
    """Observer used when no elaboration context is available."""

    def observe(self, unit: CompilationUnit) -> Iterable[FatalEvent]:
        return []


class RecordedFatalObserver(FatalConditionObserver):
    """Replays elaboration failures recorded alongside a tree dump."""

    def __init__(self, conditions: Mapping[str, List[str]]):
        self._conditions: Dict[str, List[str]] = {name: list(msgs) for name, msgs in conditions.items()}

    def observe(self, unit: CompilationUnit) -> Iterable[FatalEvent]:
        return [
            FatalEvent(source=self.name, message=message, unit=unit.name, file_id=unit.file_id)
            for message in self._conditions.get(unit.name, [])
        ]
