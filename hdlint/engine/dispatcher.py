"""
Dispatcher: runs every registered rule against every compilation unit.

Work is split into (unit, rule) pairs drained by a thread pool. Each pair's
diagnostics are buffered as one batch; the final stream is assembled in the
canonical order (unit order, then registration order, then the rule's own
emission order) once every worker is done, so completion order never shows.
"""

import concurrent.futures
import logging
import os
import threading
import time
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .config import EngineConfig
from .fatal import FatalConditionObserver, NullFatalObserver
from .registry import Registry
from .tree import CompilationUnit
from .types import (INTERNAL_RULE_FAILURE, Diagnostic, FatalEvent, Rule, RunResult,
                    Severity, SkippedUnit)

logger = logging.getLogger(__name__)

Units = Union[Iterable[CompilationUnit], Mapping[str, CompilationUnit]]


class DiagnosticSink:
    """Thread-safe accumulator for per-(unit, rule) diagnostic batches."""

    def __init__(self):
        self._lock = threading.Lock()
        self._batches: Dict[Tuple[int, int], List[Diagnostic]] = {}
        self._rule_ms: Dict[str, float] = {}

    def add_batch(self, unit_index: int, rule_index: int, rule_id: str,
                  diagnostics: List[Diagnostic], elapsed_ms: float) -> None:
        with self._lock:
            self._batches[(unit_index, rule_index)] = diagnostics
            self._rule_ms[rule_id] = self._rule_ms.get(rule_id, 0.0) + elapsed_ms

    def batch(self, unit_index: int, rule_index: int) -> List[Diagnostic]:
        with self._lock:
            return list(self._batches.get((unit_index, rule_index), []))

    def rule_timing(self) -> Dict[str, float]:
        with self._lock:
            return dict(self._rule_ms)


def internal_failure(rule_id: str, unit: CompilationUnit, error: BaseException) -> Diagnostic:
    """Build the diagnostic that stands in for a rule that raised."""
    try:
        file_id, line = unit.tree.source_location(unit.root)
    except Exception:
        file_id, line = unit.file_id, 1
    return Diagnostic(
        rule_id=INTERNAL_RULE_FAILURE,
        severity=Severity.ERROR,
        message=f"rule '{rule_id}' failed: {type(error).__name__}: {error}",
        file_id=file_id,
        line=line,
        meta={"failed_rule": rule_id},
    )


class Dispatcher:
    """Runs a registry's rules over compilation units."""

    def __init__(self, registry: Registry, config: Optional[EngineConfig] = None,
                 observer: Optional[FatalConditionObserver] = None, jobs: Optional[int] = None):
        self.registry = registry
        self.config = config or EngineConfig()
        self.observer = observer or NullFatalObserver()
        self.jobs = jobs if jobs is not None else self.config.jobs

    def _worker_count(self, pairs: int) -> int:
        jobs = self.jobs or os.cpu_count() or 1
        return max(1, min(jobs, pairs))

    def evaluate_rule(self, rule: Rule, unit: CompilationUnit) -> List[Diagnostic]:
        """Run one rule on one unit, turning any fault into a diagnostic."""
        rule_id = rule.meta.id
        try:
            diagnostics = list(rule.evaluate(unit))
            for diagnostic in diagnostics:
                if not isinstance(diagnostic, Diagnostic):
                    raise TypeError(f"evaluate() yielded {type(diagnostic).__name__}, not Diagnostic")
        except Exception as e:
            logger.warning("Rule '%s' failed on %s: %s", rule_id, unit.name, e)
            logger.debug("Traceback for rule '%s'", rule_id, exc_info=True)
            return [internal_failure(rule_id, unit, e)]

        override = self.config.rule_severities.get(rule_id)
        if override is not None:
            diagnostics = [
                replace(d, severity=override) if d.rule_id == rule_id else d for d in diagnostics
            ]
        return diagnostics

    def _run_pair(self, sink: DiagnosticSink, unit_index: int, unit: CompilationUnit,
                  rule_index: int, rule: Rule) -> None:
        start = time.perf_counter()
        diagnostics = self.evaluate_rule(rule, unit)
        elapsed_ms = (time.perf_counter() - start) * 1000
        sink.add_batch(unit_index, rule_index, rule.meta.id, diagnostics, elapsed_ms)

    def _observe(self, unit: CompilationUnit) -> Tuple[List[FatalEvent], Optional[Diagnostic]]:
        try:
            return list(self.observer.observe(unit)), None
        except Exception as e:
            logger.warning("Fatal condition observer failed on %s: %s", unit.name, e)
            return [], internal_failure(self.observer.name, unit, e)

    def run(self, units: Units) -> RunResult:
        """
        Run every rule against every unit.

        Args:
            units: Compilation units in input order (a mapping is read in its
                iteration order)

        Returns:
            RunResult holding diagnostics in canonical order, skip notices
            for invalid units, fatal events and metrics
        """
        if isinstance(units, Mapping):
            units = list(units.values())
        else:
            units = list(units)
        rules = self.registry.get_all_rules()
        result = RunResult()
        start = time.perf_counter()

        # Units the provider could only partly build are skipped before any rule sees them
        runnable: List[Tuple[int, CompilationUnit]] = []
        for unit_index, unit in enumerate(units):
            if unit.valid:
                runnable.append((unit_index, unit))
                continue
            reason = "; ".join(unit.errors) if unit.errors else "syntax tree is incomplete"
            logger.info("Skipping %s: %s", unit.name, reason)
            result.skipped_units.append(SkippedUnit(unit=unit.name, file_id=unit.file_id, reason=reason))

        pairs = [
            (unit_index, unit, rule_index, rule)
            for unit_index, unit in runnable
            for rule_index, rule in enumerate(rules)
        ]
        sink = DiagnosticSink()
        workers = self._worker_count(len(pairs))

        if workers <= 1:
            for unit_index, unit, rule_index, rule in pairs:
                self._run_pair(sink, unit_index, unit, rule_index, rule)
        else:
            with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
                futures = [
                    executor.submit(self._run_pair, sink, unit_index, unit, rule_index, rule)
                    for unit_index, unit, rule_index, rule in pairs
                ]
                for future in futures:
                    future.result()

        for unit_index, unit in runnable:
            for rule_index in range(len(rules)):
                result.diagnostics.extend(sink.batch(unit_index, rule_index))
            events, failure = self._observe(unit)
            result.fatal_events.extend(events)
            if failure is not None:
                result.diagnostics.append(failure)

        result.metrics = {
            "units": len(units),
            "units_skipped": len(result.skipped_units),
            "rules": len(rules),
            "workers": workers,
            "total_ms": (time.perf_counter() - start) * 1000,
            "rule_ms": sink.rule_timing(),
        }
        logger.info("Ran %d rules on %d units: %d diagnostics, %d skipped, %d fatal",
                    len(rules), len(runnable), len(result.diagnostics),
                    len(result.skipped_units), len(result.fatal_events))
        return result


def run(registry: Registry, units: Units, config: Optional[EngineConfig] = None,
        observer: Optional[FatalConditionObserver] = None, jobs: Optional[int] = None) -> RunResult:
    """Run ``registry``'s rules over ``units``; see ``Dispatcher.run``."""
    return Dispatcher(registry, config=config, observer=observer, jobs=jobs).run(units)
