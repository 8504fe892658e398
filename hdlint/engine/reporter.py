"""
Rendering of run results and the exit-status policy.

Rules and the dispatcher only ever return values; this module is the one
place that turns them into text for a user or a tool.
"""

import json
from abc import ABC, abstractmethod
from typing import Callable, List, Optional, TextIO

from .errors import HdlintError
from .schema import run_result_to_json, validate_run_output
from .types import UNIT_SKIPPED, Diagnostic, FatalEvent, RunResult, Severity, SkippedUnit

PathResolver = Callable[[int], str]


def render_diagnostic(diagnostic: Diagnostic, resolve_path: PathResolver) -> str:
    """Render ``<Severity> <RULE_ID>: <message> at <path>:<line>``."""
    path = resolve_path(diagnostic.file_id)
    return f"{diagnostic.severity.label} {diagnostic.rule_id}: {diagnostic.message} at {path}:{diagnostic.line}"


def render_skipped(skipped: SkippedUnit, resolve_path: PathResolver) -> str:
    path = resolve_path(skipped.file_id)
    return f"{Severity.WARNING.label} {UNIT_SKIPPED}: compilation unit '{skipped.unit}' not linted: {skipped.reason} ({path})"


def render_fatal(event: FatalEvent, resolve_path: PathResolver) -> str:
    line = f"{Severity.FATAL.label} {event.source}: {event.message}"
    if event.file_id is not None:
        path = resolve_path(event.file_id)
        line += f" at {path}:{event.line}" if event.line else f" in {path}"
    return line


def exit_status(result: RunResult, threshold: Severity = Severity.ERROR, fail_on_fatal: bool = True) -> int:
    """0 when nothing reaches ``threshold`` (and no fatal event counts), 1 otherwise."""
    if fail_on_fatal and result.fatal_events:
        return 1
    if any(d.severity.at_least(threshold) for d in result.diagnostics):
        return 1
    return 0


class Reporter(ABC):
    """Turns a run result into output and decides the exit status."""

    def __init__(self, resolve_path: PathResolver, threshold: Severity = Severity.ERROR,
                 fail_on_fatal: bool = True):
        self.resolve_path = resolve_path
        self.threshold = threshold
        self.fail_on_fatal = fail_on_fatal

    @abstractmethod
    def render(self, result: RunResult) -> str:
        """Render the whole result as one string."""

    def report(self, result: RunResult, stream: TextIO) -> int:
        """Write the rendered result to ``stream`` and return the exit status."""
        output = self.render(result)
        if output:
            stream.write(output)
            if not output.endswith("\n"):
                stream.write("\n")
        return exit_status(result, self.threshold, self.fail_on_fatal)


class TextReporter(Reporter):
    """One line per diagnostic, then skip notices, then fatal events."""

    def render(self, result: RunResult) -> str:
        lines: List[str] = [render_diagnostic(d, self.resolve_path) for d in result.diagnostics]
        lines.extend(render_skipped(s, self.resolve_path) for s in result.skipped_units)
        lines.extend(render_fatal(e, self.resolve_path) for e in result.fatal_events)
        return "\n".join(lines)


class JsonReporter(Reporter):
    """Machine-readable output document, optionally validated against the schema."""

    def __init__(self, resolve_path: PathResolver, threshold: Severity = Severity.ERROR,
                 fail_on_fatal: bool = True, rules_run: Optional[int] = None, validate: bool = False):
        super().__init__(resolve_path, threshold, fail_on_fatal)
        self.rules_run = rules_run
        self.validate = validate

    def render(self, result: RunResult) -> str:
        rules_run = self.rules_run if self.rules_run is not None else result.metrics.get("rules", 0)
        output = run_result_to_json(result, self.resolve_path, rules_run)
        if self.validate:
            errors = validate_run_output(output)
            if errors:
                raise HdlintError("Output failed schema validation: " + "; ".join(errors))
        return json.dumps(output, indent=2)


REPORTERS = {
    "text": TextReporter,
    "json": JsonReporter,
}
