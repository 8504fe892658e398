"""
JSON schema for hdlint's machine-readable output.

This module provides the schema definitions and the helpers that turn a
``RunResult`` into a JSON-ready document for downstream tools.
"""

from typing import Any, Callable, Dict, List

import jsonschema

from .. import __version__
from .types import Diagnostic, FatalEvent, RunResult, SkippedUnit

PROTOCOL_VERSION = "1"
ENGINE_VERSION = __version__

PathResolver = Callable[[int], str]

SEVERITY_VALUES = ["info", "warning", "error", "fatal"]

DIAGNOSTIC_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "rule_id": {"type": "string", "minLength": 1},
        "severity": {"type": "string", "enum": SEVERITY_VALUES},
        "message": {"type": "string"},
        "file_path": {"type": "string"},
        "line": {"type": "integer", "minimum": 1},
        "meta": {"type": "object"},
    },
    "required": ["rule_id", "severity", "message", "file_path", "line"],
    "additionalProperties": False,
}

SKIPPED_UNIT_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "unit": {"type": "string"},
        "file_path": {"type": "string"},
        "reason": {"type": "string"},
    },
    "required": ["unit", "file_path", "reason"],
    "additionalProperties": False,
}

FATAL_EVENT_JSON_SCHEMA = {
    "type": "object",
    "properties": {
        "source": {"type": "string"},
        "message": {"type": "string"},
        "unit": {"type": "string"},
        "file_path": {"type": ["string", "null"]},
        "line": {"type": ["integer", "null"]},
    },
    "required": ["source", "message", "unit"],
    "additionalProperties": False,
}

RUN_OUTPUT_SCHEMA = {
    "type": "object",
    "properties": {
        "protocol": {"type": "string", "const": PROTOCOL_VERSION},
        "engine_version": {"type": "string"},
        "units_scanned": {"type": "integer", "minimum": 0},
        "rules_run": {"type": "integer", "minimum": 0},
        "diagnostics": {"type": "array", "items": DIAGNOSTIC_JSON_SCHEMA},
        "skipped_units": {"type": "array", "items": SKIPPED_UNIT_JSON_SCHEMA},
        "fatal_events": {"type": "array", "items": FATAL_EVENT_JSON_SCHEMA},
        "metrics": {"type": "object"},
    },
    "required": ["protocol", "engine_version", "units_scanned", "rules_run",
                 "diagnostics", "skipped_units", "fatal_events"],
}


def diagnostic_to_json(diagnostic: Diagnostic, resolve_path: PathResolver) -> Dict[str, Any]:
    data = {
        "rule_id": diagnostic.rule_id,
        "severity": diagnostic.severity.value,
        "message": diagnostic.message,
        "file_path": resolve_path(diagnostic.file_id),
        "line": diagnostic.line,
    }
    if diagnostic.meta:
        data["meta"] = dict(diagnostic.meta)
    return data


def skipped_unit_to_json(skipped: SkippedUnit, resolve_path: PathResolver) -> Dict[str, Any]:
    return {"unit": skipped.unit, "file_path": resolve_path(skipped.file_id), "reason": skipped.reason}


def fatal_event_to_json(event: FatalEvent, resolve_path: PathResolver) -> Dict[str, Any]:
    return {
        "source": event.source,
        "message": event.message,
        "unit": event.unit,
        "file_path": resolve_path(event.file_id) if event.file_id is not None else None,
        "line": event.line,
    }


def run_result_to_json(result: RunResult, resolve_path: PathResolver, rules_run: int) -> Dict[str, Any]:
    """Build the JSON output document for a run."""
    return {
        "protocol": PROTOCOL_VERSION,
        "engine_version": ENGINE_VERSION,
        "units_scanned": result.metrics.get("units", 0),
        "rules_run": rules_run,
        "diagnostics": [diagnostic_to_json(d, resolve_path) for d in result.diagnostics],
        "skipped_units": [skipped_unit_to_json(s, resolve_path) for s in result.skipped_units],
        "fatal_events": [fatal_event_to_json(e, resolve_path) for e in result.fatal_events],
        "metrics": result.metrics,
    }


def validate_run_output(output: Dict[str, Any]) -> List[str]:
    """
    Validate a run output document against the schema.

    Args:
        output: Output document built by ``run_result_to_json``

    Returns:
        List of validation errors (empty if valid)
    """
    validator = jsonschema.Draft7Validator(RUN_OUTPUT_SCHEMA)
    errors = []
    for error in sorted(validator.iter_errors(output), key=lambda e: list(e.path)):
        location = "/".join(str(part) for part in error.path) or "<root>"
        errors.append(f"{location}: {error.message}")
    return errors
