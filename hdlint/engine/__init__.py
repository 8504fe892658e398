"""
hdlint engine package.

This package provides the rule engine: the syntax tree interface and query
helpers, the rule registry, the dispatcher and the reporters.
"""

from .types import (
    Diagnostic, RuleMeta, Rule, Severity, SkippedUnit, FatalEvent, RunResult,
    INTERNAL_RULE_FAILURE, UNIT_SKIPPED
)

from .tree import (
    NodeKind, NodeId, FileId, FileTable, SyntaxTree, ArenaTree, TreeBuilder,
    CompilationUnit, SyntaxTreeProvider, Design
)

from .registry import Registry, build_default_registry

from .dispatcher import Dispatcher, run

from .config import (
    EngineConfig, load_config, get_default_config, save_config, find_config_file
)

from .errors import HdlintError, RuleConfigurationError, ConfigError, TreeLoadError

__all__ = [
    # Types
    "Diagnostic", "RuleMeta", "Rule", "Severity", "SkippedUnit", "FatalEvent", "RunResult",
    "INTERNAL_RULE_FAILURE", "UNIT_SKIPPED",

    # Tree
    "NodeKind", "NodeId", "FileId", "FileTable", "SyntaxTree", "ArenaTree", "TreeBuilder",
    "CompilationUnit", "SyntaxTreeProvider", "Design",

    # Registry and dispatch
    "Registry", "build_default_registry", "Dispatcher", "run",

    # Config
    "EngineConfig", "load_config", "get_default_config", "save_config", "find_config_file",

    # Errors
    "HdlintError", "RuleConfigurationError", "ConfigError", "TreeLoadError",
]
