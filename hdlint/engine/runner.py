"""
CLI runner for the hdlint engine.

This module provides the command-line entry point: it loads the configuration
and the design, builds the rule registry, runs the dispatcher and hands the
result to a reporter.
"""

import argparse
import logging
import sys
from typing import List, Optional

from .config import EngineConfig, find_config_file, load_config
from .dispatcher import Dispatcher
from .errors import ConfigError, HdlintError, RuleConfigurationError
from .fatal import RecordedFatalObserver
from .loader import load_design
from .registry import DEFAULT_RULE_PACKAGES, Registry, build_default_registry
from .reporter import REPORTERS, JsonReporter
from .types import Severity

logger = logging.getLogger(__name__)

EXIT_USAGE = 2


def setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hdlint",
        description="Rule-based lint for Verilog/SystemVerilog syntax trees",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  hdlint rtl/                                  lint every source and tree dump under rtl/
  hdlint build/trees/top.json --format json    lint a tree dump, JSON output
  hdlint rtl/ --rules "PROTOTYPE_*" --jobs 4
        """
    )
    parser.add_argument("paths", nargs="*", help="Sources, tree dumps, or directories")
    parser.add_argument("--config", help="Config file (default: search upwards from the first path)")
    parser.add_argument("--rules", nargs="+", metavar="PATTERN",
                        help="Rule id patterns to run (overrides enabled_rules)")
    parser.add_argument("--discover", nargs="+", metavar="PACKAGE", default=DEFAULT_RULE_PACKAGES,
                        help="Packages to discover rules from")
    parser.add_argument("--format", choices=sorted(REPORTERS), default="text", help="Output format")
    parser.add_argument("--jobs", type=int, help="Worker threads (0 = one per CPU)")
    parser.add_argument("--severity-threshold", help="Lowest severity that fails the run")
    parser.add_argument("--validate", action="store_true", help="Validate JSON output against the schema")
    parser.add_argument("--list-rules", action="store_true", help="List the selected rules and exit")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="More logging (repeatable)")
    return parser


def _resolve_config(args: argparse.Namespace) -> EngineConfig:
    config_path = args.config or find_config_file(args.paths[0] if args.paths else ".")
    if config_path:
        logger.info("Using config %s", config_path)
    config = load_config(config_path)
    if args.rules:
        config.enabled_rules = list(args.rules)
    if args.jobs is not None:
        if args.jobs < 0:
            raise ConfigError("--jobs must be non-negative")
        config.jobs = args.jobs
    if args.severity_threshold:
        config.severity_threshold = Severity.parse(args.severity_threshold)
    return config


def _select_rules(config: EngineConfig, packages: List[str]) -> Registry:
    registry = build_default_registry(config.rule_configs, packages)
    return registry.select(config.enabled_rules, config.disabled_rules)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = _resolve_config(args)
        registry = _select_rules(config, args.discover)
    except (ConfigError, RuleConfigurationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if args.list_rules:
        for rule in registry:
            print(f"{rule.meta.id:40} {rule.meta.severity.value:8} {rule.meta.description}")
        return 0

    if not args.paths:
        parser.print_usage(sys.stderr)
        print("Error: no input paths given", file=sys.stderr)
        return EXIT_USAGE

    design = load_design(args.paths)
    units = design.all_compilation_units()
    if not units:
        print("Error: no compilation units found", file=sys.stderr)
        return EXIT_USAGE

    dispatcher = Dispatcher(registry, config=config,
                            observer=RecordedFatalObserver(design.fatal_conditions))
    result = dispatcher.run(units)

    reporter_cls = REPORTERS[args.format]
    if reporter_cls is JsonReporter:
        reporter = JsonReporter(design.resolve_path, config.severity_threshold, config.fail_on_fatal,
                                rules_run=len(registry), validate=args.validate)
    else:
        reporter = reporter_cls(design.resolve_path, config.severity_threshold, config.fail_on_fatal)

    try:
        return reporter.report(result, sys.stdout)
    except HdlintError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE


if __name__ == "__main__":
    sys.exit(main())
