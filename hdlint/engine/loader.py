"""
Input loading: collects input files and builds the design the dispatcher runs on.

Two kinds of input are understood:

* tree dumps (``.json``, ``.yaml``, ``.yml``) written by an upstream compiler,
  one unit per mapping::

      file: rtl/top.sv
      valid: true
      fatal: []
      root:
        kind: source_text
        children:
          - {kind: data_declaration, line: 3, children: [...]}

  or several under a ``units:`` list;
* Verilog/SystemVerilog sources, parsed with tree-sitter (see
  ``verilog_adapter``).

A file that cannot be loaded becomes an invalid unit, so it is reported once
as skipped instead of aborting the run.
"""

import logging
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Tuple

import yaml

from .errors import TreeLoadError
from .tree import Design, NodeKind, TreeBuilder

logger = logging.getLogger(__name__)

DUMP_EXTENSIONS: Tuple[str, ...] = (".json", ".yaml", ".yml")
SOURCE_EXTENSIONS: Tuple[str, ...] = (".sv", ".svh", ".v", ".vh")

EXCLUDED_DIRS = {".git", "__pycache__", "build", "obj_dir", "slpp_all", "slpp_unit"}


def collect_files(paths: Iterable[str], extensions: Tuple[str, ...] = DUMP_EXTENSIONS + SOURCE_EXTENSIONS) -> List[str]:
    """Collect input files from files and directories (recursively), sorted and deduplicated."""
    all_files = []
    for path in paths:
        path_obj = Path(path)
        if path_obj.is_file():
            if path_obj.suffix.lower() in extensions:
                all_files.append(str(path_obj.absolute()))
            else:
                logger.warning("Ignoring '%s': unsupported file type", path)
        elif path_obj.is_dir():
            for candidate in path_obj.rglob("*"):
                if not candidate.is_file() or candidate.suffix.lower() not in extensions:
                    continue
                if any(part in EXCLUDED_DIRS for part in candidate.relative_to(path_obj).parts[:-1]):
                    continue
                all_files.append(str(candidate.absolute()))
        else:
            logger.warning("Path '%s' does not exist", path)

    return sorted(set(all_files))


def _add_unit_from_mapping(design: Design, data: Mapping[str, Any], dump_path: str) -> None:
    if not isinstance(data, Mapping):
        raise TreeLoadError(f"Unit entry must be a mapping, got {type(data).__name__}", dump_path)
    if "root" not in data:
        raise TreeLoadError("Unit entry has no 'root'", dump_path)

    source_path = str(data.get("file") or dump_path)
    builder = TreeBuilder(design.files, source_path)
    root = builder.from_mapping(data["root"])
    errors = data.get("errors") or []
    if isinstance(errors, str):
        errors = [errors]
    valid = data.get("valid", True)
    if not isinstance(valid, bool):
        raise TreeLoadError(f"'valid' must be true or false, got {valid!r}", dump_path)
    unit = builder.unit(root, name=data.get("name"), valid=valid,
                        errors=tuple(str(e) for e in errors))
    if unit.name in design.units:
        raise TreeLoadError(f"Duplicate compilation unit '{unit.name}'", dump_path)
    design.add_unit(unit)

    fatal = data.get("fatal") or []
    if isinstance(fatal, str):
        fatal = [fatal]
    if fatal:
        design.fatal_conditions[unit.name] = [str(message) for message in fatal]


def load_tree_dump(path: str, design: Design) -> None:
    """
    Load the units of one tree dump into ``design``.

    Raises:
        TreeLoadError: when the file cannot be read or does not describe a tree
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            # JSON is a subset of YAML, so one loader serves both formats
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise TreeLoadError(f"Cannot read tree dump: {e}", path) from e

    if not isinstance(data, Mapping):
        raise TreeLoadError("Tree dump must be a mapping", path)

    entries = data["units"] if "units" in data else [data]
    if not isinstance(entries, list):
        raise TreeLoadError("'units' must be a list", path)

    # A dump is loaded whole or not at all
    staged = Design(files=design.files)
    for entry in entries:
        _add_unit_from_mapping(staged, entry, path)
    for name in staged.units:
        if name in design.units:
            raise TreeLoadError(f"Duplicate compilation unit '{name}'", path)
    design.units.update(staged.units)
    design.fatal_conditions.update(staged.fatal_conditions)


def _add_unloadable(design: Design, path: str, error: TreeLoadError) -> None:
    builder = TreeBuilder(design.files, path)
    root = builder.add(NodeKind.SOURCE_TEXT)
    design.add_unit(builder.unit(root, valid=False, errors=(str(error),)))


def load_design(paths: Iterable[str], design: Optional[Design] = None) -> Design:
    """Build a design from input paths (tree dumps and HDL sources)."""
    design = design or Design()
    adapter = None

    for path in collect_files(paths):
        try:
            if path.lower().endswith(DUMP_EXTENSIONS):
                load_tree_dump(path, design)
            else:
                if adapter is None:
                    from .verilog_adapter import VerilogAdapter
                    adapter = VerilogAdapter()
                design.add_unit(adapter.parse_file(path, design.files))
        except TreeLoadError as e:
            logger.warning("Failed to load %s: %s", path, e)
            if path not in design.units:
                _add_unloadable(design, path, e)

    return design
