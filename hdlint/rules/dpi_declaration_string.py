# hdlint/rules/dpi_declaration_string.py
"""
Rule: DPI_DECLARATION_STRING

Checks the spec string of DPI imports and exports. ``"DPI-C"`` is the only
current form; ``"DPI"`` is deprecated and reported as a warning, anything else
is an error. The diagnostic points at the spec string.
"""

from typing import List, Optional

from ..engine.query import collect_descendants, find_first, location, symbol_name
from ..engine.tree import IDENTIFIER_KINDS, CompilationUnit, NodeId, NodeKind, SyntaxTree
from ..engine.types import Diagnostic, RuleMeta, Severity
from .common import UNKNOWN_NAME

SUPPORTED_SPEC = "DPI-C"
DEPRECATED_SPEC = "DPI"


class DpiDeclarationStringRule:
    """DPI import/export with a deprecated or unknown spec string."""

    meta = RuleMeta(
        id="DPI_DECLARATION_STRING",
        category="dpi",
        description='DPI declarations must use the "DPI-C" spec string',
        severity=Severity.ERROR,
    )

    def _spec_string(self, tree: SyntaxTree, dpi: NodeId) -> Optional[NodeId]:
        spec = find_first(tree, dpi, NodeKind.DPI_SPEC_STRING, recursive=False)
        if spec is not None:
            return find_first(tree, spec, NodeKind.STRING_LITERAL)
        return find_first(tree, dpi, NodeKind.STRING_LITERAL, recursive=False)

    def evaluate(self, unit: CompilationUnit) -> List[Diagnostic]:
        tree = unit.tree
        diagnostics = []

        for dpi in collect_descendants(tree, unit.root, NodeKind.DPI_IMPORT_EXPORT):
            spec = self._spec_string(tree, dpi)
            if spec is None:
                continue
            value = (symbol_name(tree, spec) or "").strip('"')
            if value == SUPPORTED_SPEC:
                continue

            name = symbol_name(tree, find_first(tree, dpi, IDENTIFIER_KINDS))
            if value == DEPRECATED_SPEC:
                severity = Severity.WARNING
                message = (f"DPI declaration '{name or UNKNOWN_NAME}' uses deprecated spec string "
                           f'"{DEPRECATED_SPEC}"; use "{SUPPORTED_SPEC}"')
            else:
                severity = self.meta.severity
                message = f"DPI declaration '{name or UNKNOWN_NAME}' uses unsupported spec string \"{value}\""

            file_id, line = location(tree, spec)
            diagnostics.append(Diagnostic(
                rule_id=self.meta.id,
                severity=severity,
                message=message,
                file_id=file_id,
                line=line,
                meta={"name": name, "spec_string": value},
            ))

        return diagnostics


RULES = [DpiDeclarationStringRule]
