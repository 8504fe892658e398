# hdlint/rules/implicit_data_type.py
"""
Rule: IMPLICIT_DATA_TYPE_IN_DECLARATION

Flags data declarations that give a vector width (a packed dimension) without
any explicit type, as in ``[3:0] foo;``. The diagnostic points at the first
packed dimension, where the missing type becomes visible.
"""

from typing import List

from ..engine.query import collect_descendants, has_descendant, location
from ..engine.tree import CompilationUnit, NodeKind
from ..engine.types import Diagnostic, RuleMeta, Severity
from .common import UNKNOWN_NAME, declared_variable_name

EXPLICIT_TYPE_KINDS = frozenset({
    NodeKind.NET_TYPE,
    NodeKind.DATA_TYPE,
    NodeKind.INTEGER_ATOM_TYPE,
    NodeKind.INTEGER_VECTOR_TYPE,
    NodeKind.NON_INTEGER_TYPE,
    NodeKind.STRING_TYPE,
    NodeKind.CLASS_TYPE,
    NodeKind.INT_VEC_TYPE_BIT,
})


class ImplicitDataTypeRule:
    """Packed dimension declared with no explicit data type."""

    meta = RuleMeta(
        id="IMPLICIT_DATA_TYPE_IN_DECLARATION",
        category="declarations",
        description="Declaration with a packed dimension must name an explicit data type",
        severity=Severity.ERROR,
    )

    def evaluate(self, unit: CompilationUnit) -> List[Diagnostic]:
        tree = unit.tree
        diagnostics = []

        for declaration in collect_descendants(tree, unit.root, NodeKind.DATA_DECLARATION):
            packed_dims = collect_descendants(tree, declaration, NodeKind.PACKED_DIMENSION)
            if not packed_dims:
                continue
            if has_descendant(tree, declaration, EXPLICIT_TYPE_KINDS):
                continue

            # A missing name does not make the declaration any less implicit
            name = declared_variable_name(tree, declaration)
            file_id, line = location(tree, packed_dims[0])
            diagnostics.append(Diagnostic(
                rule_id=self.meta.id,
                severity=self.meta.severity,
                message=f"variable '{name or UNKNOWN_NAME}' declared without explicit type",
                file_id=file_id,
                line=line,
                meta={"name": name, "name_resolved": name is not None},
            ))

        return diagnostics


RULES = [ImplicitDataTypeRule]
