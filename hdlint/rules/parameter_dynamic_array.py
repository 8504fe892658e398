# hdlint/rules/parameter_dynamic_array.py
"""
Rule: PARAMETER_DYNAMIC_ARRAY

Flags parameters and local parameters declared with an unsized (``[]``)
dimension, i.e. as dynamic arrays, which elaborate to no fixed value. The
diagnostic points at the unsized dimension.
"""

from typing import List

from ..engine.query import collect_descendants, find_first, location
from ..engine.tree import CompilationUnit, NodeKind
from ..engine.types import Diagnostic, RuleMeta, Severity
from .common import UNKNOWN_NAME, declared_parameter_name

PARAMETER_KINDS = frozenset({NodeKind.PARAMETER_DECLARATION, NodeKind.LOCAL_PARAMETER_DECLARATION})


class ParameterDynamicArrayRule:
    """Parameter declared as a dynamic array."""

    meta = RuleMeta(
        id="PARAMETER_DYNAMIC_ARRAY",
        category="declarations",
        description="Parameters cannot be dynamic arrays",
        severity=Severity.ERROR,
    )

    def evaluate(self, unit: CompilationUnit) -> List[Diagnostic]:
        tree = unit.tree
        diagnostics = []

        for declaration in collect_descendants(tree, unit.root, PARAMETER_KINDS):
            dimension = find_first(tree, declaration, NodeKind.UNSIZED_DIMENSION)
            if dimension is None:
                continue

            name = declared_parameter_name(tree, declaration)
            file_id, line = location(tree, dimension)
            diagnostics.append(Diagnostic(
                rule_id=self.meta.id,
                severity=self.meta.severity,
                message=f"parameter '{name or UNKNOWN_NAME}' declared as a dynamic array",
                file_id=file_id,
                line=line,
                meta={"name": name, "name_resolved": name is not None},
            ))

        return diagnostics


RULES = [ParameterDynamicArrayRule]
