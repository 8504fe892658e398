# hdlint/rules/class_variable_lifetime.py
"""
Rule: CLASS_VARIABLE_LIFETIME

Class properties live as long as the object (or the class, when static) and
cannot be declared ``automatic``. The diagnostic points at the lifetime
qualifier.
"""

from typing import List

from ..engine.query import collect_descendants, find_first, location
from ..engine.tree import CompilationUnit, NodeKind
from ..engine.types import Diagnostic, RuleMeta, Severity
from .common import UNKNOWN_NAME, declared_variable_name


class ClassVariableLifetimeRule:
    """Class property declared with automatic lifetime."""

    meta = RuleMeta(
        id="CLASS_VARIABLE_LIFETIME",
        category="classes",
        description="Class properties cannot have automatic lifetime",
        severity=Severity.ERROR,
    )

    def evaluate(self, unit: CompilationUnit) -> List[Diagnostic]:
        tree = unit.tree
        diagnostics = []

        for prop in collect_descendants(tree, unit.root, NodeKind.CLASS_PROPERTY):
            qualifier = find_first(tree, prop, NodeKind.LIFETIME_AUTOMATIC)
            if qualifier is None:
                continue

            name = declared_variable_name(tree, prop)
            file_id, line = location(tree, qualifier)
            diagnostics.append(Diagnostic(
                rule_id=self.meta.id,
                severity=self.meta.severity,
                message=f"class variable '{name or UNKNOWN_NAME}' cannot be declared automatic",
                file_id=file_id,
                line=line,
                meta={"name": name, "name_resolved": name is not None},
            ))

        return diagnostics


RULES = [ClassVariableLifetimeRule]
