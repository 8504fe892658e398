# hdlint/rules/covergroup_expression.py
"""
Rule: COVERGROUP_EXPRESSION

Coverpoints are sampled whenever the covergroup samples, so the expressions
inside a coverpoint must not change design state. Increment and decrement
(``a++``) and assignment operators (``a += 1``) are rejected. The diagnostic
points at the offending expression.
"""

from typing import List, Optional

from ..engine.query import collect_descendants, find_first, first_identifier_child, location, symbol_name
from ..engine.tree import CompilationUnit, NodeId, NodeKind, SyntaxTree
from ..engine.types import Diagnostic, RuleMeta, Severity
from .common import UNKNOWN_NAME

SIDE_EFFECT_KINDS = frozenset({NodeKind.INC_OR_DEC_EXPRESSION, NodeKind.OPERATOR_ASSIGNMENT})


def side_effect_in(tree: SyntaxTree, expression: NodeId) -> Optional[NodeId]:
    """First node under ``expression`` (or the node itself) that has a side effect."""
    if tree.kind(expression) in SIDE_EFFECT_KINDS:
        return expression
    return find_first(tree, expression, SIDE_EFFECT_KINDS)


class CovergroupExpressionRule:
    """Coverpoint expression with side effects."""

    meta = RuleMeta(
        id="COVERGROUP_EXPRESSION",
        category="coverage",
        description="Coverpoint expressions must not have side effects",
        severity=Severity.ERROR,
    )

    def evaluate(self, unit: CompilationUnit) -> List[Diagnostic]:
        tree = unit.tree
        diagnostics = []

        for covergroup in collect_descendants(tree, unit.root, NodeKind.COVERGROUP_DECLARATION):
            for cover_point in collect_descendants(tree, covergroup, NodeKind.COVER_POINT):
                offender = side_effect_in(tree, cover_point)
                if offender is None:
                    continue

                # An unlabelled coverpoint starts with its expression, not an identifier
                label = symbol_name(tree, first_identifier_child(tree, cover_point))
                file_id, line = location(tree, offender)
                diagnostics.append(Diagnostic(
                    rule_id=self.meta.id,
                    severity=self.meta.severity,
                    message=f"coverpoint '{label or UNKNOWN_NAME}' expression has side effects",
                    file_id=file_id,
                    line=line,
                    meta={"name": label, "name_resolved": label is not None},
                ))

        return diagnostics


RULES = [CovergroupExpressionRule]
