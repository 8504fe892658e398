# hdlint/rules/repetition_in_sequence.py
"""
Rule: REPETITION_IN_SEQUENCE

Goto (``[->n]``) and non-consecutive (``[=n]``) repetition apply to boolean
expressions only. Applied to an operand that is itself a sequence, as in
``(a ##1 b)[->2]``, they are illegal; consecutive repetition (``[*n]``) is
the only repetition a sequence takes. The diagnostic points at the repetition.
"""

from typing import List

from ..engine.query import collect_descendants, location
from ..engine.tree import CompilationUnit, NodeKind
from ..engine.types import Diagnostic, RuleMeta, Severity

BOOLEAN_ONLY_REPETITIONS = {
    NodeKind.GOTO_REPETITION: "goto repetition '[->]'",
    NodeKind.NON_CONSECUTIVE_REPETITION: "non-consecutive repetition '[=]'",
}

# An operand of one of these kinds is a sequence, not a boolean expression
SEQUENCE_OPERAND_KINDS = frozenset({NodeKind.SEQUENCE_EXPR})


class RepetitionInSequenceRule:
    """Boolean-only repetition operator applied to a sequence."""

    meta = RuleMeta(
        id="REPETITION_IN_SEQUENCE",
        category="assertions",
        description="Goto and non-consecutive repetition apply only to boolean expressions",
        severity=Severity.ERROR,
    )

    def evaluate(self, unit: CompilationUnit) -> List[Diagnostic]:
        tree = unit.tree
        diagnostics = []

        for sequence in collect_descendants(tree, unit.root, NodeKind.SEQUENCE_EXPR):
            # The repetition applies to the operand right before it
            operand_kind = None
            for child in tree.children(sequence):
                kind = tree.kind(child)
                repeats_sequence = kind in BOOLEAN_ONLY_REPETITIONS and operand_kind in SEQUENCE_OPERAND_KINDS
                operand_kind = kind
                if not repeats_sequence:
                    continue

                file_id, line = location(tree, child)
                diagnostics.append(Diagnostic(
                    rule_id=self.meta.id,
                    severity=self.meta.severity,
                    message=f"{BOOLEAN_ONLY_REPETITIONS[kind]} applied to a sequence, not a boolean expression",
                    file_id=file_id,
                    line=line,
                    meta={"repetition": kind.value},
                ))

        return diagnostics


RULES = [RepetitionInSequenceRule]
