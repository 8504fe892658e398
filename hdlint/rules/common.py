# hdlint/rules/common.py
"""
Name-resolution helpers shared by several rules.
"""

from typing import Optional

from ..engine.query import collect_descendants, first_identifier_child, symbol_name
from ..engine.tree import NodeId, NodeKind, SyntaxTree

# Printed when a rule fires but cannot resolve the offending symbol's name
UNKNOWN_NAME = "<unknown>"


def declared_variable_name(tree: SyntaxTree, declaration: NodeId) -> Optional[str]:
    """Name of the first variable assigned in a declaration's assignment lists, or None."""
    for assignments in collect_descendants(tree, declaration, NodeKind.LIST_OF_VARIABLE_DECL_ASSIGNMENTS):
        for assignment in collect_descendants(tree, assignments, NodeKind.VARIABLE_DECL_ASSIGNMENT):
            name = symbol_name(tree, first_identifier_child(tree, assignment))
            if name is not None:
                return name
    return None


def declared_parameter_name(tree: SyntaxTree, declaration: NodeId) -> Optional[str]:
    """Name of the first parameter assigned in a parameter declaration, or None."""
    for assignment in collect_descendants(tree, declaration, NodeKind.PARAM_ASSIGNMENT):
        name = symbol_name(tree, first_identifier_child(tree, assignment))
        if name is not None:
            return name
    return None
