# hdlint/rules/prototype_return_data_type.py
"""
Rule: PROTOTYPE_RETURN_DATA_TYPE

Flags function prototypes whose return type position holds only the implicit
marker, as in ``extern function foo();``. Prototypes are looked for in class
methods and in extern task/function declarations of interfaces. The diagnostic
points at the prototype's return type position.
"""

from typing import Iterator, List, Optional

from ..engine.query import (collect_descendants, find_first, location, scan_siblings,
                            symbol_name, unique)
from ..engine.tree import IDENTIFIER_KINDS, CompilationUnit, NodeId, NodeKind, SyntaxTree
from ..engine.types import Diagnostic, RuleMeta, Severity
from .common import UNKNOWN_NAME

CONSTRUCTOR_NAME = "new"


class PrototypeReturnDataTypeRule:
    """Function prototype without an explicit return data type."""

    meta = RuleMeta(
        id="PROTOTYPE_RETURN_DATA_TYPE",
        category="subroutines",
        description="Function prototypes must declare a return data type",
        severity=Severity.ERROR,
    )

    def __init__(self, exempt_constructors: bool = False):
        self.exempt_constructors = exempt_constructors

    def _prototypes(self, tree: SyntaxTree, root: NodeId) -> Iterator[NodeId]:
        # Class methods
        for class_decl in collect_descendants(tree, root, NodeKind.CLASS_DECLARATION):
            for method in collect_descendants(tree, class_decl, NodeKind.CLASS_METHOD):
                yield from collect_descendants(tree, method, NodeKind.FUNCTION_PROTOTYPE, recursive=False)

        # Extern subroutines declared in interfaces
        for interface in collect_descendants(tree, root, NodeKind.INTERFACE_DECLARATION):
            for item in collect_descendants(tree, interface, NodeKind.NON_PORT_INTERFACE_ITEM):
                for extern in collect_descendants(tree, item, NodeKind.EXTERN_TF_DECLARATION):
                    yield from collect_descendants(tree, extern, NodeKind.FUNCTION_PROTOTYPE, recursive=False)

    def _function_name(self, tree: SyntaxTree, type_node: NodeId) -> Optional[str]:
        return symbol_name(tree, scan_siblings(tree, type_node, IDENTIFIER_KINDS))

    def evaluate(self, unit: CompilationUnit) -> List[Diagnostic]:
        tree = unit.tree
        diagnostics = []

        # Nested classes reach the same prototype more than once
        for prototype in unique(self._prototypes(tree, unit.root)):
            type_nodes = collect_descendants(tree, prototype, NodeKind.FUNCTION_DATA_TYPE_OR_IMPLICIT,
                                             recursive=False)
            if not type_nodes:
                continue
            type_node = type_nodes[0]

            if find_first(tree, type_node, NodeKind.FUNCTION_DATA_TYPE, recursive=False) is not None:
                continue

            name = self._function_name(tree, type_node)
            if self.exempt_constructors and name == CONSTRUCTOR_NAME:
                continue

            file_id, line = location(tree, type_node)
            diagnostics.append(Diagnostic(
                rule_id=self.meta.id,
                severity=self.meta.severity,
                message=f"Function prototype '{name or UNKNOWN_NAME}' missing return data type",
                file_id=file_id,
                line=line,
                meta={"name": name, "name_resolved": name is not None},
            ))

        return diagnostics


RULES = [PrototypeReturnDataTypeRule]
