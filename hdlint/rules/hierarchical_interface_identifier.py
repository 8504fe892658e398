# hdlint/rules/hierarchical_interface_identifier.py
"""
Rule: HIERARCHICAL_INTERFACE_IDENTIFIER

A virtual interface type names an interface declaration, optionally followed
by a modport: ``virtual bus_if.master vif;``. The interface itself must be a
plain identifier; a hierarchical path to it (``virtual top.u_bus.bus_if``)
is illegal. Providers put the interface name first under the virtual
interface type, as a ``hierarchical_identifier`` when it has more than one
component.
"""

from typing import List, Optional

from ..engine.query import collect_descendants, first_child, location, symbol_name
from ..engine.tree import IDENTIFIER_KINDS, CompilationUnit, NodeId, NodeKind, SyntaxTree
from ..engine.types import Diagnostic, RuleMeta, Severity


def _hierarchical_path(tree: SyntaxTree, node: NodeId) -> Optional[str]:
    """Dotted path of a hierarchical identifier, or None when it has a single component."""
    components = [symbol_name(tree, n) for n in collect_descendants(tree, node, IDENTIFIER_KINDS)]
    components = [c for c in components if c]
    if len(components) < 2:
        return None
    return ".".join(components)


class HierarchicalInterfaceIdentifierRule:
    """Virtual interface type naming its interface through a hierarchical path."""

    meta = RuleMeta(
        id="HIERARCHICAL_INTERFACE_IDENTIFIER",
        category="interfaces",
        description="Virtual interface types must name the interface with a simple identifier",
        severity=Severity.ERROR,
    )

    def evaluate(self, unit: CompilationUnit) -> List[Diagnostic]:
        tree = unit.tree
        diagnostics = []

        for vif_type in collect_descendants(tree, unit.root, NodeKind.VIRTUAL_INTERFACE_TYPE):
            interface_name = first_child(tree, vif_type)
            if interface_name is None or tree.kind(interface_name) != NodeKind.HIERARCHICAL_IDENTIFIER:
                continue
            path = _hierarchical_path(tree, interface_name)
            if path is None:
                continue

            file_id, line = location(tree, interface_name)
            diagnostics.append(Diagnostic(
                rule_id=self.meta.id,
                severity=self.meta.severity,
                message=f"virtual interface type refers to interface '{path}' through a hierarchical path",
                file_id=file_id,
                line=line,
                meta={"name": path},
            ))

        return diagnostics


RULES = [HierarchicalInterfaceIdentifierRule]
