"""
Tree query helpers shared by the rules.

Every helper is a pure function of the tree it is given; none keeps state
between calls, so rules may call them from any worker thread.
"""

from typing import Container, Iterable, Iterator, List, Optional, Tuple, Union

from .tree import IDENTIFIER_KINDS, NO_NODE, SYMBOL_KINDS, FileId, NodeId, NodeKind, SyntaxTree

KindFilter = Union[NodeKind, Container[NodeKind]]


def _matches(kind: NodeKind, kind_filter: KindFilter) -> bool:
    if isinstance(kind_filter, NodeKind):
        return kind == kind_filter
    return kind in kind_filter


def collect_descendants(tree: SyntaxTree, node: NodeId, kind_filter: KindFilter,
                        recursive: bool = True) -> List[NodeId]:
    """
    Collect the descendants of ``node`` whose kind matches ``kind_filter``.

    Args:
        tree: Tree that owns ``node``
        node: Node whose subtree is searched (the node itself is not a candidate)
        kind_filter: A single kind or a collection of kinds
        recursive: When False, only direct children are considered

    Returns:
        Matching nodes in document order (depth-first, earlier siblings first);
        empty when nothing matches
    """
    if not node:
        return []
    if not recursive:
        return [child for child in tree.children(node) if _matches(tree.kind(child), kind_filter)]

    found = []
    for descendant in iter_descendants(tree, node):
        if _matches(tree.kind(descendant), kind_filter):
            found.append(descendant)
    return found


def iter_descendants(tree: SyntaxTree, node: NodeId) -> Iterator[NodeId]:
    """Yield every descendant of ``node`` in document order."""
    stack = list(reversed(list(tree.children(node))))
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(tree.children(current))))


def has_descendant(tree: SyntaxTree, node: NodeId, kind_filter: KindFilter) -> bool:
    """True when any descendant of ``node`` matches ``kind_filter``."""
    return find_first(tree, node, kind_filter) is not None


def find_first(tree: SyntaxTree, node: NodeId, kind_filter: KindFilter,
               recursive: bool = True) -> Optional[NodeId]:
    """Return the first matching descendant of ``node`` in document order, or None."""
    if not node:
        return None
    candidates = tree.children(node) if not recursive else iter_descendants(tree, node)
    for candidate in candidates:
        if _matches(tree.kind(candidate), kind_filter):
            return candidate
    return None


def first_child(tree: SyntaxTree, node: NodeId) -> Optional[NodeId]:
    if not node:
        return None
    return next(iter(tree.children(node)), None)


def next_sibling(tree: SyntaxTree, node: NodeId) -> Optional[NodeId]:
    if not node:
        return None
    return next(iter(tree.siblings(node)), None)


def scan_siblings(tree: SyntaxTree, node: NodeId, kind_filter: KindFilter,
                  include_self: bool = True) -> Optional[NodeId]:
    """Scan forward along the sibling chain for the first node matching ``kind_filter``."""
    if not node:
        return None
    if include_self and _matches(tree.kind(node), kind_filter):
        return node
    for sibling in tree.siblings(node):
        if _matches(tree.kind(sibling), kind_filter):
            return sibling
    return None


def first_identifier_child(tree: SyntaxTree, node: NodeId) -> Optional[NodeId]:
    """Return ``node``'s first child if it is an identifier, as a declaration assignment stores its name."""
    child = first_child(tree, node)
    if child is not None and tree.kind(child) in IDENTIFIER_KINDS:
        return child
    return None


def symbol_name(tree: SyntaxTree, node: NodeId) -> Optional[str]:
    """
    Return the symbol of an identifier-like node, or None for any other node.

    No placeholder is ever substituted here; what to print for an unresolved
    name is up to the rule.
    """
    if not node or tree.kind(node) not in SYMBOL_KINDS:
        return None
    return tree.symbol_name(node)


def location(tree: SyntaxTree, node: NodeId) -> Tuple[FileId, int]:
    return tree.source_location(node)


def unique(nodes: Iterable[NodeId]) -> List[NodeId]:
    """Drop repeated node handles, keeping the first occurrence."""
    seen = set()
    ordered = []
    for node in nodes:
        if node not in seen and node != NO_NODE:
            seen.add(node)
            ordered.append(node)
    return ordered
