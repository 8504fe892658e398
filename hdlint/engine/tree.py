"""
Syntax tree model consumed by the engine.

The engine only sees a tree through the narrow ``SyntaxTree`` interface: node
handles are opaque integers, and every attribute of a node is reached through
a query on the tree that owns it. ``ArenaTree`` is the concrete, index-addressed
implementation every provider in this package builds.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple

from .errors import TreeLoadError

NodeId = int
FileId = int

# Handle 0 never names a node, in the same way a null pointer would not
NO_NODE: NodeId = 0


class NodeKind(str, Enum):
    """Closed enumeration of the syntactic categories the rules understand."""

    SOURCE_TEXT = "source_text"
    DESCRIPTION = "description"
    MODULE_DECLARATION = "module_declaration"
    MODULE_ITEM = "module_item"
    PACKAGE_DECLARATION = "package_declaration"
    PACKAGE_ITEM = "package_item"

    # Classes
    CLASS_DECLARATION = "class_declaration"
    CLASS_ITEM = "class_item"
    CLASS_PROPERTY = "class_property"
    CLASS_METHOD = "class_method"
    CLASS_CONSTRUCTOR_DECLARATION = "class_constructor_declaration"
    METHOD_QUALIFIER = "method_qualifier"

    # Interfaces
    INTERFACE_DECLARATION = "interface_declaration"
    NON_PORT_INTERFACE_ITEM = "non_port_interface_item"
    EXTERN_TF_DECLARATION = "extern_tf_declaration"

    # Subroutines
    FUNCTION_PROTOTYPE = "function_prototype"
    TASK_PROTOTYPE = "task_prototype"
    FUNCTION_DECLARATION = "function_declaration"
    TASK_DECLARATION = "task_declaration"
    FUNCTION_DATA_TYPE_OR_IMPLICIT = "function_data_type_or_implicit"
    FUNCTION_DATA_TYPE = "function_data_type"
    TF_PORT_LIST = "tf_port_list"
    TF_PORT_ITEM = "tf_port_item"
    DPI_IMPORT_EXPORT = "dpi_import_export"
    DPI_SPEC_STRING = "dpi_spec_string"

    # Declarations
    DATA_DECLARATION = "data_declaration"
    VARIABLE_DECLARATION = "variable_declaration"
    LIST_OF_VARIABLE_DECL_ASSIGNMENTS = "list_of_variable_decl_assignments"
    VARIABLE_DECL_ASSIGNMENT = "variable_decl_assignment"
    NET_DECLARATION = "net_declaration"
    PARAMETER_DECLARATION = "parameter_declaration"
    LOCAL_PARAMETER_DECLARATION = "local_parameter_declaration"
    LIST_OF_PARAM_ASSIGNMENTS = "list_of_param_assignments"
    PARAM_ASSIGNMENT = "param_assignment"
    LIFETIME_STATIC = "lifetime_static"
    LIFETIME_AUTOMATIC = "lifetime_automatic"

    # Dimensions
    PACKED_DIMENSION = "packed_dimension"
    UNPACKED_DIMENSION = "unpacked_dimension"
    UNSIZED_DIMENSION = "unsized_dimension"

    # Explicit types
    NET_TYPE = "net_type"
    DATA_TYPE = "data_type"
    DATA_TYPE_OR_IMPLICIT = "data_type_or_implicit"
    IMPLICIT_DATA_TYPE = "implicit_data_type"
    INTEGER_ATOM_TYPE = "integer_atom_type"
    INTEGER_VECTOR_TYPE = "integer_vector_type"
    NON_INTEGER_TYPE = "non_integer_type"
    STRING_TYPE = "string_type"
    CLASS_TYPE = "class_type"
    INT_VEC_TYPE_BIT = "int_vec_type_bit"
    INT_VEC_TYPE_LOGIC = "int_vec_type_logic"
    INT_VEC_TYPE_REG = "int_vec_type_reg"
    VOID_TYPE = "void_type"

    # Assertions and sequences
    SEQUENCE_EXPR = "sequence_expr"
    CYCLE_DELAY_RANGE = "cycle_delay_range"
    CONSECUTIVE_REPETITION = "consecutive_repetition"
    GOTO_REPETITION = "goto_repetition"
    NON_CONSECUTIVE_REPETITION = "non_consecutive_repetition"

    # Coverage
    COVERGROUP_DECLARATION = "covergroup_declaration"
    COVER_POINT = "cover_point"

    # Virtual interfaces and hierarchical references
    VIRTUAL_INTERFACE_TYPE = "virtual_interface_type"
    HIERARCHICAL_IDENTIFIER = "hierarchical_identifier"

    # Expressions with side effects
    INC_OR_DEC_EXPRESSION = "inc_or_dec_expression"
    OPERATOR_ASSIGNMENT = "operator_assignment"

    # Leaves
    STRING_CONST = "string_const"
    STRING_LITERAL = "string_literal"
    NUMBER = "number"
    EXPRESSION = "expression"

    # Anything a provider cannot map onto a category above
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any) -> "NodeKind":
        if isinstance(value, NodeKind):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise TreeLoadError(f"Unknown node kind '{value}'") from None


# Kinds that carry a symbol name
IDENTIFIER_KINDS = frozenset({NodeKind.STRING_CONST})
SYMBOL_KINDS = frozenset({NodeKind.STRING_CONST, NodeKind.STRING_LITERAL, NodeKind.NUMBER})


class FileTable:
    """Interns file paths so locations can carry a small opaque file id."""

    def __init__(self):
        self._paths: List[str] = []
        self._ids: Dict[str, FileId] = {}

    def intern(self, path: str) -> FileId:
        file_id = self._ids.get(path)
        if file_id is None:
            self._paths.append(path)
            file_id = len(self._paths)
            self._ids[path] = file_id
        return file_id

    def to_path(self, file_id: FileId) -> str:
        if 1 <= file_id <= len(self._paths):
            return self._paths[file_id - 1]
        return "<unknown file>"

    def __len__(self) -> int:
        return len(self._paths)


class SyntaxTree(ABC):
    """Read-only query interface over one compilation unit's tree."""

    @abstractmethod
    def kind(self, node: NodeId) -> NodeKind:
        """Return the syntactic category of a node."""

    @abstractmethod
    def children(self, node: NodeId) -> Iterator[NodeId]:
        """Iterate over a node's children, in order."""

    @abstractmethod
    def siblings(self, node: NodeId) -> Iterator[NodeId]:
        """Iterate forward over the siblings that follow a node."""

    @abstractmethod
    def symbol_name(self, node: NodeId) -> Optional[str]:
        """Return the symbol carried by a leaf node, or None."""

    @abstractmethod
    def source_location(self, node: NodeId) -> Tuple[FileId, int]:
        """Return ``(file_id, line)`` for a node; line is 1-based."""

    @abstractmethod
    def resolve_path(self, file_id: FileId) -> str:
        """Return a human-readable path for a file id."""


@dataclass
class _NodeRecord:
    kind: NodeKind
    file_id: FileId
    line: int
    symbol: Optional[str] = None
    parent: NodeId = NO_NODE
    first_child: NodeId = NO_NODE
    last_child: NodeId = NO_NODE
    next_sibling: NodeId = NO_NODE


class ArenaTree(SyntaxTree):
    """Index-addressed tree: node ``n`` is record ``n - 1`` in a flat table.

    Only ``TreeBuilder`` appends to the table; once built the tree is never
    mutated, so any number of threads may query it concurrently.
    """

    def __init__(self, files: FileTable):
        self._files = files
        self._nodes: List[_NodeRecord] = []

    def _record(self, node: NodeId) -> _NodeRecord:
        if node <= NO_NODE or node > len(self._nodes):
            raise KeyError(f"No node with id {node}")
        return self._nodes[node - 1]

    def kind(self, node: NodeId) -> NodeKind:
        return self._record(node).kind

    def children(self, node: NodeId) -> Iterator[NodeId]:
        child = self._record(node).first_child
        while child:
            yield child
            child = self._nodes[child - 1].next_sibling

    def siblings(self, node: NodeId) -> Iterator[NodeId]:
        sibling = self._record(node).next_sibling
        while sibling:
            yield sibling
            sibling = self._nodes[sibling - 1].next_sibling

    def symbol_name(self, node: NodeId) -> Optional[str]:
        return self._record(node).symbol

    def source_location(self, node: NodeId) -> Tuple[FileId, int]:
        record = self._record(node)
        return record.file_id, record.line

    def resolve_path(self, file_id: FileId) -> str:
        return self._files.to_path(file_id)

    def parent(self, node: NodeId) -> NodeId:
        return self._record(node).parent

    def __len__(self) -> int:
        return len(self._nodes)

    def _append(self, record: _NodeRecord) -> NodeId:
        self._nodes.append(record)
        node = len(self._nodes)
        if record.parent:
            parent = self._nodes[record.parent - 1]
            if parent.last_child:
                self._nodes[parent.last_child - 1].next_sibling = node
            else:
                parent.first_child = node
            parent.last_child = node
        return node


class TreeBuilder:
    """Builds an ``ArenaTree`` for one source file, node by node or from mappings."""

    def __init__(self, files: FileTable, path: str):
        self.files = files
        self.path = path
        self.file_id = files.intern(path)
        self.tree = ArenaTree(files)

    def add(self, kind: NodeKind, parent: NodeId = NO_NODE, line: Optional[int] = None,
            name: Optional[str] = None) -> NodeId:
        """Append a node as the last child of ``parent`` (or as a root)."""
        if line is None:
            line = self.tree.source_location(parent)[1] if parent else 1
        try:
            line = int(line)
        except (TypeError, ValueError):
            raise TreeLoadError(f"Invalid line number {line!r}", self.path) from None
        if line < 1:
            raise TreeLoadError(f"Line numbers start at 1, got {line}", self.path)
        record = _NodeRecord(kind=NodeKind.parse(kind), file_id=self.file_id,
                             line=line, symbol=name, parent=parent)
        return self.tree._append(record)

    def from_mapping(self, spec: Mapping[str, Any], parent: NodeId = NO_NODE) -> NodeId:
        """Build a subtree from ``{kind, name?, line?, children?}`` mappings.

        A node without ``line`` inherits its parent's line.
        """
        if not isinstance(spec, Mapping) or "kind" not in spec:
            raise TreeLoadError(f"Tree node must be a mapping with a 'kind': {spec!r}", self.path)

        # Iterative so deep trees from real designs do not hit the recursion limit
        root = NO_NODE
        stack = [(spec, parent)]
        while stack:
            item, item_parent = stack.pop()
            if not isinstance(item, Mapping) or "kind" not in item:
                raise TreeLoadError(f"Tree node must be a mapping with a 'kind': {item!r}", self.path)
            name = item.get("name")
            node = self.add(item["kind"], item_parent, line=item.get("line"),
                            name=str(name) if name is not None else None)
            if root == NO_NODE:
                root = node
            children = item.get("children") or []
            if not isinstance(children, list):
                raise TreeLoadError(f"'children' must be a list: {children!r}", self.path)
            for child in reversed(children):
                stack.append((child, node))
        return root

    def unit(self, root: NodeId, name: Optional[str] = None, valid: bool = True,
             errors: Tuple[str, ...] = ()) -> "CompilationUnit":
        return CompilationUnit(name=name or self.path, tree=self.tree, root=root,
                               file_id=self.file_id, valid=valid, errors=tuple(errors))


@dataclass(frozen=True)
class CompilationUnit:
    """One source file's syntax tree plus its file identity.

    ``valid`` is False when the provider could only build part of the tree;
    such a unit is skipped by the dispatcher, ``errors`` giving the reason.
    """
    name: str
    tree: SyntaxTree
    root: NodeId
    file_id: FileId
    valid: bool = True
    errors: Tuple[str, ...] = ()


class SyntaxTreeProvider(ABC):
    """Source of compilation units (the upstream compiler's design)."""

    @abstractmethod
    def all_compilation_units(self) -> Dict[str, CompilationUnit]:
        """Return every unit keyed by its identifier."""

    @abstractmethod
    def resolve_path(self, file_id: FileId) -> str:
        """Return a human-readable path for a file id."""


@dataclass
class Design(SyntaxTreeProvider):
    """In-memory provider assembled by the loaders."""
    files: FileTable = field(default_factory=FileTable)
    units: Dict[str, CompilationUnit] = field(default_factory=dict)
    # unit name -> elaboration failures recorded for it
    fatal_conditions: Dict[str, List[str]] = field(default_factory=dict)

    def add_unit(self, unit: CompilationUnit) -> None:
        self.units[unit.name] = unit

    def all_compilation_units(self) -> Dict[str, CompilationUnit]:
        return dict(self.units)

    def resolve_path(self, file_id: FileId) -> str:
        return self.files.to_path(file_id)
