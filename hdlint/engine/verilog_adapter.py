"""
Verilog/SystemVerilog syntax tree provider built on tree-sitter.

The tree-sitter parse is flattened into an ``ArenaTree`` so that rules see the
same node model whatever produced the tree:

* only named nodes are kept; keywords and punctuation are dropped,
* identifier nodes become ``string_const`` leaves carrying their text,
* grammar node types map onto ``NodeKind``; a type with no mapping is
  dissolved and its children are attached to the nearest mapped ancestor,
* a subroutine's ``data_type_or_void`` becomes a return type position
  holding a ``function_data_type`` (with a ``void_type`` leaf for ``void``),
* a tree holding error or missing nodes yields an invalid unit.

The grammar rejects some constructs the rules exist to catch: prototypes
with an implicit return type, the ``"DPI"`` spec string, unsized parameter
dimensions. A source holding one of them becomes an invalid unit and is
skipped; those rules fire only on tree dumps from a compiler that accepts
the construct.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from .errors import TreeLoadError
from .tree import CompilationUnit, FileTable, NodeId, NodeKind, TreeBuilder

logger = logging.getLogger(__name__)

# tree-sitter-verilog node type -> NodeKind. Several grammar rules are split
# into numbered variants (``data_type_or_implicit1``); both spellings are listed.
TREE_SITTER_KINDS: Dict[str, NodeKind] = {
    "source_file": NodeKind.SOURCE_TEXT,
    "module_declaration": NodeKind.MODULE_DECLARATION,
    "module_item": NodeKind.MODULE_ITEM,
    "package_declaration": NodeKind.PACKAGE_DECLARATION,
    "package_item": NodeKind.PACKAGE_ITEM,
    "class_declaration": NodeKind.CLASS_DECLARATION,
    "class_item": NodeKind.CLASS_ITEM,
    "class_property": NodeKind.CLASS_PROPERTY,
    "class_method": NodeKind.CLASS_METHOD,
    "class_constructor_declaration": NodeKind.CLASS_CONSTRUCTOR_DECLARATION,
    "class_constructor_prototype": NodeKind.FUNCTION_PROTOTYPE,
    "method_qualifier": NodeKind.METHOD_QUALIFIER,
    "interface_declaration": NodeKind.INTERFACE_DECLARATION,
    "non_port_interface_item": NodeKind.NON_PORT_INTERFACE_ITEM,
    "extern_tf_declaration": NodeKind.EXTERN_TF_DECLARATION,
    "function_prototype": NodeKind.FUNCTION_PROTOTYPE,
    "task_prototype": NodeKind.TASK_PROTOTYPE,
    "function_declaration": NodeKind.FUNCTION_DECLARATION,
    "task_declaration": NodeKind.TASK_DECLARATION,
    "function_data_type_or_implicit": NodeKind.FUNCTION_DATA_TYPE_OR_IMPLICIT,
    "function_data_type_or_implicit1": NodeKind.FUNCTION_DATA_TYPE_OR_IMPLICIT,
    "function_data_type": NodeKind.FUNCTION_DATA_TYPE,
    "tf_port_list": NodeKind.TF_PORT_LIST,
    "tf_port_item": NodeKind.TF_PORT_ITEM,
    "tf_port_item1": NodeKind.TF_PORT_ITEM,
    "dpi_import_export": NodeKind.DPI_IMPORT_EXPORT,
    "dpi_spec_string": NodeKind.DPI_SPEC_STRING,
    "data_declaration": NodeKind.DATA_DECLARATION,
    "list_of_variable_decl_assignments": NodeKind.LIST_OF_VARIABLE_DECL_ASSIGNMENTS,
    "variable_decl_assignment": NodeKind.VARIABLE_DECL_ASSIGNMENT,
    "net_declaration": NodeKind.NET_DECLARATION,
    "parameter_declaration": NodeKind.PARAMETER_DECLARATION,
    "local_parameter_declaration": NodeKind.LOCAL_PARAMETER_DECLARATION,
    "list_of_param_assignments": NodeKind.LIST_OF_PARAM_ASSIGNMENTS,
    "param_assignment": NodeKind.PARAM_ASSIGNMENT,
    "packed_dimension": NodeKind.PACKED_DIMENSION,
    "unpacked_dimension": NodeKind.UNPACKED_DIMENSION,
    "unsized_dimension": NodeKind.UNSIZED_DIMENSION,
    "net_type": NodeKind.NET_TYPE,
    "data_type": NodeKind.DATA_TYPE,
    "data_type_or_implicit": NodeKind.DATA_TYPE_OR_IMPLICIT,
    "data_type_or_implicit1": NodeKind.DATA_TYPE_OR_IMPLICIT,
    "implicit_data_type": NodeKind.IMPLICIT_DATA_TYPE,
    "implicit_data_type1": NodeKind.IMPLICIT_DATA_TYPE,
    "integer_atom_type": NodeKind.INTEGER_ATOM_TYPE,
    "integer_vector_type": NodeKind.INTEGER_VECTOR_TYPE,
    "non_integer_type": NodeKind.NON_INTEGER_TYPE,
    "class_type": NodeKind.CLASS_TYPE,
    "string_literal": NodeKind.STRING_LITERAL,
    "interface_or_generate_item": NodeKind.NON_PORT_INTERFACE_ITEM,
    "sequence_expr": NodeKind.SEQUENCE_EXPR,
    "cycle_delay_range": NodeKind.CYCLE_DELAY_RANGE,
    "consecutive_repetition": NodeKind.CONSECUTIVE_REPETITION,
    "goto_repetition": NodeKind.GOTO_REPETITION,
    "non_consecutive_repetition": NodeKind.NON_CONSECUTIVE_REPETITION,
    "covergroup_declaration": NodeKind.COVERGROUP_DECLARATION,
    "cover_point": NodeKind.COVER_POINT,
    "hierarchical_identifier": NodeKind.HIERARCHICAL_IDENTIFIER,
    "inc_or_dec_expression": NodeKind.INC_OR_DEC_EXPRESSION,
    "operator_assignment": NodeKind.OPERATOR_ASSIGNMENT,
    "expression": NodeKind.EXPRESSION,
    "integral_number": NodeKind.NUMBER,
    "decimal_number": NodeKind.NUMBER,
    "real_number": NodeKind.NUMBER,
}

LIFETIME_KINDS = {
    "automatic": NodeKind.LIFETIME_AUTOMATIC,
    "static": NodeKind.LIFETIME_STATIC,
}

# Kinds whose tree-sitter subtree is folded into the node itself
LEAF_KINDS = frozenset({
    NodeKind.STRING_CONST, NodeKind.STRING_LITERAL, NodeKind.NUMBER, NodeKind.DPI_SPEC_STRING,
})

# Return type position of prototypes and function headers
RETURN_TYPE_NODE = "data_type_or_void"

MAX_REPORTED_ERRORS = 5


def _is_identifier(node_type: str) -> bool:
    return node_type.endswith("identifier")


def _node_text(node: Any) -> str:
    text = node.text
    if isinstance(text, bytes):
        return text.decode("utf-8", errors="replace")
    return str(text or "")


def _line(node: Any) -> int:
    return node.start_point[0] + 1


class VerilogAdapter:
    """Parses Verilog/SystemVerilog sources into compilation units."""

    language_id = "systemverilog"
    file_extensions: Tuple[str, ...] = (".sv", ".svh", ".v", ".vh")

    def __init__(self):
        self._parser = None

    def _get_parser(self):
        """Get or create the tree-sitter parser."""
        if self._parser is None:
            try:
                import tree_sitter
                import tree_sitter_verilog
            except ImportError as e:
                raise TreeLoadError(
                    f"tree-sitter-verilog is not available ({e}); install 'hdlint[verilog]'"
                ) from e

            parser = tree_sitter.Parser()
            parser.language = tree_sitter.Language(tree_sitter_verilog.language())
            self._parser = parser
            logger.debug("SystemVerilog parser initialized")
        return self._parser

    def parse(self, text: str) -> Any:
        """Parse text and return the raw tree-sitter tree."""
        return self._get_parser().parse(text.encode("utf-8"))

    def parse_file(self, path: str, files: FileTable) -> CompilationUnit:
        """
        Parse one source file into a compilation unit.

        Raises:
            TreeLoadError: when the file cannot be read or no parser is available
        """
        try:
            with open(path, "r", encoding="utf-8", errors="replace") as f:
                text = f.read()
        except OSError as e:
            raise TreeLoadError(f"Cannot read source: {e}", path) from e
        return self.to_unit(self.parse(text), path, files)

    def to_unit(self, ts_tree: Any, path: str, files: FileTable) -> CompilationUnit:
        """Flatten a tree-sitter tree into an ``ArenaTree`` backed unit."""
        builder = TreeBuilder(files, path)
        ts_root = ts_tree.root_node
        root = builder.add(NodeKind.SOURCE_TEXT, line=_line(ts_root))

        stack: List[Tuple[Any, NodeId]] = [(child, root) for child in reversed(ts_root.named_children)]
        while stack:
            ts_node, parent = stack.pop()
            node = self._add_node(builder, ts_node, parent)
            if node is None:
                # Dissolved node: its children hang off the same parent
                node = parent
            elif builder.tree.kind(node) in LEAF_KINDS:
                continue
            stack.extend((child, node) for child in reversed(ts_node.named_children))

        errors = self._collect_errors(ts_root)
        return builder.unit(root, valid=not errors, errors=tuple(errors))

    def _add_node(self, builder: TreeBuilder, ts_node: Any, parent: NodeId) -> Optional[NodeId]:
        node_type = ts_node.type
        line = _line(ts_node)

        kind = TREE_SITTER_KINDS.get(node_type)
        if kind is None:
            if _is_identifier(node_type):
                return builder.add(NodeKind.STRING_CONST, parent, line=line, name=_node_text(ts_node))
            if node_type == "lifetime":
                kind = LIFETIME_KINDS.get(_node_text(ts_node).strip())
                return builder.add(kind, parent, line=line) if kind else None
            if node_type == RETURN_TYPE_NODE:
                return self._add_return_type(builder, ts_node, parent, line)
            return None
        if kind in (NodeKind.STRING_LITERAL, NodeKind.NUMBER):
            return builder.add(kind, parent, line=line, name=_node_text(ts_node))
        if kind == NodeKind.DPI_SPEC_STRING:
            # Keep the spec string's value reachable as a literal leaf
            spec = builder.add(kind, parent, line=line)
            builder.add(NodeKind.STRING_LITERAL, spec, line=line, name=_node_text(ts_node).strip('"'))
            return spec
        return builder.add(kind, parent, line=line)

    def _add_return_type(self, builder: TreeBuilder, ts_node: Any, parent: NodeId, line: int) -> NodeId:
        # The grammar only accepts an explicit return type (a data type or
        # ``void``), so the type position always holds a function data type
        position = builder.add(NodeKind.FUNCTION_DATA_TYPE_OR_IMPLICIT, parent, line=line)
        return_type = builder.add(NodeKind.FUNCTION_DATA_TYPE, position, line=line)
        if _node_text(ts_node).strip() == "void":
            builder.add(NodeKind.VOID_TYPE, return_type, line=line)
        return return_type

    def _collect_errors(self, ts_root: Any) -> List[str]:
        if not ts_root.has_error:
            return []

        errors = []
        stack = [ts_root]
        while stack and len(errors) < MAX_REPORTED_ERRORS:
            ts_node = stack.pop()
            if ts_node.is_missing:
                errors.append(f"missing '{ts_node.type}' at line {_line(ts_node)}")
            elif ts_node.type == "ERROR":
                errors.append(f"syntax error at line {_line(ts_node)}")
            elif ts_node.has_error:
                stack.extend(reversed(ts_node.children))
        return errors or ["syntax errors in source"]
