"""Helpers for building hand-made syntax tree fixtures."""

from hdlint.engine.tree import FileTable, NodeKind, TreeBuilder


def node(kind, *children, line=None, name=None):
    """Nested-mapping node spec accepted by ``TreeBuilder.from_mapping``."""
    spec = {"kind": kind.value if isinstance(kind, NodeKind) else kind, "children": list(children)}
    if line is not None:
        spec["line"] = line
    if name is not None:
        spec["name"] = name
    return spec


def ident(name, line=None):
    return node(NodeKind.STRING_CONST, name=name, line=line)


def make_unit(*items, path="test.sv", files=None, valid=True, errors=(), name=None):
    """Build a unit whose ``source_text`` root holds ``items``."""
    files = files if files is not None else FileTable()
    builder = TreeBuilder(files, path)
    root = builder.from_mapping(node(NodeKind.SOURCE_TEXT, *items, line=1))
    return builder.unit(root, name=name, valid=valid, errors=errors)


def implicit_declaration(var_name="foo", line=3):
    """``[3:0] foo;``: a packed dimension and no type keyword."""
    return node(
        NodeKind.DATA_DECLARATION,
        node(NodeKind.VARIABLE_DECLARATION,
             node(NodeKind.DATA_TYPE_OR_IMPLICIT,
                  node(NodeKind.IMPLICIT_DATA_TYPE,
                       node(NodeKind.PACKED_DIMENSION,
                            node(NodeKind.NUMBER, name="3"),
                            node(NodeKind.NUMBER, name="0")))),
             node(NodeKind.LIST_OF_VARIABLE_DECL_ASSIGNMENTS,
                  node(NodeKind.VARIABLE_DECL_ASSIGNMENT, ident(var_name)))),
        line=line,
    )


def typed_declaration(var_name="foo", line=3):
    """``logic [3:0] foo;``"""
    return node(
        NodeKind.DATA_DECLARATION,
        node(NodeKind.VARIABLE_DECLARATION,
             node(NodeKind.DATA_TYPE,
                  node(NodeKind.INTEGER_VECTOR_TYPE),
                  node(NodeKind.PACKED_DIMENSION,
                       node(NodeKind.NUMBER, name="3"),
                       node(NodeKind.NUMBER, name="0"))),
             node(NodeKind.LIST_OF_VARIABLE_DECL_ASSIGNMENTS,
                  node(NodeKind.VARIABLE_DECL_ASSIGNMENT, ident(var_name)))),
        line=line,
    )


def function_prototype(func_name="foo", return_type=None, line=5):
    """``function [<return_type>] foo();`` prototype."""
    type_children = []
    if return_type is not None:
        type_children.append(node(NodeKind.FUNCTION_DATA_TYPE, node(return_type)))
    return node(
        NodeKind.FUNCTION_PROTOTYPE,
        node(NodeKind.FUNCTION_DATA_TYPE_OR_IMPLICIT, *type_children),
        ident(func_name),
        node(NodeKind.TF_PORT_LIST),
        line=line,
    )


def class_with_methods(*prototypes, class_name="c", line=1):
    """``class c; extern function ...; endclass``"""
    items = [
        node(NodeKind.CLASS_ITEM, node(NodeKind.CLASS_METHOD, node(NodeKind.METHOD_QUALIFIER), proto))
        for proto in prototypes
    ]
    return node(NodeKind.CLASS_DECLARATION, ident(class_name), *items, line=line)


def interface_with_externs(*prototypes, interface_name="bus_if", line=1):
    """``interface bus_if; extern function ...; endinterface``"""
    items = [
        node(NodeKind.NON_PORT_INTERFACE_ITEM, node(NodeKind.EXTERN_TF_DECLARATION, proto))
        for proto in prototypes
    ]
    return node(NodeKind.INTERFACE_DECLARATION, ident(interface_name), *items, line=line)
