"""Tests for the syntax tree model."""

import pytest

from hdlint.engine.errors import TreeLoadError
from hdlint.engine.tree import NO_NODE, FileTable, NodeKind, TreeBuilder

from treehelpers import ident, node


class TestFileTable:

    def test_intern_is_stable(self):
        files = FileTable()
        first = files.intern("a.sv")
        assert files.intern("b.sv") != first
        assert files.intern("a.sv") == first
        assert files.to_path(first) == "a.sv"
        assert len(files) == 2

    def test_unknown_file_id(self):
        assert FileTable().to_path(42) == "<unknown file>"


class TestTreeBuilder:

    def setup_method(self):
        self.files = FileTable()
        self.builder = TreeBuilder(self.files, "top.sv")

    def test_children_and_siblings_keep_order(self):
        root = self.builder.from_mapping(node(
            NodeKind.SOURCE_TEXT,
            node(NodeKind.MODULE_DECLARATION, line=2),
            node(NodeKind.CLASS_DECLARATION, line=7),
            node(NodeKind.INTERFACE_DECLARATION, line=12),
        ))
        tree = self.builder.tree
        children = list(tree.children(root))
        assert [tree.kind(c) for c in children] == [
            NodeKind.MODULE_DECLARATION, NodeKind.CLASS_DECLARATION, NodeKind.INTERFACE_DECLARATION,
        ]
        assert list(tree.siblings(children[0])) == children[1:]
        assert list(tree.siblings(children[2])) == []

    def test_line_is_inherited_from_parent(self):
        root = self.builder.from_mapping(node(NodeKind.DATA_DECLARATION, ident("x"), line=9))
        tree = self.builder.tree
        child = next(tree.children(root))
        assert tree.source_location(child) == (self.builder.file_id, 9)
        assert tree.symbol_name(child) == "x"

    def test_root_defaults_to_line_one(self):
        root = self.builder.add(NodeKind.SOURCE_TEXT)
        assert self.builder.tree.source_location(root)[1] == 1
        assert self.builder.tree.parent(root) == NO_NODE

    def test_unknown_kind_is_rejected(self):
        with pytest.raises(TreeLoadError):
            self.builder.from_mapping({"kind": "not_a_kind"})

    def test_node_without_kind_is_rejected(self):
        with pytest.raises(TreeLoadError):
            self.builder.from_mapping({"kind": "source_text", "children": [{"name": "x"}]})

    def test_invalid_line_is_rejected(self):
        with pytest.raises(TreeLoadError):
            self.builder.from_mapping({"kind": "source_text", "line": 0})

    def test_unit_carries_validity(self):
        root = self.builder.add(NodeKind.SOURCE_TEXT)
        unit = self.builder.unit(root, valid=False, errors=("syntax error at line 4",))
        assert unit.name == "top.sv"
        assert not unit.valid
        assert unit.errors == ("syntax error at line 4",)
        assert unit.tree.resolve_path(unit.file_id) == "top.sv"

    def test_missing_node_lookup_raises(self):
        with pytest.raises(KeyError):
            self.builder.tree.kind(99)

    def test_deep_tree_does_not_recurse(self):
        spec = node(NodeKind.OTHER)
        for _ in range(5000):
            spec = node(NodeKind.OTHER, spec)
        root = self.builder.from_mapping(spec)
        assert len(self.builder.tree) == 5001
        assert self.builder.tree.kind(root) == NodeKind.OTHER
