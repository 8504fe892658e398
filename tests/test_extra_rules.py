"""Tests for the rules beyond the declaration and prototype checks."""

from hdlint.engine.tree import NodeKind
from hdlint.engine.types import Severity
from hdlint.rules.class_variable_lifetime import ClassVariableLifetimeRule
from hdlint.rules.covergroup_expression import CovergroupExpressionRule
from hdlint.rules.dpi_declaration_string import DpiDeclarationStringRule
from hdlint.rules.hierarchical_interface_identifier import HierarchicalInterfaceIdentifierRule
from hdlint.rules.parameter_dynamic_array import ParameterDynamicArrayRule
from hdlint.rules.repetition_in_sequence import RepetitionInSequenceRule

from treehelpers import ident, make_unit, node


def class_property(var_name, lifetime=None, line=2):
    children = []
    if lifetime is not None:
        children.append(node(lifetime, line=line))
    children.append(node(NodeKind.DATA_DECLARATION,
                         node(NodeKind.DATA_TYPE, node(NodeKind.INTEGER_ATOM_TYPE)),
                         node(NodeKind.LIST_OF_VARIABLE_DECL_ASSIGNMENTS,
                              node(NodeKind.VARIABLE_DECL_ASSIGNMENT, ident(var_name)))))
    return node(NodeKind.CLASS_ITEM, node(NodeKind.CLASS_PROPERTY, *children), line=line)


def parameter(param_name, unsized=False, local=False, line=2):
    kind = NodeKind.LOCAL_PARAMETER_DECLARATION if local else NodeKind.PARAMETER_DECLARATION
    param_children = [ident(param_name)]
    if unsized:
        param_children.append(node(NodeKind.UNSIZED_DIMENSION, line=line))
    return node(kind,
                node(NodeKind.DATA_TYPE_OR_IMPLICIT),
                node(NodeKind.LIST_OF_PARAM_ASSIGNMENTS,
                     node(NodeKind.PARAM_ASSIGNMENT, *param_children)),
                line=line)


def dpi_import(func_name, spec, line=2):
    return node(NodeKind.DPI_IMPORT_EXPORT,
                node(NodeKind.DPI_SPEC_STRING, node(NodeKind.STRING_LITERAL, name=f'"{spec}"')),
                node(NodeKind.FUNCTION_PROTOTYPE,
                     node(NodeKind.FUNCTION_DATA_TYPE_OR_IMPLICIT),
                     ident(func_name)),
                line=line)


class TestClassVariableLifetimeRule:

    def setup_method(self):
        self.rule = ClassVariableLifetimeRule()

    def test_automatic_property_is_flagged(self):
        unit = make_unit(node(NodeKind.CLASS_DECLARATION, ident("c"),
                              class_property("count", NodeKind.LIFETIME_AUTOMATIC, line=4)))
        diagnostics = self.rule.evaluate(unit)
        assert len(diagnostics) == 1
        assert diagnostics[0].message == "class variable 'count' cannot be declared automatic"
        assert diagnostics[0].line == 4

    def test_static_and_default_properties_pass(self):
        unit = make_unit(node(NodeKind.CLASS_DECLARATION, ident("c"),
                              class_property("a", NodeKind.LIFETIME_STATIC),
                              class_property("b")))
        assert self.rule.evaluate(unit) == []


class TestParameterDynamicArrayRule:

    def setup_method(self):
        self.rule = ParameterDynamicArrayRule()

    def test_unsized_parameter_is_flagged(self):
        unit = make_unit(node(NodeKind.MODULE_DECLARATION,
                              parameter("WIDTHS", unsized=True, line=3),
                              parameter("DEPTH", line=4)))
        diagnostics = self.rule.evaluate(unit)
        assert len(diagnostics) == 1
        assert diagnostics[0].message == "parameter 'WIDTHS' declared as a dynamic array"
        assert diagnostics[0].line == 3

    def test_local_parameter_is_flagged(self):
        unit = make_unit(parameter("TABLE", unsized=True, local=True))
        assert [d.meta["name"] for d in self.rule.evaluate(unit)] == ["TABLE"]


class TestDpiDeclarationStringRule:

    def setup_method(self):
        self.rule = DpiDeclarationStringRule()

    def test_dpi_c_passes(self):
        assert self.rule.evaluate(make_unit(dpi_import("c_fn", "DPI-C"))) == []

    def test_deprecated_dpi_is_a_warning(self):
        diagnostics = self.rule.evaluate(make_unit(dpi_import("c_fn", "DPI", line=7)))
        assert len(diagnostics) == 1
        assert diagnostics[0].severity == Severity.WARNING
        assert diagnostics[0].line == 7
        assert diagnostics[0].meta == {"name": "c_fn", "spec_string": "DPI"}

    def test_unknown_spec_is_an_error(self):
        diagnostics = self.rule.evaluate(make_unit(dpi_import("c_fn", "DPI-X")))
        assert diagnostics[0].severity == Severity.ERROR
        assert 'unsupported spec string "DPI-X"' in diagnostics[0].message

    def test_missing_spec_string_does_not_fire(self):
        dpi = node(NodeKind.DPI_IMPORT_EXPORT, node(NodeKind.FUNCTION_PROTOTYPE, ident("c_fn")))
        assert self.rule.evaluate(make_unit(dpi)) == []


def sequence(*children, line=2):
    return node(NodeKind.SEQUENCE_EXPR, *children, line=line)


def boolean(name):
    return node(NodeKind.EXPRESSION, ident(name))


class TestRepetitionInSequenceRule:

    def setup_method(self):
        self.rule = RepetitionInSequenceRule()

    def test_goto_repetition_on_sequence_is_flagged(self):
        # (a ##1 b)[->2]
        inner = sequence(boolean("a"), node(NodeKind.CYCLE_DELAY_RANGE), sequence(boolean("b")))
        unit = make_unit(sequence(inner, node(NodeKind.GOTO_REPETITION, line=6), line=6))
        diagnostics = self.rule.evaluate(unit)
        assert len(diagnostics) == 1
        assert diagnostics[0].line == 6
        assert diagnostics[0].message.startswith("goto repetition '[->]' applied to a sequence")
        assert diagnostics[0].meta == {"repetition": "goto_repetition"}

    def test_non_consecutive_repetition_on_sequence_is_flagged(self):
        inner = sequence(boolean("a"), node(NodeKind.CYCLE_DELAY_RANGE), sequence(boolean("b")))
        unit = make_unit(sequence(inner, node(NodeKind.NON_CONSECUTIVE_REPETITION)))
        assert [d.meta["repetition"] for d in self.rule.evaluate(unit)] == ["non_consecutive_repetition"]

    def test_repetition_on_boolean_passes(self):
        # a ##1 b[->2]: the repetition applies to b alone
        unit = make_unit(sequence(
            boolean("a"),
            node(NodeKind.CYCLE_DELAY_RANGE),
            sequence(boolean("b"), node(NodeKind.GOTO_REPETITION)),
        ))
        assert self.rule.evaluate(unit) == []

    def test_repetition_after_flat_boolean_operand_passes(self):
        unit = make_unit(sequence(
            boolean("a"), node(NodeKind.CYCLE_DELAY_RANGE), boolean("b"), node(NodeKind.GOTO_REPETITION),
        ))
        assert self.rule.evaluate(unit) == []

    def test_consecutive_repetition_on_sequence_passes(self):
        inner = sequence(boolean("a"), node(NodeKind.CYCLE_DELAY_RANGE), sequence(boolean("b")))
        unit = make_unit(sequence(inner, node(NodeKind.CONSECUTIVE_REPETITION)))
        assert self.rule.evaluate(unit) == []


def virtual_interface(*components, modport=None, line=3):
    if len(components) == 1:
        interface_name = ident(components[0])
    else:
        interface_name = node(NodeKind.HIERARCHICAL_IDENTIFIER, *[ident(c) for c in components])
    children = [interface_name]
    if modport is not None:
        children.append(ident(modport))
    return node(NodeKind.DATA_DECLARATION,
                node(NodeKind.DATA_TYPE, node(NodeKind.VIRTUAL_INTERFACE_TYPE, *children)),
                node(NodeKind.LIST_OF_VARIABLE_DECL_ASSIGNMENTS,
                     node(NodeKind.VARIABLE_DECL_ASSIGNMENT, ident("vif"))),
                line=line)


class TestHierarchicalInterfaceIdentifierRule:

    def setup_method(self):
        self.rule = HierarchicalInterfaceIdentifierRule()

    def test_hierarchical_interface_is_flagged(self):
        unit = make_unit(node(NodeKind.CLASS_DECLARATION, ident("drv"),
                              virtual_interface("top", "u_bus", "bus_if", line=9)))
        diagnostics = self.rule.evaluate(unit)
        assert len(diagnostics) == 1
        assert diagnostics[0].line == 9
        assert diagnostics[0].meta == {"name": "top.u_bus.bus_if"}
        assert "'top.u_bus.bus_if'" in diagnostics[0].message

    def test_simple_interface_with_modport_passes(self):
        unit = make_unit(virtual_interface("bus_if", modport="master"))
        assert self.rule.evaluate(unit) == []

    def test_single_component_hierarchical_identifier_passes(self):
        vif = node(NodeKind.VIRTUAL_INTERFACE_TYPE, node(NodeKind.HIERARCHICAL_IDENTIFIER, ident("bus_if")))
        assert self.rule.evaluate(make_unit(vif)) == []


def cover_point(*expression_children, label=None, line=4):
    children = [ident(label)] if label is not None else []
    children.append(node(NodeKind.EXPRESSION, *expression_children))
    return node(NodeKind.COVER_POINT, *children, line=line)


def covergroup(*points):
    return node(NodeKind.COVERGROUP_DECLARATION, ident("cg"), *points, line=2)


class TestCovergroupExpressionRule:

    def setup_method(self):
        self.rule = CovergroupExpressionRule()

    def test_increment_in_coverpoint_is_flagged(self):
        unit = make_unit(covergroup(
            cover_point(node(NodeKind.INC_OR_DEC_EXPRESSION, ident("count"), line=5), label="cp_count"),
        ))
        diagnostics = self.rule.evaluate(unit)
        assert len(diagnostics) == 1
        assert diagnostics[0].message == "coverpoint 'cp_count' expression has side effects"
        assert diagnostics[0].line == 5

    def test_assignment_in_unlabelled_coverpoint_is_flagged(self):
        unit = make_unit(covergroup(cover_point(node(NodeKind.OPERATOR_ASSIGNMENT, ident("a")))))
        diagnostics = self.rule.evaluate(unit)
        assert len(diagnostics) == 1
        assert diagnostics[0].meta == {"name": None, "name_resolved": False}

    def test_plain_coverpoints_pass(self):
        unit = make_unit(covergroup(cover_point(ident("a"), label="cp_a"), cover_point(ident("b"))))
        assert self.rule.evaluate(unit) == []

    def test_side_effect_outside_covergroup_is_ignored(self):
        unit = make_unit(node(NodeKind.MODULE_DECLARATION, node(NodeKind.INC_OR_DEC_EXPRESSION, ident("i"))))
        assert self.rule.evaluate(unit) == []
