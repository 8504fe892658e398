"""Tests for the rule registry and rule discovery."""

import pytest

from hdlint.engine.errors import RuleConfigurationError
from hdlint.engine.registry import Registry, build_default_registry
from hdlint.engine.types import INTERNAL_RULE_FAILURE, RuleMeta


class DummyRule:
    def __init__(self, rule_id):
        self.meta = RuleMeta(id=rule_id, category="test")

    def evaluate(self, unit):
        return []


class TestRegistry:

    def setup_method(self):
        self.registry = Registry()

    def test_registration_order_is_kept(self):
        for rule_id in ["B_RULE", "A_RULE", "C_RULE"]:
            self.registry.register_rule(DummyRule(rule_id))
        assert self.registry.get_rule_ids() == ["B_RULE", "A_RULE", "C_RULE"]
        assert [r.meta.id for r in self.registry] == ["B_RULE", "A_RULE", "C_RULE"]
        assert len(self.registry) == 3

    def test_duplicate_id_is_rejected(self):
        self.registry.register_rule(DummyRule("SAME"))
        with pytest.raises(RuleConfigurationError):
            self.registry.register_rule(DummyRule("SAME"))
        assert len(self.registry) == 1

    def test_reserved_id_is_rejected(self):
        with pytest.raises(RuleConfigurationError):
            self.registry.register_rule(DummyRule(INTERNAL_RULE_FAILURE))

    def test_non_rule_is_rejected(self):
        with pytest.raises(RuleConfigurationError):
            self.registry.register_rule(object())

    def test_lookup(self):
        rule = DummyRule("X")
        self.registry.register_rule(rule)
        assert self.registry.get_rule("X") is rule
        assert self.registry.get_rule("Y") is None
        assert "X" in self.registry
        assert self.registry.get_rules(["Y", "X"]) == [rule]

    def test_select_by_pattern_keeps_registration_order(self):
        registry = Registry([DummyRule(i) for i in ["DPI_B", "PROTO_A", "DPI_A"]])
        selected = registry.select(["PROTO_*", "DPI_*"], ["DPI_A"])
        assert selected.get_rule_ids() == ["DPI_B", "PROTO_A"]
        # The source registry is untouched
        assert len(registry) == 3

    def test_clear(self):
        self.registry.register_rule(DummyRule("X"))
        self.registry.clear()
        assert len(self.registry) == 0
        assert "X" not in self.registry


class TestDiscovery:

    def test_default_rules_are_discovered(self):
        registry = build_default_registry()
        assert set(registry.get_rule_ids()) == {
            "CLASS_VARIABLE_LIFETIME",
            "COVERGROUP_EXPRESSION",
            "DPI_DECLARATION_STRING",
            "HIERARCHICAL_INTERFACE_IDENTIFIER",
            "IMPLICIT_DATA_TYPE_IN_DECLARATION",
            "PARAMETER_DYNAMIC_ARRAY",
            "PROTOTYPE_RETURN_DATA_TYPE",
            "REPETITION_IN_SEQUENCE",
        }

    def test_discovery_order_is_stable(self):
        assert build_default_registry().get_rule_ids() == build_default_registry().get_rule_ids()

    def test_rule_configs_reach_the_constructor(self):
        registry = build_default_registry({"PROTOTYPE_RETURN_DATA_TYPE": {"exempt_constructors": True}})
        assert registry.get_rule("PROTOTYPE_RETURN_DATA_TYPE").exempt_constructors is True

    def test_unknown_rule_option_is_a_configuration_error(self):
        with pytest.raises(RuleConfigurationError):
            build_default_registry({"IMPLICIT_DATA_TYPE_IN_DECLARATION": {"bogus": 1}})

    def test_missing_package_is_skipped(self):
        registry = Registry()
        assert registry.discover_rules(["hdlint.no_such_package"]) == 0
