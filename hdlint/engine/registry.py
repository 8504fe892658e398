"""
Registry for rules.

This module provides the ordered rule registry the dispatcher runs, along with
discovery of rules from packages and selection of rules by id pattern.
"""

import fnmatch
import importlib
import logging
import pkgutil
from typing import Any, Dict, Iterator, List, Mapping, Optional

from .errors import RuleConfigurationError
from .types import RESERVED_RULE_IDS, Rule

logger = logging.getLogger(__name__)

DEFAULT_RULE_PACKAGES = ["hdlint.rules"]


class Registry:
    """Ordered set of rules, unique by id.

    Registration order is significant: the dispatcher reports each unit's
    diagnostics rule by rule in this order.
    """

    def __init__(self, rules: Optional[List[Rule]] = None):
        self._rules: List[Rule] = []
        self._rule_index: Dict[str, Rule] = {}  # id -> rule
        for rule in rules or []:
            self.register_rule(rule)

    def register_rule(self, rule: Rule) -> None:
        """Register a rule; a second rule with the same id is a configuration error."""
        meta = getattr(rule, "meta", None)
        rule_id = getattr(meta, "id", None)
        if not rule_id or not callable(getattr(rule, "evaluate", None)):
            raise RuleConfigurationError(f"Object {rule!r} is not a rule (needs meta.id and evaluate())")
        if rule_id in RESERVED_RULE_IDS:
            raise RuleConfigurationError(f"Rule id '{rule_id}' is reserved for engine diagnostics")
        if rule_id in self._rule_index:
            raise RuleConfigurationError(f"Rule id '{rule_id}' is already registered")

        self._rules.append(rule)
        self._rule_index[rule_id] = rule

    def get_rule(self, rule_id: str) -> Optional[Rule]:
        """Get rule by id."""
        return self._rule_index.get(rule_id)

    def get_all_rules(self) -> List[Rule]:
        """Get all registered rules, in registration order."""
        return self._rules.copy()

    def get_rule_ids(self) -> List[str]:
        return [rule.meta.id for rule in self._rules]

    def get_rules(self, filter_ids: Optional[List[str]] = None) -> List[Rule]:
        """Get rules, optionally filtered by exact IDs."""
        if filter_ids is None:
            return self.get_all_rules()

        rules = []
        for rule_id in filter_ids:
            rule = self.get_rule(rule_id)
            if rule:
                rules.append(rule)
            else:
                logger.warning("Rule '%s' not found", rule_id)
        return rules

    def get_enabled_rules(self, enabled_patterns: List[str],
                          disabled_patterns: Optional[List[str]] = None) -> List[Rule]:
        """Get rules whose id matches an enabled pattern and no disabled pattern.

        Registration order is kept regardless of pattern order.
        """
        disabled_patterns = disabled_patterns or []
        enabled = []
        for rule in self._rules:
            rule_id = rule.meta.id
            if not any(fnmatch.fnmatchcase(rule_id, pattern) for pattern in enabled_patterns):
                continue
            if any(fnmatch.fnmatchcase(rule_id, pattern) for pattern in disabled_patterns):
                continue
            enabled.append(rule)
        return enabled

    def select(self, enabled_patterns: List[str],
               disabled_patterns: Optional[List[str]] = None) -> "Registry":
        """Return a new registry holding only the enabled rules."""
        return Registry(self.get_enabled_rules(enabled_patterns, disabled_patterns))

    def discover_rules(self, entry_packages: List[str],
                       rule_configs: Optional[Mapping[str, Mapping[str, Any]]] = None) -> int:
        """
        Auto-discover and register rules from packages.

        Args:
            entry_packages: List of package names to discover from
            rule_configs: Rule id -> keyword options for the rule's constructor

        Returns:
            Number of rules discovered and registered
        """
        initial_count = len(self._rules)
        for package_name in entry_packages:
            self._discover_from_package(package_name, rule_configs or {})
        return len(self._rules) - initial_count

    def _discover_from_package(self, package_name: str,
                               rule_configs: Mapping[str, Mapping[str, Any]]) -> None:
        """Discover rules from a specific package."""
        try:
            package = importlib.import_module(package_name)
        except ImportError as e:
            logger.warning("Could not import rule package %s: %s", package_name, e)
            return

        modules = [package]
        if hasattr(package, "__path__"):
            for _, modname, _ in pkgutil.walk_packages(package.__path__, package.__name__ + "."):
                try:
                    modules.append(importlib.import_module(modname))
                except ImportError as e:
                    logger.warning("Failed to import rule module %s: %s", modname, e)

        for module in modules:
            self._extract_rules_from_module(module, rule_configs)

    def _extract_rules_from_module(self, module, rule_configs: Mapping[str, Mapping[str, Any]]) -> None:
        """Register every entry of a module's ``RULES`` list."""
        rules = getattr(module, "RULES", None)
        if rules is None:
            return
        if not isinstance(rules, (list, tuple)):
            raise RuleConfigurationError(f"{module.__name__}.RULES must be a list")

        for rule in rules:
            if isinstance(rule, type):
                meta = getattr(rule, "meta", None)
                options = dict(rule_configs.get(getattr(meta, "id", ""), {}))
                try:
                    rule = rule(**options)
                except TypeError as e:
                    raise RuleConfigurationError(
                        f"Cannot configure rule {rule.__name__} from {module.__name__}: {e}"
                    ) from e
            self.register_rule(rule)

    def clear(self) -> None:
        """Remove every registered rule."""
        self._rules.clear()
        self._rule_index.clear()

    def __len__(self) -> int:
        return len(self._rules)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self.get_all_rules())

    def __contains__(self, rule_id: str) -> bool:
        return rule_id in self._rule_index


def build_default_registry(rule_configs: Optional[Mapping[str, Mapping[str, Any]]] = None,
                           packages: Optional[List[str]] = None) -> Registry:
    """Build a registry holding every rule shipped with hdlint (or found in ``packages``)."""
    registry = Registry()
    registry.discover_rules(packages or DEFAULT_RULE_PACKAGES, rule_configs)
    return registry
