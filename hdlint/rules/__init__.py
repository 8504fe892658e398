"""
hdlint rules package.

Every module here that defines a ``RULES`` list is picked up by
``Registry.discover_rules``. To add a rule:

1. Create a module in this package (e.g. ``my_rule.py``)
2. Define a class with a ``meta = RuleMeta(...)`` attribute and an
   ``evaluate(self, unit)`` method returning diagnostics
3. List the class in the module's ``RULES``; options under the rule's id in
   ``rule_configs`` are passed to its constructor

Example:

```python
from ..engine.query import collect_descendants, location
from ..engine.tree import CompilationUnit, NodeKind
from ..engine.types import Diagnostic, RuleMeta

class MyRule:
    meta = RuleMeta(id="MY_RULE", category="style")

    def evaluate(self, unit: CompilationUnit):
        for node in collect_descendants(unit.tree, unit.root, NodeKind.NET_DECLARATION):
            file_id, line = location(unit.tree, node)
            yield Diagnostic(self.meta.id, self.meta.severity, "net found", file_id, line)

RULES = [MyRule]
```
"""
