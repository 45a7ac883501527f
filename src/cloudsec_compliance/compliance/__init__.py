"""Compliance engine for cloud resource configuration.

Modules:
- models: ResourceDescriptor, Rule, Verdict, Report value types
- fields: defensive navigation of descriptor field trees
- rule_catalog: canonical rules per resource kind
- rule_registry: ordered, validated rule registry
- evaluator: pure (rule, descriptor) -> verdict evaluation
- engine: batch evaluation and severity aggregation
- state_validator: secure/insecure expected-state validation
"""
