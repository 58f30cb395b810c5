"""
Pick Assist packaging rules: classify orders by packaging type and box.

- Rule model: conditions, rules, field/operator table, default catalogs
- Evaluator / matcher: one condition, one rule, against one order
- Engine: first enabled matching rule in priority order wins
- Validation: editor-facing messages for a candidate rule
- Catalog: pure add/update/delete/toggle/move operations
"""
from packrules.catalog import (
    add_rule,
    build_rule,
    delete_rule,
    move_rule,
    new_condition,
    toggle_rule,
    update_rule,
)
from packrules.engine import (
    OrderClassification,
    classify_order,
    resolve,
    resolve_box,
    resolve_packaging,
)
from packrules.evaluator import evaluate, parse_number
from packrules.matcher import matches
from packrules.models import (
    FIELD_SPECS,
    ClassificationResult,
    Rule,
    RuleCondition,
    RuleField,
    RuleOperator,
    RuleType,
)
from packrules.validation import validate_rule

__all__ = [
    # Model
    "FIELD_SPECS",
    "ClassificationResult",
    "Rule",
    "RuleCondition",
    "RuleField",
    "RuleOperator",
    "RuleType",
    # Evaluation
    "evaluate",
    "parse_number",
    "matches",
    "resolve",
    "resolve_packaging",
    "resolve_box",
    "classify_order",
    "OrderClassification",
    # Editing
    "validate_rule",
    "build_rule",
    "add_rule",
    "update_rule",
    "delete_rule",
    "toggle_rule",
    "move_rule",
    "new_condition",
]
