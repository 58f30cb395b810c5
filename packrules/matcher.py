"""Rule matcher: does an enabled rule fire for an order?"""

from orders.models import Order
from packrules.evaluator import evaluate
from packrules.models import Rule


def matches(rule: Rule, order: Order) -> bool:
    """True when ``rule`` is enabled and every condition holds.

    A rule with no conditions is a catch-all and matches any order.
    """
    if not rule.enabled:
        return False
    return all(evaluate(condition, order) for condition in rule.conditions)
