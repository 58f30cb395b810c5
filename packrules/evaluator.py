"""Condition evaluator: one condition against one order.

Pure and total. Anything that cannot be evaluated (unknown field or
operator, text operator on a numeric field, absent order value, value
that does not parse as a number) evaluates to False instead of raising,
so a malformed condition only disables its own rule.
"""

from __future__ import annotations

import logging
import math
import operator
from typing import Any, Callable, Optional

from orders.models import Order
from packrules.models import (
    FIELD_SPECS,
    RuleCondition,
    RuleField,
    RuleOperator,
    ValueKind,
    lookup_field,
    lookup_operator,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Field access
# ---------------------------------------------------------------------------

def _channel(order: Order) -> Optional[str]:
    return order.channel if order.channel is not None else order.channel_type


FIELD_ACCESSORS: dict[RuleField, Callable[[Order], Any]] = {
    RuleField.SKU: lambda o: o.sku,
    RuleField.QUANTITY: lambda o: o.quantity,
    RuleField.WIDTH: lambda o: o.width,
    RuleField.WEIGHT: lambda o: o.weight,
    RuleField.LOCATION: lambda o: o.location,
    RuleField.ORDER_VALUE: lambda o: o.order_value,
    RuleField.CHANNEL: _channel,
    RuleField.SHIP_FROM_LOCATION: lambda o: o.ship_from_location,
}


def field_value(order: Order, field: RuleField) -> Any:
    """Read ``field`` from ``order``; None means the order does not carry it."""
    return FIELD_ACCESSORS[field](order)


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------

def parse_number(value: Any) -> Optional[float]:
    """Parse ``value`` as a float, or return None.

    Booleans, NaN, blank strings and non-numeric strings do not parse.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def _normalize_text(value: str) -> str:
    return value.strip().lower()


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------

_NUMERIC_COMPARATORS: dict[RuleOperator, Callable[[float, float], bool]] = {
    RuleOperator.EQUALS: operator.eq,
    RuleOperator.GREATER_THAN: operator.gt,
    RuleOperator.LESS_THAN: operator.lt,
    RuleOperator.GREATER_EQUAL: operator.ge,
    RuleOperator.LESS_EQUAL: operator.le,
}

_TEXT_COMPARATORS: dict[RuleOperator, Callable[[str, str], bool]] = {
    RuleOperator.CONTAINS: lambda actual, expected: expected in actual,
    RuleOperator.EQUALS: operator.eq,
    RuleOperator.STARTS_WITH: lambda actual, expected: actual.startswith(expected),
    RuleOperator.ENDS_WITH: lambda actual, expected: actual.endswith(expected),
}


def _compare_numbers(op: RuleOperator, actual: Any, expected: Any) -> bool:
    comparator = _NUMERIC_COMPARATORS.get(op)
    if comparator is None:
        return False
    left = parse_number(actual)
    right = parse_number(expected)
    if left is None or right is None:
        return False
    return comparator(left, right)


def _compare_text(op: RuleOperator, actual: Any, expected: Any) -> bool:
    comparator = _TEXT_COMPARATORS.get(op)
    if comparator is None:
        return False
    if not isinstance(actual, str) or not isinstance(expected, str):
        return False
    left = _normalize_text(actual)
    right = _normalize_text(expected)
    # An empty string is a present value that only matches another empty string.
    if not left or not right:
        return left == right
    return comparator(left, right)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def evaluate(condition: RuleCondition, order: Order) -> bool:
    """Return True when ``order`` satisfies ``condition``."""
    field = lookup_field(condition.field)
    op = lookup_operator(condition.operator)
    if field is None or op is None:
        logger.debug("Condition %s is not evaluable: field=%r operator=%r",
                     condition.id, condition.field, condition.operator)
        return False

    try:
        actual = field_value(order, field)
        if actual is None:
            return False
        if FIELD_SPECS[field].kind is ValueKind.NUMBER:
            return _compare_numbers(op, actual, condition.value)
        return _compare_text(op, actual, condition.value)
    except (AttributeError, TypeError, ValueError) as exc:
        logger.debug("Condition %s failed to evaluate: %s", condition.id, exc)
        return False
