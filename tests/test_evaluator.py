"""Test condition evaluation."""
import pytest
from orders.models import Order
from packrules.evaluator import evaluate, field_value, parse_number
from packrules.models import RuleCondition, RuleField


def cond(field, operator, value):
    return RuleCondition(id="c1", field=field, operator=operator, value=value)


def test_contains_is_case_insensitive():
    order = Order(sku="ABC-CK003-X")
    assert evaluate(cond("sku", "contains", "ck003"), order) is True


def test_text_values_are_trimmed():
    order = Order(location="  Aisle 4 ")
    assert evaluate(cond("location", "equals", "aisle 4"), order) is True


@pytest.mark.parametrize("operator,value,expected", [
    ("equals", "abc-1", True),
    ("equals", "abc", False),
    ("starts_with", "ab", True),
    ("starts_with", "bc", False),
    ("ends_with", "-1", True),
    ("ends_with", "abc", False),
])
def test_text_operators(operator, value, expected):
    assert evaluate(cond("sku", operator, value), Order(sku="ABC-1")) is expected


@pytest.mark.parametrize("operator,value,expected", [
    ("equals", 35, True),
    ("greater_than", 35, False),
    ("greater_than", 34.9, True),
    ("less_than", 35, False),
    ("greater_equal", 35, True),
    ("less_equal", 35, True),
    ("less_equal", "40", True),
])
def test_numeric_operators(operator, value, expected):
    assert evaluate(cond("width", operator, value), Order(width=35)) is expected


def test_absent_numeric_field_is_false():
    order = Order(sku="X")
    assert order.width is None
    assert evaluate(cond("width", "less_equal", 40), order) is False


def test_absent_value_is_not_zero():
    order = Order(sku="X")
    assert evaluate(cond("weight", "equals", 0), order) is False
    assert evaluate(cond("weight", "less_than", 100), order) is False


def test_unparseable_condition_value_is_false():
    assert evaluate(cond("quantity", "equals", "lots"), Order(quantity=2)) is False


def test_text_operator_on_numeric_field_is_false():
    assert evaluate(cond("quantity", "contains", "1"), Order(quantity=1)) is False


def test_numeric_operator_on_text_field_is_false():
    assert evaluate(cond("sku", "greater_than", "A"), Order(sku="B")) is False


def test_non_text_value_on_text_field_is_false():
    assert evaluate(cond("sku", "equals", 12), Order(sku="12")) is False


def test_unknown_field_or_operator_is_false():
    order = Order(sku="ABC", quantity=3)
    assert evaluate(cond("colour", "equals", "red"), order) is False
    assert evaluate(cond("sku", "matches", "ABC"), order) is False


def test_empty_string_only_matches_empty_value():
    order = Order(sku="X", channel="")
    assert evaluate(cond("channel", "contains", "amazon"), order) is False
    assert evaluate(cond("channel", "equals", ""), order) is True
    assert evaluate(cond("sku", "contains", ""), Order(sku="X")) is False


def test_channel_falls_back_to_channel_type():
    order = Order(sku="X", channel_type="Amazon")
    assert field_value(order, RuleField.CHANNEL) == "Amazon"
    assert evaluate(cond("channel", "equals", "amazon"), order) is True


def test_missing_ship_from_location_is_false():
    assert evaluate(cond("shipFromLocation", "contains", "SM"), Order(sku="X")) is False


def test_order_value_from_text():
    order = Order.model_validate({"sku": "X", "orderValue": "24.50"})
    assert evaluate(cond("orderValue", "greater_than", 20), order) is True


def test_unparseable_order_measure_is_absent():
    order = Order.model_validate({"sku": "X", "width": "N/A", "weight": ""})
    assert order.width is None
    assert order.weight is None
    assert evaluate(cond("width", "less_than", 100), order) is False


@pytest.mark.parametrize("value,expected", [
    (3, 3.0),
    (2.5, 2.5),
    (" 7 ", 7.0),
    ("", None),
    ("abc", None),
    (None, None),
    (True, None),
    (float("nan"), None),
    ([1], None),
])
def test_parse_number(value, expected):
    assert parse_number(value) == expected
