"""Test catalog editing operations."""
from datetime import datetime, timezone

import pytest
from core.exceptions import DuplicateRuleError, RuleNotFoundError, RuleValidationError
from packrules.catalog import (
    add_rule,
    build_rule,
    delete_rule,
    find_rule,
    move_rule,
    new_condition,
    rule_from_mapping,
    sort_for_display,
    toggle_rule,
    update_rule,
    with_condition_ids,
)
from packrules.models import DEFAULT_PRIORITY, RuleType

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def letter_draft(**overrides):
    data = {
        "name": "  Single item  ",
        "resultValue": " Letter ",
        "conditions": [{"field": "quantity", "operator": "less_equal", "value": 1}],
    }
    data.update(overrides)
    return data


@pytest.fixture
def catalog():
    return [
        build_rule(letter_draft(id="r1", priority=10), RuleType.PACKAGING, now=NOW),
        build_rule({"id": "r2", "name": "Rest", "resultValue": "Parcel", "priority": 20},
                   RuleType.PACKAGING, now=NOW),
    ]


def test_build_rule_cleans_and_fills_defaults():
    rule = build_rule(letter_draft(), RuleType.PACKAGING, now=NOW)
    assert rule.name == "Single item"
    assert rule.result_value == "Letter"
    assert rule.priority == DEFAULT_PRIORITY
    assert rule.enabled is True
    assert rule.rule_type is RuleType.PACKAGING
    assert rule.created_at == NOW
    assert rule.id.startswith(f"rule-{int(NOW.timestamp() * 1000)}-")
    assert rule.conditions[0].id.startswith("cond-")


def test_build_rule_zero_priority_uses_default():
    rule = build_rule(letter_draft(priority=0), RuleType.PACKAGING, now=NOW)
    assert rule.priority == DEFAULT_PRIORITY


def test_build_rule_rejects_invalid_draft():
    with pytest.raises(RuleValidationError) as exc_info:
        build_rule({"name": "", "resultValue": ""}, RuleType.BOX)
    assert "Rule name is required" in exc_info.value.errors
    assert exc_info.value.status_code == 422


def test_new_condition_defaults():
    condition = new_condition(NOW)
    assert condition.field == "sku"
    assert condition.operator == "contains"
    assert condition.value == ""


def test_add_rule_appends(catalog):
    rule = build_rule({"id": "r3", "name": "Big", "resultValue": "Box"}, RuleType.PACKAGING)
    updated = add_rule(catalog, rule)
    assert [r.id for r in updated] == ["r1", "r2", "r3"]
    assert len(catalog) == 2


def test_add_rule_rejects_duplicate_id(catalog):
    with pytest.raises(DuplicateRuleError):
        add_rule(catalog, catalog[0])


def test_update_rule_keeps_position_and_identity(catalog):
    later = datetime(2025, 3, 2, tzinfo=timezone.utc)
    updated = update_rule(catalog, "r1", {"resultValue": "Large Letter", "priority": 5}, now=later)
    rule = updated[0]
    assert rule.id == "r1"
    assert rule.result_value == "Large Letter"
    assert rule.priority == 5
    assert rule.created_at == NOW
    assert rule.updated_at == later
    assert catalog[0].result_value == "Letter"


def test_update_rule_rejects_invalid_changes(catalog):
    with pytest.raises(RuleValidationError) as exc_info:
        update_rule(catalog, "r1", {"name": " "})
    assert exc_info.value.details["rule_id"] == "r1"


def test_unknown_rule_id(catalog):
    with pytest.raises(RuleNotFoundError):
        update_rule(catalog, "missing", {"name": "x"})
    with pytest.raises(RuleNotFoundError):
        delete_rule(catalog, "missing")
    with pytest.raises(RuleNotFoundError):
        find_rule(catalog, "missing")


def test_delete_rule(catalog):
    assert [r.id for r in delete_rule(catalog, "r1")] == ["r2"]


def test_toggle_rule(catalog):
    toggled = toggle_rule(catalog, "r2", now=NOW)
    assert find_rule(toggled, "r2").enabled is False
    assert find_rule(toggle_rule(toggled, "r2"), "r2").enabled is True


def test_move_rule_adjusts_priority_by_one(catalog):
    assert find_rule(move_rule(catalog, "r2", "up"), "r2").priority == 19
    assert find_rule(move_rule(catalog, "r2", "down"), "r2").priority == 21


def test_move_rule_up_stops_at_one():
    rule = build_rule(letter_draft(id="top", priority=1), RuleType.PACKAGING)
    moved = move_rule([rule], "top", "up")
    assert moved[0].priority == 1


def test_move_rule_can_create_tie(catalog):
    moved = catalog
    for _ in range(10):
        moved = move_rule(moved, "r2", "up")
    assert [r.priority for r in moved] == [10, 10]
    assert [r.id for r in sort_for_display(moved)] == ["r1", "r2"]


def test_move_rule_rejects_bad_direction(catalog):
    with pytest.raises(ValueError):
        move_rule(catalog, "r1", "sideways")


def test_null_enabled_leaves_rule_disabled(catalog):
    disabled = toggle_rule(catalog, "r1", now=NOW)
    updated = update_rule(disabled, "r1", {"enabled": None, "name": "Renamed"})
    rule = find_rule(updated, "r1")
    assert rule.enabled is False
    assert rule.name == "Renamed"


def test_null_conditions_and_priority_leave_rule_unchanged(catalog):
    updated = update_rule(catalog, "r1", {"conditions": None, "priority": None})
    rule = find_rule(updated, "r1")
    assert rule.conditions == catalog[0].conditions
    assert rule.priority == 10


def test_update_fills_missing_condition_ids(catalog):
    updated = update_rule(catalog, "r2", {
        "conditions": [{"field": "sku", "operator": "starts_with", "value": "ZZ"}],
    })
    assert find_rule(updated, "r2").conditions[0].id.startswith("cond-")


def test_with_condition_ids_keeps_existing_ids():
    filled = with_condition_ids(
        [{"id": "keep", "field": "sku"}, {"field": "quantity"}, {"id": "", "field": "width"}],
        now=NOW,
    )
    assert filled[0]["id"] == "keep"
    assert filled[1]["id"].startswith(f"cond-{int(NOW.timestamp() * 1000)}-")
    assert filled[2]["id"] != filled[1]["id"]
    assert with_condition_ids(None) is None


def test_rule_from_mapping_reports_model_errors():
    with pytest.raises(RuleValidationError) as exc_info:
        rule_from_mapping({"id": "r9", "name": "X", "ruleType": "box", "resultValue": "Y",
                           "priority": "first"})
    assert exc_info.value.details["rule_id"] == "r9"
    assert any(message.startswith("priority:") for message in exc_info.value.errors)
