"""Catalog mutations.

Every operation takes a catalog (list of rules) and returns a new list;
nothing is changed in place. The caller persists the returned catalog
and calls the engine again, which is all it takes for the new rules to
apply.

Adding or updating runs ``validate_rule`` first and raises
RuleValidationError with the messages instead of saving a bad rule.
"""

from __future__ import annotations

import secrets
import string
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import ValidationError

from core.exceptions import DuplicateRuleError, RuleNotFoundError, RuleValidationError
from packrules.models import DEFAULT_PRIORITY, Rule, RuleCondition, RuleType, utc_now
from packrules.validation import MIN_PRIORITY, validate_rule

_ID_ALPHABET = string.ascii_lowercase + string.digits

# Draft keys an edit may change; id, ruleType and createdAt are fixed.
_EDITABLE = ("name", "description", "conditions", "result_value", "priority", "enabled", "color")
_CAMEL = {"result_value": "resultValue"}
_NULL_IS_UNCHANGED = ("priority", "enabled", "conditions")


def _generate_id(prefix: str, now: datetime) -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}-{int(now.timestamp() * 1000)}-{suffix}"


def new_condition(now: Optional[datetime] = None) -> RuleCondition:
    """A blank condition as the rule editor adds it."""
    return RuleCondition(
        id=_generate_id("cond", now or utc_now()),
        field="sku",
        operator="contains",
        value="",
    )


def _draft_value(draft: Mapping[str, Any], key: str, default: Any = None) -> Any:
    if key in draft:
        return draft[key]
    return draft.get(_CAMEL.get(key, key), default)


def with_condition_ids(conditions: Any, now: Optional[datetime] = None) -> Any:
    """Give every condition mapping without an id a generated one."""
    now = now or utc_now()
    if isinstance(conditions, (str, bytes)) or not isinstance(conditions, Sequence):
        return conditions
    filled = []
    for condition in conditions:
        if isinstance(condition, Mapping) and not condition.get("id"):
            condition = {**condition, "id": _generate_id("cond", now)}
        filled.append(condition)
    return filled


def _clean(draft: Mapping[str, Any], now: datetime) -> dict[str, Any]:
    """Trim text fields and fill defaults the way the editor saves them.

    A null priority, enabled flag or condition list means "leave as is".
    """
    cleaned: dict[str, Any] = {}
    for key in _EDITABLE:
        marker = object()
        value = _draft_value(draft, key, marker)
        if value is marker or (value is None and key in _NULL_IS_UNCHANGED):
            continue
        cleaned[key] = value
    if isinstance(cleaned.get("name"), str):
        cleaned["name"] = cleaned["name"].strip()
    if isinstance(cleaned.get("result_value"), str):
        cleaned["result_value"] = cleaned["result_value"].strip()
    if "description" in cleaned and cleaned["description"] is None:
        cleaned["description"] = ""
    if isinstance(cleaned.get("description"), str):
        cleaned["description"] = cleaned["description"].strip()
    if "priority" in cleaned and not cleaned["priority"]:
        cleaned["priority"] = DEFAULT_PRIORITY
    if isinstance(cleaned.get("color"), str):
        cleaned["color"] = cleaned["color"].strip() or None
    if "conditions" in cleaned:
        cleaned["conditions"] = with_condition_ids(cleaned["conditions"], now)
    return cleaned


def build_rule(
    draft: Mapping[str, Any],
    rule_type: RuleType,
    now: Optional[datetime] = None,
) -> Rule:
    """Create a new rule from an editor draft.

    Raises RuleValidationError when the draft is not a valid rule.
    """
    rule_type = RuleType(rule_type)
    now = now or utc_now()
    cleaned = _clean(draft, now)
    cleaned.setdefault("priority", DEFAULT_PRIORITY)
    candidate = {
        **cleaned,
        "id": _draft_value(draft, "id") or _generate_id("rule", now),
        "rule_type": rule_type,
        "created_at": now,
        "updated_at": now,
    }

    errors = validate_rule(candidate)
    if errors:
        raise RuleValidationError(errors)
    return rule_from_mapping(candidate)


def rule_from_mapping(data: Mapping[str, Any]) -> Rule:
    """Build a Rule from already validated data.

    Anything the model still refuses is raised as RuleValidationError.
    """
    try:
        return Rule.model_validate(data)
    except ValidationError as exc:
        messages = [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        ]
        raise RuleValidationError(messages, _draft_value(data, "id")) from exc


def _index_of(catalog: Sequence[Rule], rule_id: str) -> int:
    for index, rule in enumerate(catalog):
        if rule.id == rule_id:
            return index
    raise RuleNotFoundError(rule_id)


def find_rule(catalog: Sequence[Rule], rule_id: str) -> Rule:
    return catalog[_index_of(catalog, rule_id)]


def add_rule(catalog: Sequence[Rule], rule: Rule) -> list[Rule]:
    """Append ``rule`` to the catalog."""
    errors = validate_rule(rule)
    if errors:
        raise RuleValidationError(errors, rule.id)
    if any(existing.id == rule.id for existing in catalog):
        raise DuplicateRuleError(rule.id)
    return [*catalog, rule]


def update_rule(
    catalog: Sequence[Rule],
    rule_id: str,
    changes: Mapping[str, Any],
    now: Optional[datetime] = None,
) -> list[Rule]:
    """Apply editor ``changes`` to one rule, keeping its position."""
    index = _index_of(catalog, rule_id)
    current = catalog[index]
    now = now or utc_now()
    updated_fields = _clean(changes, now)

    candidate = {**current.model_dump(), **updated_fields}
    errors = validate_rule(candidate)
    if errors:
        raise RuleValidationError(errors, rule_id)

    updated = rule_from_mapping({**candidate, "updated_at": now})
    return [*catalog[:index], updated, *catalog[index + 1:]]


def delete_rule(catalog: Sequence[Rule], rule_id: str) -> list[Rule]:
    index = _index_of(catalog, rule_id)
    return [*catalog[:index], *catalog[index + 1:]]


def toggle_rule(
    catalog: Sequence[Rule], rule_id: str, now: Optional[datetime] = None
) -> list[Rule]:
    """Flip a rule between enabled and disabled."""
    index = _index_of(catalog, rule_id)
    rule = catalog[index]
    toggled = rule.model_copy(update={"enabled": not rule.enabled, "updated_at": now or utc_now()})
    return [*catalog[:index], toggled, *catalog[index + 1:]]


def move_rule(
    catalog: Sequence[Rule],
    rule_id: str,
    direction: Literal["up", "down"],
    now: Optional[datetime] = None,
) -> list[Rule]:
    """Raise ("up") or lower ("down") a rule's priority by one.

    Priorities never go below MIN_PRIORITY. Other rules are not
    renumbered, so a move can create a tie; ties resolve by catalog
    order.
    """
    if direction not in ("up", "down"):
        raise ValueError(f"direction must be 'up' or 'down', not {direction!r}")

    index = _index_of(catalog, rule_id)
    rule = catalog[index]
    if direction == "up":
        if rule.priority <= MIN_PRIORITY:
            return list(catalog)
        priority = rule.priority - 1
    else:
        priority = rule.priority + 1

    moved = rule.model_copy(update={"priority": priority, "updated_at": now or utc_now()})
    return [*catalog[:index], moved, *catalog[index + 1:]]


def sort_for_display(catalog: Sequence[Rule]) -> list[Rule]:
    """Rules in the order the engine checks them."""
    return sorted(catalog, key=lambda rule: rule.priority)
