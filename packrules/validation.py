"""Rule validation for the rule editor.

``validate_rule`` returns human-readable messages for display next to
the rule being edited; an empty list means the rule may be saved. It
never raises and never mutates its input. Drafts from the editor may be
partial and may use camelCase or snake_case keys.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from pydantic import BaseModel, TypeAdapter, ValidationError

from packrules.evaluator import parse_number
from packrules.models import (
    FIELD_SPECS,
    OPERATOR_LABELS,
    RuleType,
    ValueKind,
    lookup_field,
    lookup_operator,
)

MIN_PRIORITY = 1

_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")

_MISSING = object()

_TIMESTAMP = TypeAdapter(datetime)


def _get(data: Mapping[str, Any], snake: str, camel: str | None = None) -> Any:
    if snake in data:
        return data[snake]
    if camel and camel in data:
        return data[camel]
    return _MISSING


def _is_blank(value: Any) -> bool:
    if value is _MISSING or value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _as_mapping(candidate: Any) -> Mapping[str, Any] | None:
    if isinstance(candidate, BaseModel):
        return candidate.model_dump()
    if isinstance(candidate, Mapping):
        return candidate
    return None


def _is_timestamp(value: Any) -> bool:
    try:
        _TIMESTAMP.validate_python(value)
    except ValidationError:
        return False
    return True


def _validate_condition(position: int, data: Mapping[str, Any] | None) -> list[str]:
    prefix = f"Condition {position}"
    if data is None:
        return [f"{prefix}: Condition is not readable"]

    errors: list[str] = []
    raw_field = _get(data, "field")
    raw_operator = _get(data, "operator")
    value = _get(data, "value")

    if _is_blank(raw_field):
        errors.append(f"{prefix}: Field is required")
        field = None
    else:
        field = lookup_field(raw_field)
        if field is None:
            errors.append(f"{prefix}: Unknown field '{raw_field}'")

    if _is_blank(raw_operator):
        errors.append(f"{prefix}: Operator is required")
        op = None
    else:
        op = lookup_operator(raw_operator)
        if op is None:
            errors.append(f"{prefix}: Unknown operator '{raw_operator}'")

    if _is_blank(value):
        errors.append(f"{prefix}: Value is required")

    condition_id = _get(data, "id")
    if _is_blank(condition_id):
        errors.append(f"{prefix}: Condition id is required")
    elif not isinstance(condition_id, str):
        errors.append(f"{prefix}: Condition id must be text")

    if field is None:
        return errors

    spec = FIELD_SPECS[field]
    if op is not None and op not in spec.operators:
        errors.append(
            f"{prefix}: Operator '{OPERATOR_LABELS[op]}' cannot be used with {spec.label}"
        )
    if not _is_blank(value):
        if spec.kind is ValueKind.NUMBER and parse_number(value) is None:
            errors.append(f"{prefix}: {spec.label} must be compared with a number")
        elif spec.kind is ValueKind.TEXT and not isinstance(value, str):
            errors.append(f"{prefix}: {spec.label} must be compared with text")
    return errors


def _check_text(data: Mapping[str, Any], key: str, label: str, errors: list[str],
                camel: str | None = None) -> None:
    value = _get(data, key, camel)
    if _is_blank(value):
        errors.append(f"{label} is required")
    elif not isinstance(value, str):
        errors.append(f"{label} must be text")


def _check_conditions(conditions: Any, errors: list[str]) -> None:
    if isinstance(conditions, (str, bytes)) or not isinstance(conditions, Sequence):
        errors.append("Conditions must be a list")
        return

    seen_ids: set[str] = set()
    for position, condition in enumerate(conditions, start=1):
        condition_data = _as_mapping(condition)
        errors.extend(_validate_condition(position, condition_data))
        condition_id = condition_data.get("id") if condition_data else None
        if isinstance(condition_id, str) and condition_id:
            if condition_id in seen_ids:
                errors.append(f"Condition {position}: Duplicate condition id '{condition_id}'")
            seen_ids.add(condition_id)


def validate_rule(candidate: Any) -> list[str]:
    """Return the problems that keep ``candidate`` out of a catalog.

    Keys that are absent fall back to the rule defaults; a key that is
    present must hold a value a stored rule can carry, so an explicit
    ``null`` priority or condition list is reported rather than ignored.
    """
    data = _as_mapping(candidate)
    if data is None:
        return ["Rule is not readable"]

    errors: list[str] = []

    rule_id = _get(data, "id")
    if rule_id is not _MISSING and rule_id is not None and not isinstance(rule_id, str):
        errors.append("Rule id must be text")

    _check_text(data, "name", "Rule name", errors)
    _check_text(data, "result_value", "Result value", errors, "resultValue")

    description = _get(data, "description")
    if description is not _MISSING and not isinstance(description, str):
        errors.append("Description must be text")

    rule_type = _get(data, "rule_type", "ruleType")
    if rule_type is _MISSING or rule_type is None:
        errors.append("Rule type is required")
    else:
        try:
            rule_type = RuleType(rule_type)
        except (TypeError, ValueError):
            errors.append(f"Rule type must be 'packaging' or 'box', not '{rule_type}'")
            rule_type = None

    priority = _get(data, "priority")
    if priority is not _MISSING:
        if isinstance(priority, bool) or not isinstance(priority, int):
            errors.append("Priority must be a whole number")
        elif priority < MIN_PRIORITY:
            errors.append(f"Priority must be at least {MIN_PRIORITY}")

    enabled = _get(data, "enabled")
    if enabled is not _MISSING and not isinstance(enabled, bool):
        errors.append("Enabled must be true or false")

    color = _get(data, "color")
    if not _is_blank(color):
        if not isinstance(color, str):
            errors.append("Color must be text")
        elif rule_type is RuleType.BOX and not _HEX_COLOR.match(color.strip()):
            errors.append("Color must be a hex color such as #3B82F6")

    for key, camel in (("created_at", "createdAt"), ("updated_at", "updatedAt")):
        stamp = _get(data, key, camel)
        if stamp is not _MISSING and not _is_timestamp(stamp):
            errors.append(f"{camel} must be a date and time")

    conditions = _get(data, "conditions")
    if conditions is not _MISSING:
        _check_conditions(conditions, errors)

    return errors
