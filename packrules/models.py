"""Rule model for packaging and box classification.

Rules are plain data: a named, prioritized, enable-able set of AND-ed
conditions paired with a result value. Two catalogs exist, one per
RuleType. Models are frozen so a catalog handed to the engine is an
immutable snapshot; edits go through ``packrules.catalog`` which returns
new lists.

JSON uses camelCase keys (``ruleType``, ``resultValue``, ``createdAt``)
so catalogs persisted by earlier versions load unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class RuleType(str, Enum):
    PACKAGING = "packaging"
    BOX = "box"


class RuleField(str, Enum):
    SKU = "sku"
    QUANTITY = "quantity"
    WIDTH = "width"
    WEIGHT = "weight"
    LOCATION = "location"
    ORDER_VALUE = "orderValue"
    CHANNEL = "channel"
    SHIP_FROM_LOCATION = "shipFromLocation"


class RuleOperator(str, Enum):
    CONTAINS = "contains"
    EQUALS = "equals"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_EQUAL = "greater_equal"
    LESS_EQUAL = "less_equal"
    STARTS_WITH = "starts_with"
    ENDS_WITH = "ends_with"


class ValueKind(str, Enum):
    NUMBER = "number"
    TEXT = "text"


# ---------------------------------------------------------------------------
# Field → operator table
# ---------------------------------------------------------------------------

NUMERIC_OPERATORS: tuple[RuleOperator, ...] = (
    RuleOperator.EQUALS,
    RuleOperator.GREATER_THAN,
    RuleOperator.LESS_THAN,
    RuleOperator.GREATER_EQUAL,
    RuleOperator.LESS_EQUAL,
)

TEXT_OPERATORS: tuple[RuleOperator, ...] = (
    RuleOperator.CONTAINS,
    RuleOperator.EQUALS,
    RuleOperator.STARTS_WITH,
    RuleOperator.ENDS_WITH,
)


@dataclass(frozen=True)
class FieldSpec:
    """What a condition on a given field may compare against."""

    kind: ValueKind
    operators: tuple[RuleOperator, ...]
    label: str


FIELD_SPECS: dict[RuleField, FieldSpec] = {
    RuleField.SKU: FieldSpec(ValueKind.TEXT, TEXT_OPERATORS, "SKU"),
    RuleField.QUANTITY: FieldSpec(ValueKind.NUMBER, NUMERIC_OPERATORS, "Quantity"),
    RuleField.WIDTH: FieldSpec(ValueKind.NUMBER, NUMERIC_OPERATORS, "Width (cm)"),
    RuleField.WEIGHT: FieldSpec(ValueKind.NUMBER, NUMERIC_OPERATORS, "Weight (g)"),
    RuleField.LOCATION: FieldSpec(ValueKind.TEXT, TEXT_OPERATORS, "Location"),
    RuleField.ORDER_VALUE: FieldSpec(ValueKind.NUMBER, NUMERIC_OPERATORS, "Order Value"),
    RuleField.CHANNEL: FieldSpec(ValueKind.TEXT, TEXT_OPERATORS, "Channel"),
    RuleField.SHIP_FROM_LOCATION: FieldSpec(
        ValueKind.TEXT, TEXT_OPERATORS, "Ship From Location"
    ),
}

OPERATOR_LABELS: dict[RuleOperator, str] = {
    RuleOperator.CONTAINS: "Contains",
    RuleOperator.EQUALS: "Equals",
    RuleOperator.GREATER_THAN: "Greater than",
    RuleOperator.LESS_THAN: "Less than",
    RuleOperator.GREATER_EQUAL: "Greater than or equal",
    RuleOperator.LESS_EQUAL: "Less than or equal",
    RuleOperator.STARTS_WITH: "Starts with",
    RuleOperator.ENDS_WITH: "Ends with",
}

DEFAULT_PRIORITY = 50


def lookup_field(name: Any) -> Optional[RuleField]:
    """Return the RuleField for ``name`` or None when it is not a known field."""
    try:
        return RuleField(name)
    except (TypeError, ValueError):
        return None


def lookup_operator(name: Any) -> Optional[RuleOperator]:
    """Return the RuleOperator for ``name`` or None when it is not a known operator."""
    try:
        return RuleOperator(name)
    except (TypeError, ValueError):
        return None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------

class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with camelCase keys, the persisted form."""
        return self.model_dump(mode="json", by_alias=True)


class RuleCondition(_CamelModel):
    """A single field/operator/value test.

    ``field`` and ``operator`` are kept as strings: a stored condition
    naming something outside the closed enums still loads, and simply
    never matches.
    """

    id: str
    field: str
    operator: str
    value: Union[str, int, float, None] = None


class Rule(_CamelModel):
    id: str
    name: str
    description: str = ""
    conditions: list[RuleCondition] = Field(default_factory=list)
    rule_type: RuleType
    result_value: str
    priority: int = DEFAULT_PRIORITY
    enabled: bool = True
    color: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class ClassificationResult(_CamelModel):
    """Outcome of resolving one catalog against one order."""

    result_value: str
    color: Optional[str] = None
    rule_id: Optional[str] = None
    rule_name: Optional[str] = None
