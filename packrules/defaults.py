"""Built-in rule catalogs and name lists.

Loaded when nothing has been persisted yet, or when a user resets a
catalog. Accessors return fresh copies so callers can never mutate the
seed data.
"""

from datetime import datetime, timezone

from packrules.models import Rule, RuleCondition, RuleType

_SEED_TIMESTAMP = datetime(2024, 1, 1, tzinfo=timezone.utc)

DEFAULT_BOX_COLOR = "#3B82F6"

DEFAULT_PACKAGING_TYPES: tuple[str, ...] = (
    "Letter",
    "Large Letter",
    "Small Packet",
    "Medium Packet",
    "Large Packet",
    "Parcel",
    "Box",
    "Envelope",
    "Bubble Wrap",
    "Custom",
)

DEFAULT_BOX_NAMES: tuple[str, ...] = (
    "SM OBA",
    "Small Box",
    "Medium Box",
    "Large Box",
)

DEFAULT_PACKAGING_RULES: tuple[Rule, ...] = (
    Rule(
        id="default-letter",
        name="Default Letter",
        description="Small items that fit in a letter",
        conditions=[
            RuleCondition(id="cond-1", field="quantity", operator="less_equal", value=1),
        ],
        rule_type=RuleType.PACKAGING,
        result_value="Letter",
        priority=100,
        created_at=_SEED_TIMESTAMP,
        updated_at=_SEED_TIMESTAMP,
    ),
)

DEFAULT_BOX_RULES: tuple[Rule, ...] = (
    Rule(
        id="default-sm-oba",
        name="SM Warehouse",
        description="Orders shipped from the SM warehouse",
        conditions=[
            RuleCondition(
                id="cond-1", field="shipFromLocation", operator="contains", value="SM"
            ),
        ],
        rule_type=RuleType.BOX,
        result_value="SM OBA",
        priority=10,
        color=DEFAULT_BOX_COLOR,
        created_at=_SEED_TIMESTAMP,
        updated_at=_SEED_TIMESTAMP,
    ),
    Rule(
        id="default-small-box",
        name="Small Box",
        description="Fallback box for everything else",
        conditions=[],
        rule_type=RuleType.BOX,
        result_value="Small Box",
        priority=100,
        color="#10B981",
        created_at=_SEED_TIMESTAMP,
        updated_at=_SEED_TIMESTAMP,
    ),
)


def default_rules(rule_type: RuleType) -> list[Rule]:
    """Return a new list holding the seed catalog for ``rule_type``."""
    if RuleType(rule_type) is RuleType.BOX:
        return list(DEFAULT_BOX_RULES)
    return list(DEFAULT_PACKAGING_RULES)


def default_names(rule_type: RuleType) -> list[str]:
    """Return the seed list of result names offered by the rule editor."""
    if RuleType(rule_type) is RuleType.BOX:
        return list(DEFAULT_BOX_NAMES)
    return list(DEFAULT_PACKAGING_TYPES)
