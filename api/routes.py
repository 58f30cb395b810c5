"""Rule editing, classification and reorder list router.

Every catalog change follows the same steps: load the warehouse's
catalog, apply one pure catalog operation, save the whole catalog back.
Classification loads both catalogs and runs the engine; nothing is
cached between requests, so an edit applies to the very next order.
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, Request, Response

from api.middleware import get_current_warehouse
from api.schemas import (
    FieldInfo,
    MoveRequest,
    NameRequest,
    RuleChanges,
    RuleDraft,
    StockItemChanges,
    StockItemKey,
    ValidationResponse,
)
from core.config import PickAssistConfig
from core.exceptions import RuleValidationError
from orders.models import Order
from orders.stock_tracking import StockTrackingItem, StockTrackingRepository
from packrules import catalog as catalog_ops
from packrules.engine import classify_order
from packrules.models import FIELD_SPECS, Rule, RuleType
from packrules.repository import CatalogRepository
from packrules.validation import validate_rule

router = APIRouter()


def get_repository(request: Request) -> CatalogRepository:
    return request.app.state.catalogs


def get_stock_tracking(request: Request) -> StockTrackingRepository:
    return request.app.state.stock_tracking


def get_config(request: Request) -> PickAssistConfig:
    return request.app.state.config


def _rules_payload(rules: list[Rule]) -> dict[str, Any]:
    return {"data": [rule.to_json_dict() for rule in rules], "count": len(rules)}


def _items_payload(items: list[StockTrackingItem]) -> dict[str, Any]:
    return {"data": [item.to_json_dict() for item in items], "count": len(items)}


# ============================================================================
# Editor support
# ============================================================================

@router.get("/fields", response_model=list[FieldInfo])
async def list_fields():
    """Fields a condition can test, with the operators each allows."""
    return [
        FieldInfo(
            field=field.value,
            label=spec.label,
            kind=spec.kind.value,
            operators=[op.value for op in spec.operators],
        )
        for field, spec in FIELD_SPECS.items()
    ]


@router.post("/rules/validate", response_model=ValidationResponse)
async def validate_draft(draft: dict[str, Any] = Body(...)):
    """Check a draft rule without saving it."""
    errors = validate_rule(draft)
    return ValidationResponse(valid=not errors, errors=errors)


# ============================================================================
# Rule catalogs
# ============================================================================

@router.get("/rules/{rule_type}")
async def list_rules(
    rule_type: RuleType,
    repo: CatalogRepository = Depends(get_repository),
):
    """The catalog in stored order."""
    rules = await repo.load_rules(rule_type, get_current_warehouse())
    return _rules_payload(rules)


@router.put("/rules/{rule_type}")
async def replace_rules(
    rule_type: RuleType,
    entries: list[dict[str, Any]] = Body(...),
    repo: CatalogRepository = Depends(get_repository),
):
    """Replace the whole catalog, e.g. when importing a saved rule set."""
    prepared = [
        {
            "ruleType": rule_type.value,
            **entry,
            "conditions": catalog_ops.with_condition_ids(entry.get("conditions", [])),
        }
        for entry in entries
    ]

    errors: list[str] = []
    for position, entry in enumerate(prepared, start=1):
        label = entry.get("name") if isinstance(entry.get("name"), str) else None
        label = label or f"#{position}"
        errors.extend(f"Rule {label}: {message}" for message in validate_rule(entry))
    ids = [entry.get("id") for entry in prepared]
    if not all(isinstance(rule_id, str) and rule_id for rule_id in ids):
        errors.append("Every rule needs a text id")
    elif len(set(ids)) != len(ids):
        errors.append("Rule ids must be unique")
    if errors:
        raise RuleValidationError(errors)

    rules = [catalog_ops.rule_from_mapping(entry) for entry in prepared]
    saved = await repo.save_rules(rule_type, rules, get_current_warehouse())
    return _rules_payload(saved)


@router.post("/rules/{rule_type}", status_code=201)
async def create_rule(
    rule_type: RuleType,
    draft: RuleDraft,
    repo: CatalogRepository = Depends(get_repository),
    config: PickAssistConfig = Depends(get_config),
):
    warehouse = get_current_warehouse()
    data = draft.model_dump(exclude_none=True)
    data.setdefault("priority", config.rules.default_priority)
    rule = catalog_ops.build_rule(data, rule_type)
    rules = catalog_ops.add_rule(await repo.load_rules(rule_type, warehouse), rule)
    await repo.save_rules(rule_type, rules, warehouse)
    return rule.to_json_dict()


@router.patch("/rules/{rule_type}/{rule_id}")
async def edit_rule(
    rule_type: RuleType,
    rule_id: str,
    changes: RuleChanges,
    repo: CatalogRepository = Depends(get_repository),
):
    warehouse = get_current_warehouse()
    rules = catalog_ops.update_rule(
        await repo.load_rules(rule_type, warehouse),
        rule_id,
        changes.model_dump(exclude_unset=True),
    )
    await repo.save_rules(rule_type, rules, warehouse)
    return catalog_ops.find_rule(rules, rule_id).to_json_dict()


@router.delete("/rules/{rule_type}/{rule_id}", status_code=204)
async def remove_rule(
    rule_type: RuleType,
    rule_id: str,
    repo: CatalogRepository = Depends(get_repository),
):
    warehouse = get_current_warehouse()
    rules = catalog_ops.delete_rule(await repo.load_rules(rule_type, warehouse), rule_id)
    await repo.save_rules(rule_type, rules, warehouse)
    return Response(status_code=204)


@router.post("/rules/{rule_type}/{rule_id}/toggle")
async def toggle_rule(
    rule_type: RuleType,
    rule_id: str,
    repo: CatalogRepository = Depends(get_repository),
):
    """Enable a disabled rule or disable an enabled one."""
    warehouse = get_current_warehouse()
    rules = catalog_ops.toggle_rule(await repo.load_rules(rule_type, warehouse), rule_id)
    await repo.save_rules(rule_type, rules, warehouse)
    return catalog_ops.find_rule(rules, rule_id).to_json_dict()


@router.post("/rules/{rule_type}/{rule_id}/move")
async def move_rule(
    rule_type: RuleType,
    rule_id: str,
    request: MoveRequest,
    repo: CatalogRepository = Depends(get_repository),
):
    """Nudge a rule's priority by one."""
    warehouse = get_current_warehouse()
    rules = catalog_ops.move_rule(
        await repo.load_rules(rule_type, warehouse), rule_id, request.direction
    )
    await repo.save_rules(rule_type, rules, warehouse)
    return catalog_ops.find_rule(rules, rule_id).to_json_dict()


@router.post("/rules/{rule_type}/reset")
async def reset_rules(
    rule_type: RuleType,
    repo: CatalogRepository = Depends(get_repository),
):
    """Throw away custom rules and restore the built-in catalog."""
    rules = await repo.reset_rules(rule_type, get_current_warehouse())
    return _rules_payload(rules)


# ============================================================================
# Packaging types / box names
# ============================================================================

@router.get("/names/{rule_type}")
async def list_names(
    rule_type: RuleType,
    repo: CatalogRepository = Depends(get_repository),
):
    names = await repo.load_names(rule_type, get_current_warehouse())
    return {"data": names, "count": len(names)}


@router.post("/names/{rule_type}", status_code=201)
async def add_name(
    rule_type: RuleType,
    request: NameRequest,
    repo: CatalogRepository = Depends(get_repository),
):
    names = await repo.add_name(rule_type, request.name, get_current_warehouse())
    return {"data": names, "count": len(names)}


@router.delete("/names/{rule_type}/{name}")
async def remove_name(
    rule_type: RuleType,
    name: str,
    repo: CatalogRepository = Depends(get_repository),
):
    names = await repo.remove_name(rule_type, name, get_current_warehouse())
    return {"data": names, "count": len(names)}


@router.post("/names/{rule_type}/reset")
async def reset_names(
    rule_type: RuleType,
    repo: CatalogRepository = Depends(get_repository),
):
    names = await repo.reset_names(rule_type, get_current_warehouse())
    return {"data": names, "count": len(names)}


# ============================================================================
# Classification
# ============================================================================

@router.post("/classify")
async def classify(
    order: Order,
    repo: CatalogRepository = Depends(get_repository),
    config: PickAssistConfig = Depends(get_config),
):
    """Packaging type and box for one order line.

    ``null`` for either means no rule applies to this order.
    """
    warehouse = get_current_warehouse()
    result = classify_order(
        order,
        await repo.load_rules(RuleType.PACKAGING, warehouse),
        await repo.load_rules(RuleType.BOX, warehouse),
        default_box_color=config.rules.default_box_color,
    )
    return {
        "packaging": result.packaging.to_json_dict() if result.packaging else None,
        "box": result.box.to_json_dict() if result.box else None,
    }


# ============================================================================
# Reorder list
# ============================================================================

@router.get("/stock-tracking")
async def list_tracked_items(
    repo: StockTrackingRepository = Depends(get_stock_tracking),
):
    return _items_payload(await repo.load(get_current_warehouse()))


@router.post("/stock-tracking", status_code=201)
async def mark_for_reorder(
    order: Order,
    repo: StockTrackingRepository = Depends(get_stock_tracking),
):
    """Flag an order line for reorder.

    Lines without a remaining stock figure, or already on the list, are
    not added; ``added`` says which happened.
    """
    warehouse = get_current_warehouse()
    before = await repo.load(warehouse)
    items = await repo.mark(order, warehouse)
    return {**_items_payload(items), "added": len(items) > len(before)}


@router.patch("/stock-tracking")
async def update_tracked_item(
    changes: StockItemChanges,
    repo: StockTrackingRepository = Depends(get_stock_tracking),
):
    updates = changes.model_dump(exclude_unset=True, exclude={"sku", "marked_date"})
    items = await repo.update(
        changes.sku, changes.marked_date, updates, get_current_warehouse()
    )
    return _items_payload(items)


@router.post("/stock-tracking/remove")
async def remove_tracked_item(
    key: StockItemKey,
    repo: StockTrackingRepository = Depends(get_stock_tracking),
):
    items = await repo.remove(key.sku, key.marked_date, get_current_warehouse())
    return _items_payload(items)


@router.delete("/stock-tracking", status_code=204)
async def clear_tracked_items(
    repo: StockTrackingRepository = Depends(get_stock_tracking),
):
    await repo.clear(get_current_warehouse())
    return Response(status_code=204)
