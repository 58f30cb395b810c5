"""Reorder list: order lines a picker flagged because stock is running low.

A line can only be flagged when its source reported a remaining stock
figure, and each (SKU, order number) pair is tracked once. A tracked
item is identified by its SKU plus the moment it was marked. List
operations return new lists; ``StockTrackingRepository`` keeps the whole
list as one JSON array per warehouse.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from core.exceptions import StockItemNotFoundError, StockItemValidationError
from core.storage import DEFAULT_NAMESPACE, KeyValueStore
from orders.models import Order

logger = logging.getLogger(__name__)

STOCK_TRACKING_KEY = "stockTrackingItems"

# What a picker may change after flagging; sku, order and marked date are fixed.
EDITABLE_FIELDS = ("current_stock", "location", "image_url", "weight", "new_location")


class StockTrackingItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    sku: str
    marked_date: datetime
    order_number: str
    customer: str = ""
    current_stock: int
    location: str = ""
    image_url: Optional[str] = None
    weight: Optional[float] = Field(None, ge=0)
    new_location: Optional[str] = None

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# List operations
# ---------------------------------------------------------------------------

def is_tracked(items: Sequence[StockTrackingItem], sku: str, order_number: str) -> bool:
    return any(item.sku == sku and item.order_number == order_number for item in items)


def mark_for_reorder(
    items: Sequence[StockTrackingItem],
    order: Order,
    now: Optional[datetime] = None,
) -> list[StockTrackingItem]:
    """Add ``order`` to the reorder list.

    The list comes back unchanged when the line has no remaining stock
    figure or is already tracked.
    """
    if order.remaining_stock is None:
        logger.debug("Not tracking %s/%s: no stock figure", order.order_number, order.sku)
        return list(items)
    if is_tracked(items, order.sku, order.order_number):
        logger.debug("%s/%s is already tracked", order.order_number, order.sku)
        return list(items)

    item = StockTrackingItem(
        sku=order.sku,
        marked_date=now or datetime.now(timezone.utc),
        order_number=order.order_number,
        customer=order.customer_name,
        current_stock=order.remaining_stock,
        location=order.location,
        image_url=order.image_url,
    )
    return [*items, item]


def remove_item(
    items: Sequence[StockTrackingItem], sku: str, marked_date: datetime
) -> list[StockTrackingItem]:
    return [
        item for item in items
        if not (item.sku == sku and item.marked_date == marked_date)
    ]


def update_item(
    items: Sequence[StockTrackingItem],
    sku: str,
    marked_date: datetime,
    changes: Mapping[str, Any],
) -> list[StockTrackingItem]:
    """Apply picker edits (weight, new location, ...) to one tracked item."""
    for index, item in enumerate(items):
        if item.sku == sku and item.marked_date == marked_date:
            break
    else:
        raise StockItemNotFoundError(sku, marked_date.isoformat())

    by_key = {**{to_camel(name): name for name in EDITABLE_FIELDS},
              **{name: name for name in EDITABLE_FIELDS}}
    updates = {by_key[key]: value for key, value in changes.items() if key in by_key}
    if isinstance(updates.get("new_location"), str):
        updates["new_location"] = updates["new_location"].strip() or None

    try:
        updated = StockTrackingItem.model_validate({**item.model_dump(), **updates})
    except ValidationError as exc:
        raise StockItemValidationError(
            [f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
             for error in exc.errors()]
        ) from exc
    return [*items[:index], updated, *items[index + 1:]]


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

class StockTrackingRepository:
    """Loads and saves the reorder list of each warehouse."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def load(self, namespace: str = DEFAULT_NAMESPACE) -> list[StockTrackingItem]:
        text = await self.store.get(STOCK_TRACKING_KEY, namespace)
        if text is None:
            return []
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.error("Stored reorder list is not valid JSON: %s", exc)
            return []
        if not isinstance(data, list):
            logger.error("Stored reorder list is not a list")
            return []

        items: list[StockTrackingItem] = []
        for position, entry in enumerate(data):
            try:
                items.append(StockTrackingItem.model_validate(entry))
            except ValidationError as exc:
                logger.warning(
                    "Dropping tracked item #%d: %d error(s)", position, exc.error_count()
                )
        return items

    async def save(
        self, items: Sequence[StockTrackingItem], namespace: str = DEFAULT_NAMESPACE
    ) -> list[StockTrackingItem]:
        text = json.dumps([item.to_json_dict() for item in items])
        await self.store.set(STOCK_TRACKING_KEY, text, namespace)
        return list(items)

    async def mark(
        self, order: Order, namespace: str = DEFAULT_NAMESPACE
    ) -> list[StockTrackingItem]:
        items = await self.load(namespace)
        updated = mark_for_reorder(items, order)
        if len(updated) == len(items):
            return items
        logger.info("Marked %s/%s for reorder in %s", order.order_number, order.sku, namespace)
        return await self.save(updated, namespace)

    async def remove(
        self, sku: str, marked_date: datetime, namespace: str = DEFAULT_NAMESPACE
    ) -> list[StockTrackingItem]:
        items = await self.load(namespace)
        return await self.save(remove_item(items, sku, marked_date), namespace)

    async def update(
        self,
        sku: str,
        marked_date: datetime,
        changes: Mapping[str, Any],
        namespace: str = DEFAULT_NAMESPACE,
    ) -> list[StockTrackingItem]:
        items = await self.load(namespace)
        return await self.save(update_item(items, sku, marked_date, changes), namespace)

    async def clear(self, namespace: str = DEFAULT_NAMESPACE) -> None:
        """Drop the whole reorder list."""
        await self.store.delete(STOCK_TRACKING_KEY, namespace)
        logger.info("Cleared reorder list for %s", namespace)
