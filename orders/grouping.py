"""Grouping, de-duplication and completion of order lines.

A multi-item order arrives as several lines sharing an order number and
customer. Pickers walk orders group by group, in the order the groups
first appear in the source.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from core.exceptions import OrderLineNotFoundError
from orders.models import Order


@dataclass
class OrderGroup:
    """All lines of one order, in source order."""

    order_number: str
    customer_name: str
    items: list[Order] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.order_number, self.customer_name)

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_complete(self) -> bool:
        return bool(self.items) and all(item.completed for item in self.items)


def group_orders(orders: Iterable[Order]) -> list[OrderGroup]:
    """Group lines by (order number, customer name), keeping first-seen order."""
    groups: dict[tuple[str, str], OrderGroup] = {}
    for order in orders:
        key = (order.order_number, order.customer_name)
        group = groups.get(key)
        if group is None:
            group = groups[key] = OrderGroup(order.order_number, order.customer_name)
        group.items.append(order)
    return list(groups.values())


def flatten_groups(groups: Iterable[OrderGroup]) -> list[Order]:
    """Lines of each group back to back, the order pickers see them in."""
    return [item for group in groups for item in group.items]


def deduplicate_orders(orders: Iterable[Order]) -> list[Order]:
    """Drop repeated lines (same order, customer, SKU and location).

    The same order is often pulled twice when sources overlap; the first
    occurrence wins.
    """
    seen: set[tuple[str, str, str, str]] = set()
    unique: list[Order] = []
    for order in orders:
        key = (order.order_number, order.customer_name, order.sku, order.location)
        if key in seen:
            continue
        seen.add(key)
        unique.append(order)
    return unique


def complete_order_line(
    orders: Iterable[Order], order_number: str, sku: str, completed: bool = True
) -> list[Order]:
    """Mark the line(s) with this order number and SKU as picked.

    Pass ``completed=False`` to undo. Raises OrderLineNotFoundError when
    no line matches.
    """
    updated: list[Order] = []
    found = False
    for order in orders:
        if order.order_number == order_number and order.sku == sku:
            order = order.model_copy(update={"completed": completed})
            found = True
        updated.append(order)
    if not found:
        raise OrderLineNotFoundError(order_number, sku)
    return updated
