"""Rule resolution engine.

Rules are checked in ascending priority (lower number first); equal
priorities keep their catalog order. The first enabled rule whose
conditions all hold decides the classification::

    result = resolve_packaging(order, packaging_rules)
    if result is None:
        ...  # no packaging applies, which is not an error

The engine holds no state and no cache: every call receives the full
catalog snapshot and recomputes. Catalog entries may be ``Rule``
instances or raw mappings straight from storage; an entry that cannot
be read as a rule is skipped rather than aborting the pass.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, Optional, Union

from pydantic import ValidationError

from orders.models import Order
from packrules.matcher import matches
from packrules.models import ClassificationResult, Rule, RuleType

logger = logging.getLogger(__name__)

RuleLike = Union[Rule, Mapping[str, Any]]
OrderLike = Union[Order, Mapping[str, Any]]


# ---------------------------------------------------------------------------
# Input coercion
# ---------------------------------------------------------------------------

def _as_rule(entry: Any) -> Optional[Rule]:
    if isinstance(entry, Rule):
        return entry
    if isinstance(entry, Mapping):
        try:
            return Rule.model_validate(entry)
        except ValidationError as exc:
            logger.warning(
                "Skipping unreadable rule %r: %d error(s)",
                entry.get("id"), exc.error_count(),
            )
            return None
    logger.warning("Skipping catalog entry of type %s", type(entry).__name__)
    return None


def _as_order(order: OrderLike) -> Order:
    if isinstance(order, Order):
        return order
    return Order.model_validate(order)


def ordered_rules(catalog: Iterable[RuleLike], rule_type: RuleType) -> list[Rule]:
    """Readable rules of ``rule_type`` in evaluation order.

    ``sorted`` is stable, so rules sharing a priority keep catalog order.
    """
    rule_type = RuleType(rule_type)
    rules = [rule for rule in map(_as_rule, catalog) if rule is not None]
    candidates = [rule for rule in rules if rule.rule_type is rule_type]
    return sorted(candidates, key=lambda rule: rule.priority)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def resolve(
    order: OrderLike,
    catalog: Iterable[RuleLike],
    rule_type: RuleType,
) -> Optional[ClassificationResult]:
    """Return the classification of the first matching rule, or None."""
    order = _as_order(order)
    for rule in ordered_rules(catalog, rule_type):
        if matches(rule, order):
            return ClassificationResult(
                result_value=rule.result_value,
                color=rule.color if rule.rule_type is RuleType.BOX else None,
                rule_id=rule.id,
                rule_name=rule.name,
            )
    return None


def resolve_packaging(
    order: OrderLike, catalog: Iterable[RuleLike]
) -> Optional[ClassificationResult]:
    return resolve(order, catalog, RuleType.PACKAGING)


def resolve_box(
    order: OrderLike, catalog: Iterable[RuleLike]
) -> Optional[ClassificationResult]:
    return resolve(order, catalog, RuleType.BOX)


# ---------------------------------------------------------------------------
# Host helper
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class OrderClassification:
    """Packaging and box classification for one order."""

    packaging: Optional[ClassificationResult]
    box: Optional[ClassificationResult]

    @property
    def packaging_type(self) -> Optional[str]:
        return self.packaging.result_value if self.packaging else None

    @property
    def box_name(self) -> Optional[str]:
        return self.box.result_value if self.box else None


def classify_order(
    order: OrderLike,
    packaging_catalog: Iterable[RuleLike],
    box_catalog: Iterable[RuleLike],
    default_box_color: Optional[str] = None,
) -> OrderClassification:
    """Resolve both catalogs for ``order``.

    A matched box rule without a color gets ``default_box_color``.
    """
    order = _as_order(order)
    packaging = resolve_packaging(order, packaging_catalog)
    box = resolve_box(order, box_catalog)
    if box is not None and box.color is None and default_box_color:
        box = box.model_copy(update={"color": default_box_color})

    logger.debug(
        "Classified order %s/%s: packaging=%s box=%s",
        order.order_number, order.sku,
        packaging.result_value if packaging else None,
        box.result_value if box else None,
    )
    return OrderClassification(packaging=packaging, box=box)
