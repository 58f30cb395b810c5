"""Catalog repository: rule catalogs and name lists on a key-value store.

Each catalog is stored whole, as one JSON array under a fixed key, and
is always read and written whole. Reading never fails the caller:

- nothing stored yet -> the built-in defaults
- stored text is not valid JSON -> the defaults (logged)
- an individual rule cannot be read -> that rule is dropped (logged)

Catalogs written by older versions stored packaging rules with a
``packagingType`` key and no ``ruleType``; those are read as
``resultValue`` with the catalog's type.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any, Optional

from pydantic import ValidationError

from core.exceptions import AppException, DuplicateNameError, RuleValidationError
from core.storage import DEFAULT_NAMESPACE, KeyValueStore
from packrules.defaults import default_names, default_rules
from packrules.models import Rule, RuleType

logger = logging.getLogger(__name__)

CATALOG_KEYS: dict[RuleType, str] = {
    RuleType.PACKAGING: "packagingRules",
    RuleType.BOX: "boxRules",
}

NAME_LIST_KEYS: dict[RuleType, str] = {
    RuleType.PACKAGING: "customPackagingTypes",
    RuleType.BOX: "boxNames",
}


def _upgrade_entry(entry: dict[str, Any], rule_type: RuleType) -> dict[str, Any]:
    upgraded = dict(entry)
    if "resultValue" not in upgraded and "result_value" not in upgraded:
        if "packagingType" in upgraded:
            upgraded["resultValue"] = upgraded.pop("packagingType")
    if "ruleType" not in upgraded and "rule_type" not in upgraded:
        upgraded["ruleType"] = rule_type.value
    return upgraded


def parse_catalog(text: str, rule_type: RuleType) -> Optional[list[Rule]]:
    """Parse persisted catalog JSON.

    Returns None when the text is not a JSON array at all.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.error("Stored %s catalog is not valid JSON: %s", rule_type.value, exc)
        return None
    if not isinstance(data, list):
        logger.error("Stored %s catalog is not a list", rule_type.value)
        return None

    rules: list[Rule] = []
    for position, entry in enumerate(data):
        if not isinstance(entry, dict):
            logger.warning("Dropping %s rule #%d: not an object", rule_type.value, position)
            continue
        try:
            rules.append(Rule.model_validate(_upgrade_entry(entry, rule_type)))
        except ValidationError as exc:
            logger.warning(
                "Dropping %s rule %r: %d error(s)",
                rule_type.value, entry.get("id", position), exc.error_count(),
            )
    return rules


def dump_catalog(rules: Sequence[Rule]) -> str:
    return json.dumps([rule.to_json_dict() for rule in rules])


class CatalogRepository:
    """Loads and saves rule catalogs and name lists for one store.

    ``namespace`` separates warehouses sharing a store::

        repo = CatalogRepository(store)
        rules = await repo.load_rules(RuleType.BOX, namespace="leeds")
        rules = toggle_rule(rules, "rule-1")
        await repo.save_rules(RuleType.BOX, rules, namespace="leeds")
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    # -- Rule catalogs --

    async def load_rules(
        self, rule_type: RuleType, namespace: str = DEFAULT_NAMESPACE
    ) -> list[Rule]:
        rule_type = RuleType(rule_type)
        text = await self.store.get(CATALOG_KEYS[rule_type], namespace)
        if text is None:
            return default_rules(rule_type)

        rules = parse_catalog(text, rule_type)
        if rules is None:
            return default_rules(rule_type)
        return rules

    async def save_rules(
        self,
        rule_type: RuleType,
        rules: Sequence[Rule],
        namespace: str = DEFAULT_NAMESPACE,
    ) -> list[Rule]:
        rule_type = RuleType(rule_type)
        errors = [
            f"Rule '{rule.id}' is a {rule.rule_type.value} rule, not {rule_type.value}"
            for rule in rules
            if rule.rule_type is not rule_type
        ]
        if errors:
            raise RuleValidationError(errors)

        await self.store.set(CATALOG_KEYS[rule_type], dump_catalog(rules), namespace)
        logger.info("Saved %d %s rule(s) for %s", len(rules), rule_type.value, namespace)
        return list(rules)

    async def reset_rules(
        self, rule_type: RuleType, namespace: str = DEFAULT_NAMESPACE
    ) -> list[Rule]:
        """Replace the stored catalog with the built-in defaults."""
        return await self.save_rules(rule_type, default_rules(rule_type), namespace)

    # -- Name lists (packaging types, box names) --

    async def load_names(
        self, rule_type: RuleType, namespace: str = DEFAULT_NAMESPACE
    ) -> list[str]:
        rule_type = RuleType(rule_type)
        text = await self.store.get(NAME_LIST_KEYS[rule_type], namespace)
        if text is None:
            return default_names(rule_type)
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            logger.error("Stored %s names are not valid JSON: %s", rule_type.value, exc)
            return default_names(rule_type)
        if not isinstance(data, list):
            return default_names(rule_type)
        return [name for name in data if isinstance(name, str)]

    async def save_names(
        self,
        rule_type: RuleType,
        names: Sequence[str],
        namespace: str = DEFAULT_NAMESPACE,
    ) -> list[str]:
        rule_type = RuleType(rule_type)
        await self.store.set(NAME_LIST_KEYS[rule_type], json.dumps(list(names)), namespace)
        return list(names)

    async def add_name(
        self, rule_type: RuleType, name: str, namespace: str = DEFAULT_NAMESPACE
    ) -> list[str]:
        name = name.strip()
        if not name:
            raise AppException("Name must not be empty")
        names = await self.load_names(rule_type, namespace)
        if name in names:
            raise DuplicateNameError(f"'{name}' already exists", {"name": name})
        return await self.save_names(rule_type, [*names, name], namespace)

    async def remove_name(
        self, rule_type: RuleType, name: str, namespace: str = DEFAULT_NAMESPACE
    ) -> list[str]:
        """Remove a name. Rules already using it keep their result value."""
        names = await self.load_names(rule_type, namespace)
        return await self.save_names(
            rule_type, [existing for existing in names if existing != name], namespace
        )

    async def reset_names(
        self, rule_type: RuleType, namespace: str = DEFAULT_NAMESPACE
    ) -> list[str]:
        return await self.save_names(rule_type, default_names(rule_type), namespace)
