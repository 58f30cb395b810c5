"""Test catalog persistence on the key-value stores."""
import json

import pytest
from core.config import StorageConfig
from core.database import close_db, create_engine_from_config, create_session_factory, init_db
from core.exceptions import AppException, DuplicateNameError, RuleValidationError
from core.storage import InMemoryKeyValueStore, SqlKeyValueStore
from packrules.catalog import build_rule, toggle_rule
from packrules.defaults import DEFAULT_BOX_NAMES, DEFAULT_PACKAGING_TYPES, default_rules
from packrules.models import RuleType
from packrules.repository import CATALOG_KEYS, CatalogRepository, parse_catalog


def box_rule(rule_id="custom", priority=5):
    return build_rule(
        {
            "id": rule_id,
            "name": "Heavy",
            "resultValue": "Large Box",
            "priority": priority,
            "color": "#EF4444",
            "conditions": [{"id": "c1", "field": "weight", "operator": "greater_than", "value": 2000}],
        },
        RuleType.BOX,
    )


@pytest.mark.asyncio
async def test_nothing_stored_returns_defaults():
    repo = CatalogRepository(InMemoryKeyValueStore())
    assert await repo.load_rules(RuleType.BOX) == default_rules(RuleType.BOX)
    assert await repo.load_names(RuleType.PACKAGING) == list(DEFAULT_PACKAGING_TYPES)


@pytest.mark.asyncio
async def test_save_and_load_round_trip():
    repo = CatalogRepository(InMemoryKeyValueStore())
    rules = [*default_rules(RuleType.BOX), box_rule()]
    await repo.save_rules(RuleType.BOX, rules)
    assert await repo.load_rules(RuleType.BOX) == rules


@pytest.mark.asyncio
async def test_saved_json_uses_camel_case_keys():
    store = InMemoryKeyValueStore()
    repo = CatalogRepository(store)
    await repo.save_rules(RuleType.BOX, [box_rule()])
    stored = json.loads(await store.get("boxRules"))
    assert stored[0]["resultValue"] == "Large Box"
    assert stored[0]["ruleType"] == "box"
    assert stored[0]["color"] == "#EF4444"


@pytest.mark.asyncio
async def test_corrupt_json_falls_back_to_defaults():
    store = InMemoryKeyValueStore()
    await store.set(CATALOG_KEYS[RuleType.PACKAGING], "{not json")
    repo = CatalogRepository(store)
    assert await repo.load_rules(RuleType.PACKAGING) == default_rules(RuleType.PACKAGING)


@pytest.mark.asyncio
async def test_empty_stored_catalog_stays_empty():
    repo = CatalogRepository(InMemoryKeyValueStore())
    await repo.save_rules(RuleType.PACKAGING, [])
    assert await repo.load_rules(RuleType.PACKAGING) == []


def test_legacy_packaging_entry_is_upgraded():
    legacy = json.dumps([{
        "id": "old-1",
        "name": "Old letter rule",
        "packagingType": "Letter",
        "priority": 20,
        "enabled": True,
        "conditions": [{"id": "c1", "field": "quantity", "operator": "equals", "value": 1}],
        "createdAt": "2023-05-01T10:00:00Z",
        "updatedAt": "2023-05-01T10:00:00Z",
    }])
    rules = parse_catalog(legacy, RuleType.PACKAGING)
    assert len(rules) == 1
    assert rules[0].result_value == "Letter"
    assert rules[0].rule_type is RuleType.PACKAGING


def test_unreadable_entries_are_dropped():
    text = json.dumps([
        "not a rule",
        {"id": "no-name", "resultValue": "Box"},
        box_rule().to_json_dict(),
    ])
    rules = parse_catalog(text, RuleType.BOX)
    assert [r.id for r in rules] == ["custom"]


def test_non_list_catalog_is_rejected():
    assert parse_catalog('{"rules": []}', RuleType.BOX) is None


@pytest.mark.asyncio
async def test_save_rejects_wrong_rule_type():
    repo = CatalogRepository(InMemoryKeyValueStore())
    with pytest.raises(RuleValidationError):
        await repo.save_rules(RuleType.PACKAGING, [box_rule()])


@pytest.mark.asyncio
async def test_reset_rules():
    repo = CatalogRepository(InMemoryKeyValueStore())
    await repo.save_rules(RuleType.BOX, [box_rule()])
    assert await repo.reset_rules(RuleType.BOX) == default_rules(RuleType.BOX)
    assert await repo.load_rules(RuleType.BOX) == default_rules(RuleType.BOX)


@pytest.mark.asyncio
async def test_namespaces_are_isolated():
    repo = CatalogRepository(InMemoryKeyValueStore())
    await repo.save_rules(RuleType.BOX, [box_rule()], namespace="leeds")
    assert [r.id for r in await repo.load_rules(RuleType.BOX, namespace="leeds")] == ["custom"]
    assert await repo.load_rules(RuleType.BOX, namespace="york") == default_rules(RuleType.BOX)


# -- Name lists --

@pytest.mark.asyncio
async def test_add_and_remove_names():
    repo = CatalogRepository(InMemoryKeyValueStore())
    names = await repo.add_name(RuleType.BOX, "  XL Box ")
    assert names == [*DEFAULT_BOX_NAMES, "XL Box"]
    names = await repo.remove_name(RuleType.BOX, "Small Box")
    assert "Small Box" not in names
    assert await repo.load_names(RuleType.BOX) == names


@pytest.mark.asyncio
async def test_duplicate_name_is_rejected():
    repo = CatalogRepository(InMemoryKeyValueStore())
    with pytest.raises(DuplicateNameError) as exc_info:
        await repo.add_name(RuleType.PACKAGING, "Letter")
    assert exc_info.value.message == "'Letter' already exists"


@pytest.mark.asyncio
async def test_blank_name_is_rejected():
    repo = CatalogRepository(InMemoryKeyValueStore())
    with pytest.raises(AppException):
        await repo.add_name(RuleType.PACKAGING, "   ")


@pytest.mark.asyncio
async def test_reset_names():
    repo = CatalogRepository(InMemoryKeyValueStore())
    await repo.save_names(RuleType.PACKAGING, ["Only"])
    assert await repo.reset_names(RuleType.PACKAGING) == list(DEFAULT_PACKAGING_TYPES)


# -- SQL store --

@pytest.mark.asyncio
async def test_sql_store_round_trip(tmp_path):
    storage = StorageConfig(backend="sql", database_url=f"sqlite+aiosqlite:///{tmp_path / 'rules.db'}")
    engine = create_engine_from_config(storage)
    await init_db(engine)
    try:
        store = SqlKeyValueStore(create_session_factory(engine))
        repo = CatalogRepository(store)

        rules = await repo.load_rules(RuleType.BOX)
        rules = toggle_rule(rules, "default-small-box")
        await repo.save_rules(RuleType.BOX, rules)
        await repo.save_rules(RuleType.BOX, rules)

        reloaded = await repo.load_rules(RuleType.BOX)
        assert reloaded == rules
        assert reloaded[1].enabled is False

        assert await store.delete("boxRules") is True
        assert await store.delete("boxRules") is False
        assert await store.get("boxRules") is None
    finally:
        await close_db(engine)
