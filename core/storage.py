"""Key-value persistence for settings and rule catalogs.

Values are opaque text (JSON written by the caller), keyed by
``(namespace, key)``. Two backends:

- InMemoryKeyValueStore: process-local dict, for tests and single-station use
- SqlKeyValueStore: async SQLAlchemy over the ``stored_settings`` table
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.database import session_scope
from core.exceptions import CatalogStoreError
from core.models.settings import StoredSetting

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "default"


class KeyValueStore(ABC):
    """Async text store keyed by namespace + key."""

    @abstractmethod
    async def get(self, key: str, namespace: str = DEFAULT_NAMESPACE) -> Optional[str]:
        """Return the stored text, or None when nothing is stored."""

    @abstractmethod
    async def set(self, key: str, value: str, namespace: str = DEFAULT_NAMESPACE) -> None:
        """Store ``value``, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str, namespace: str = DEFAULT_NAMESPACE) -> bool:
        """Remove the key. Returns True if something was removed."""


class InMemoryKeyValueStore(KeyValueStore):
    """In-memory store. Contents are lost when the process exits."""

    def __init__(self) -> None:
        self._values: dict[tuple[str, str], str] = {}

    async def get(self, key: str, namespace: str = DEFAULT_NAMESPACE) -> Optional[str]:
        return self._values.get((namespace, key))

    async def set(self, key: str, value: str, namespace: str = DEFAULT_NAMESPACE) -> None:
        self._values[(namespace, key)] = value

    async def delete(self, key: str, namespace: str = DEFAULT_NAMESPACE) -> bool:
        return self._values.pop((namespace, key), None) is not None


class SqlKeyValueStore(KeyValueStore):
    """Store backed by the ``stored_settings`` table.

    Every call runs in its own session; a failure is rolled back and
    raised as CatalogStoreError.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get(self, key: str, namespace: str = DEFAULT_NAMESPACE) -> Optional[str]:
        try:
            async with session_scope(self.session_factory) as session:
                row = await session.get(StoredSetting, (namespace, key))
                return row.value if row else None
        except SQLAlchemyError as exc:
            logger.error("Failed to read setting %s:%s: %s", namespace, key, exc)
            raise CatalogStoreError(
                f"Could not read '{key}'", {"namespace": namespace, "key": key}
            ) from exc

    async def set(self, key: str, value: str, namespace: str = DEFAULT_NAMESPACE) -> None:
        try:
            async with session_scope(self.session_factory) as session:
                row = await session.get(StoredSetting, (namespace, key))
                if row is None:
                    session.add(StoredSetting(namespace=namespace, key=key, value=value))
                else:
                    row.value = value
        except SQLAlchemyError as exc:
            logger.error("Failed to write setting %s:%s: %s", namespace, key, exc)
            raise CatalogStoreError(
                f"Could not save '{key}'", {"namespace": namespace, "key": key}
            ) from exc

    async def delete(self, key: str, namespace: str = DEFAULT_NAMESPACE) -> bool:
        try:
            async with session_scope(self.session_factory) as session:
                result = await session.execute(
                    delete(StoredSetting).where(
                        StoredSetting.namespace == namespace,
                        StoredSetting.key == key,
                    )
                )
                return result.rowcount > 0
        except SQLAlchemyError as exc:
            logger.error("Failed to delete setting %s:%s: %s", namespace, key, exc)
            raise CatalogStoreError(
                f"Could not delete '{key}'", {"namespace": namespace, "key": key}
            ) from exc
