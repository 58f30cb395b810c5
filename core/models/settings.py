"""Key-value settings table.

One row per (namespace, key). The namespace is the warehouse the
settings belong to; the value is JSON text written by the caller.
"""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.models.base import Base, TimestampMixin


class StoredSetting(TimestampMixin, Base):
    __tablename__ = "stored_settings"

    namespace: Mapped[str] = mapped_column(String(64), primary_key=True, default="default")
    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<StoredSetting {self.namespace}:{self.key}>"
