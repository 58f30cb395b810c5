"""Normalized order line, whatever source it came from.

CSV rows, HTML exports and platform API responses are all mapped onto
``Order`` before anything else looks at them. Optional attributes stay
``None`` when the source did not supply them; absence is never
collapsed into zero or an empty string.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class Order(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_number: str = ""
    customer_name: str = ""
    sku: str = ""
    quantity: int = Field(1, ge=1)
    location: str = ""
    item_name: Optional[str] = None
    image_url: Optional[str] = None
    additional_details: Optional[str] = None
    buyer_postcode: Optional[str] = None
    remaining_stock: Optional[int] = None
    file_date: Optional[str] = None
    order_value: Optional[float] = None
    channel_type: Optional[str] = None
    channel: Optional[str] = None
    width: Optional[float] = None
    weight: Optional[float] = None
    ship_from_location: Optional[str] = None
    package_dimension: Optional[str] = None
    packaging_type: Optional[str] = None
    completed: bool = False

    @field_validator("order_value", "width", "weight", mode="before")
    @classmethod
    def _unparseable_measure_is_absent(cls, value: Any) -> Any:
        # Exports routinely carry "", "N/A" or "-" in numeric columns.
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, str):
            text = value.strip()
            try:
                number = float(text)
            except ValueError:
                return None
            return None if math.isnan(number) else number
        return value

    @field_validator("remaining_stock", mode="before")
    @classmethod
    def _unparseable_stock_is_absent(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return int(value.strip())
            except ValueError:
                return None
        return value


class ArchivedOrder(Order):
    """An order line kept after its source file was processed."""

    file_name: str
    file_date: str
    archived_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
