"""Pydantic schemas for API request/response validation."""

from datetime import datetime
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _CamelRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class ConditionDraft(_CamelRequest):
    id: Optional[str] = None
    field: str = ""
    operator: str = ""
    value: Union[str, int, float, None] = None


class RuleDraft(_CamelRequest):
    """A rule as submitted by the editor. Validation happens server side."""

    id: Optional[str] = None
    name: str = ""
    description: str = ""
    conditions: list[ConditionDraft] = Field(default_factory=list)
    result_value: str = ""
    priority: Optional[int] = None
    enabled: bool = True
    color: Optional[str] = None


class RuleChanges(_CamelRequest):
    """Partial update; only fields present in the request are applied."""

    name: Optional[str] = None
    description: Optional[str] = None
    conditions: Optional[list[ConditionDraft]] = None
    result_value: Optional[str] = None
    priority: Optional[int] = None
    enabled: Optional[bool] = None
    color: Optional[str] = None


class MoveRequest(BaseModel):
    direction: Literal["up", "down"]


class NameRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class StockItemKey(_CamelRequest):
    sku: str
    marked_date: datetime


class StockItemChanges(StockItemKey):
    """Edits to a tracked item; only fields present in the request apply."""

    current_stock: Optional[int] = None
    location: Optional[str] = None
    image_url: Optional[str] = None
    weight: Optional[float] = None
    new_location: Optional[str] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------

class ValidationResponse(BaseModel):
    valid: bool
    errors: list[str]


class FieldInfo(BaseModel):
    field: str
    label: str
    kind: str
    operators: list[str]
