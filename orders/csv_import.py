"""CSV order import with configurable column mapping.

Marketplace exports name their columns differently, so each order
attribute is looked up through a mapping of attribute -> column header.
Header matching ignores case and surrounding whitespace. Unmapped or
missing columns simply leave the attribute unset.

Rows without a customer name or SKU are skipped. The result is grouped
by order number and customer, groups in the order they first appear.
"""

from __future__ import annotations

import logging
from os import PathLike
from typing import IO, Optional, Union

import pandas as pd

from core.exceptions import CsvImportError
from orders.grouping import flatten_groups, group_orders
from orders.models import Order

logger = logging.getLogger(__name__)

CsvSource = Union[str, PathLike, IO]

# Excel exports are often cp1252; callers pass that instead.
DEFAULT_ENCODING = "utf-8"

DEFAULT_COLUMN_MAPPING: dict[str, str] = {
    "orderNumber": "Order Number",
    "customerFirstName": "Customer First Name",
    "customerLastName": "Customer Last Name",
    "sku": "SKU",
    "quantity": "Quantity",
    "location": "Location",
    "buyerPostcode": "Buyer Postcode",
    "imageUrl": "Image URL",
    "remainingStock": "Remaining Stock",
    "orderValue": "Order Value",
    "channelType": "Channel Type",
    "channel": "Channel",
    "packagingType": "Packaging Type",
    "itemName": "Item Name",
    "width": "Width",
    "weight": "Weight",
    "shipFromLocation": "Ship From Location",
}

# Attributes copied to the order as-is when their column is mapped.
_PASSTHROUGH = (
    "imageUrl",
    "remainingStock",
    "orderValue",
    "channelType",
    "channel",
    "packagingType",
    "itemName",
    "width",
    "weight",
    "shipFromLocation",
)


def _read_frame(
    source: CsvSource, encoding: str = DEFAULT_ENCODING, **kwargs
) -> Optional[pd.DataFrame]:
    try:
        return pd.read_csv(
            source, dtype=str, keep_default_na=False, encoding=encoding, **kwargs
        )
    except pd.errors.EmptyDataError:
        return None
    except pd.errors.ParserError as exc:
        raise CsvImportError("CSV file could not be parsed", {"reason": str(exc)}) from exc
    except UnicodeDecodeError as exc:
        raise CsvImportError(
            f"CSV file is not {encoding} text", {"reason": str(exc), "encoding": encoding}
        ) from exc


def read_csv_headers(source: CsvSource, encoding: str = DEFAULT_ENCODING) -> list[str]:
    """Return the header row, for building a column mapping."""
    frame = _read_frame(source, encoding, nrows=0)
    if frame is None:
        return []
    return [str(column).strip() for column in frame.columns]


def _resolve_columns(columns: list[str], mapping: dict[str, str]) -> dict[str, str]:
    by_name = {str(column).strip().lower(): column for column in columns}
    resolved: dict[str, str] = {}
    for attribute, header in mapping.items():
        if not header or not header.strip():
            continue
        column = by_name.get(header.strip().lower())
        if column is None:
            logger.warning("Column %r not found for %s", header, attribute)
            continue
        resolved[attribute] = column
    return resolved


def _parse_quantity(text: str) -> int:
    try:
        return max(1, int(float(text)))
    except (OverflowError, ValueError):
        return 1


def parse_orders_csv(
    source: CsvSource,
    mapping: Optional[dict[str, str]] = None,
    encoding: str = DEFAULT_ENCODING,
) -> list[Order]:
    """Read order lines from a CSV export.

    Raises CsvImportError when the file cannot be decoded with
    ``encoding`` or holds no usable row.
    """
    frame = _read_frame(source, encoding)
    if frame is None or frame.empty:
        logger.warning("CSV file is empty")
        return []

    columns = _resolve_columns(list(frame.columns), mapping or DEFAULT_COLUMN_MAPPING)

    orders: list[Order] = []
    for index, row in enumerate(frame.to_dict(orient="records")):
        def value(attribute: str) -> str:
            column = columns.get(attribute)
            return str(row.get(column, "")).strip() if column is not None else ""

        customer_name = f"{value('customerFirstName')} {value('customerLastName')}".strip()
        sku = value("sku")
        if not customer_name or not sku:
            logger.warning("Skipping row %d: missing customer name or SKU", index + 2)
            continue

        data = {
            "orderNumber": value("orderNumber") or f"Row-{index + 1}",
            "customerName": customer_name,
            "sku": sku,
            "quantity": _parse_quantity(value("quantity")),
            "location": value("location") or "Unknown",
            "buyerPostcode": "".join(value("buyerPostcode").split()),
        }
        for attribute in _PASSTHROUGH:
            text = value(attribute)
            if text:
                data[attribute] = text
        orders.append(Order.model_validate(data))

    if not orders:
        raise CsvImportError(
            "No valid orders found in CSV file. Check the column mapping.",
            {"rows": len(frame), "mapped_columns": sorted(columns)},
        )

    grouped = group_orders(orders)
    logger.info(
        "Imported %d order line(s) in %d order(s) from %d row(s)",
        len(orders), len(grouped), len(frame),
    )
    return flatten_groups(grouped)
