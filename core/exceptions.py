"""Application exceptions.

Rule validation problems reach the rule editor as a list of messages
(see ``packrules.validation``). These exceptions cover the cases where a
caller tried to act anyway: saving an invalid rule, editing a rule that
no longer exists, or storage failing underneath a catalog.
"""

from typing import Any, Optional


class AppException(Exception):
    """Base exception for all application errors."""

    status_code = 400

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for JSON responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# Rule catalog exceptions
class RuleError(AppException):
    """Base class for rule catalog errors."""


class RuleValidationError(RuleError):
    """A rule failed validation and was not saved."""

    status_code = 422

    def __init__(self, errors: list[str], rule_id: Optional[str] = None):
        self.errors = list(errors)
        details: dict[str, Any] = {"errors": self.errors}
        if rule_id:
            details["rule_id"] = rule_id
        super().__init__("Rule is not valid", details)


class RuleNotFoundError(RuleError):
    """No rule with the given id exists in the catalog."""

    status_code = 404

    def __init__(self, rule_id: str):
        self.rule_id = rule_id
        super().__init__(f"Rule '{rule_id}' not found", {"rule_id": rule_id})


class DuplicateRuleError(RuleError):
    """A rule with the same id is already in the catalog."""

    status_code = 409

    def __init__(self, rule_id: str):
        self.rule_id = rule_id
        super().__init__(f"Rule '{rule_id}' already exists", {"rule_id": rule_id})


class DuplicateNameError(RuleError):
    """A packaging type or box name is already in the list."""

    status_code = 409


# Storage exceptions
class CatalogStoreError(AppException):
    """Reading or writing persisted settings failed."""

    status_code = 503


# Order ingestion exceptions
class CsvImportError(AppException):
    """A CSV export could not be turned into orders."""


# Stock tracking exceptions
class StockItemNotFoundError(AppException):
    """No tracked item with the given SKU and marked date."""

    status_code = 404

    def __init__(self, sku: str, marked_date: str):
        super().__init__(
            f"No tracked item for SKU '{sku}' marked at {marked_date}",
            {"sku": sku, "marked_date": marked_date},
        )


class StockItemValidationError(AppException):
    """An edit would leave a tracked item invalid."""

    status_code = 422

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__("Tracked item is not valid", {"errors": self.errors})


class OrderLineNotFoundError(AppException):
    """No order line with the given order number and SKU."""

    status_code = 404

    def __init__(self, order_number: str, sku: str):
        super().__init__(
            f"Order line {order_number}/{sku} not found",
            {"order_number": order_number, "sku": sku},
        )


# Request scoping exceptions
class InvalidWarehouseError(AppException):
    """The warehouse header names something the settings store cannot key."""

    def __init__(self, warehouse: str):
        super().__init__(
            "X-Warehouse-ID must be 1-64 letters, digits, '-' or '_'",
            {"warehouse": warehouse},
        )
