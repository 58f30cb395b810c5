"""Order lines as the rule engine sees them, plus ingestion helpers."""
from orders.models import ArchivedOrder, Order

__all__ = ["ArchivedOrder", "Order"]
