"""Services for the inventory kernel (write side)."""

from inventory_kernel.services.history_store import HistoryStore
from inventory_kernel.services.notifier import (
    LoggingNotifier,
    LowStockNotice,
    Notifier,
    RecordingNotifier,
    SmtpNotifier,
)
from inventory_kernel.services.product_store import ProductStore

__all__ = [
    "HistoryStore",
    "LoggingNotifier",
    "LowStockNotice",
    "Notifier",
    "ProductStore",
    "RecordingNotifier",
    "SmtpNotifier",
]
