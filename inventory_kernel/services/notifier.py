"""
Low-stock notifiers.

Contract:
    ``Notifier.notify_low_stock(product_name, sku, quantity, safety_stock)``
    is fire-and-forget.  Implementations may raise; the reconciliation
    engine logs and swallows the error so an applied adjustment is never
    rolled back or reported as failed because a notification failed.

Implementations:
    - ``LoggingNotifier``   -- writes a structured log line (default).
    - ``SmtpNotifier``      -- emails the store administrator.
    - ``RecordingNotifier`` -- keeps calls in memory (tests, dry runs).
"""

from __future__ import annotations

import smtplib
import threading
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Protocol, runtime_checkable

from inventory_kernel.logging_config import get_logger

logger = get_logger("services.notifier")


@runtime_checkable
class Notifier(Protocol):
    """Receives low-stock notifications."""

    def notify_low_stock(
        self,
        product_name: str,
        sku: str,
        quantity: int,
        safety_stock: int,
    ) -> None: ...


@dataclass(frozen=True)
class LowStockNotice:
    """One recorded notification."""

    product_name: str
    sku: str
    quantity: int
    safety_stock: int


class LoggingNotifier:
    """Notifier that only logs."""

    def notify_low_stock(
        self,
        product_name: str,
        sku: str,
        quantity: int,
        safety_stock: int,
    ) -> None:
        logger.warning(
            "low_stock",
            extra={
                "product_name": product_name,
                "sku": sku,
                "quantity": quantity,
                "safety_stock": safety_stock,
            },
        )


class RecordingNotifier:
    """Notifier that keeps every call in memory."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._notices: list[LowStockNotice] = []

    def notify_low_stock(
        self,
        product_name: str,
        sku: str,
        quantity: int,
        safety_stock: int,
    ) -> None:
        with self._lock:
            self._notices.append(
                LowStockNotice(product_name, sku, quantity, safety_stock)
            )

    @property
    def notices(self) -> tuple[LowStockNotice, ...]:
        with self._lock:
            return tuple(self._notices)


class SmtpNotifier:
    """Emails a low-stock alert to the store administrator.

    A missing recipient is logged and the notification skipped.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        recipient: str | None = None,
        use_ssl: bool = False,
        store_name: str = "Inventory",
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = sender or username
        self._recipient = recipient
        self._use_ssl = use_ssl
        self._store_name = store_name
        self._timeout = timeout

    def notify_low_stock(
        self,
        product_name: str,
        sku: str,
        quantity: int,
        safety_stock: int,
    ) -> None:
        if not self._recipient:
            logger.error("low_stock_recipient_missing", extra={"sku": sku})
            return

        msg = self.build_message(product_name, sku, quantity, safety_stock)

        if self._use_ssl:
            smtp: smtplib.SMTP = smtplib.SMTP_SSL(
                self._host, self._port, timeout=self._timeout,
            )
        else:
            smtp = smtplib.SMTP(self._host, self._port, timeout=self._timeout)
        with smtp:
            if not self._use_ssl:
                smtp.starttls()
            if self._username and self._password:
                smtp.login(self._username, self._password)
            smtp.send_message(msg)

        logger.info(
            "low_stock_email_sent",
            extra={"sku": sku, "recipient": self._recipient},
        )

    def build_message(
        self,
        product_name: str,
        sku: str,
        quantity: int,
        safety_stock: int,
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = f"[{self._store_name}] Low stock: {product_name}"
        msg["From"] = self._sender or ""
        msg["To"] = self._recipient or ""
        msg.set_content(
            "Stock for the following product is at or below its safety level:\n\n"
            f"  Product:      {product_name}\n"
            f"  SKU:          {sku}\n"
            f"  On hand:      {quantity}\n"
            f"  Safety stock: {safety_stock}\n\n"
            "Please restock.\n"
        )
        return msg
