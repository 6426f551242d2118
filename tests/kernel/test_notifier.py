"""Tests for the low-stock notifiers."""

from unittest.mock import patch

from inventory_kernel.services.notifier import (
    LoggingNotifier,
    LowStockNotice,
    Notifier,
    RecordingNotifier,
    SmtpNotifier,
)


class TestNotifierProtocol:

    def test_implementations_satisfy_protocol(self):
        assert isinstance(LoggingNotifier(), Notifier)
        assert isinstance(RecordingNotifier(), Notifier)
        assert isinstance(SmtpNotifier("smtp.example.com"), Notifier)


class TestLoggingNotifier:

    def test_logs_low_stock(self, captured_logs):
        LoggingNotifier().notify_low_stock("Hand Saw", "SAW-1", 1, 2)

        records = [r for r in captured_logs() if r["message"] == "low_stock"]
        assert len(records) == 1
        assert records[0]["level"] == "WARNING"
        assert records[0]["sku"] == "SAW-1"
        assert records[0]["quantity"] == 1
        assert records[0]["safety_stock"] == 2


class TestRecordingNotifier:

    def test_records_calls_in_order(self):
        notifier = RecordingNotifier()
        notifier.notify_low_stock("Hand Saw", "SAW-1", 1, 2)
        notifier.notify_low_stock("Paint", "PNT-1", 0, 3)

        assert notifier.notices == (
            LowStockNotice("Hand Saw", "SAW-1", 1, 2),
            LowStockNotice("Paint", "PNT-1", 0, 3),
        )


class TestSmtpNotifier:

    def _notifier(self, **overrides):
        kwargs = {
            "host": "smtp.example.com",
            "username": "store@example.com",
            "password": "secret",
            "recipient": "manager@example.com",
            "store_name": "Main Street",
        }
        kwargs.update(overrides)
        return SmtpNotifier(**kwargs)

    def test_build_message(self):
        msg = self._notifier().build_message("Hand Saw", "SAW-1", 1, 2)

        assert msg["Subject"] == "[Main Street] Low stock: Hand Saw"
        assert msg["From"] == "store@example.com"
        assert msg["To"] == "manager@example.com"
        body = msg.get_content()
        assert "SAW-1" in body
        assert "On hand:      1" in body
        assert "Safety stock: 2" in body

    def test_sends_over_starttls(self):
        with patch("inventory_kernel.services.notifier.smtplib.SMTP") as smtp_cls:
            smtp = smtp_cls.return_value
            self._notifier().notify_low_stock("Hand Saw", "SAW-1", 1, 2)

        smtp_cls.assert_called_once_with("smtp.example.com", 587, timeout=10.0)
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("store@example.com", "secret")
        smtp.send_message.assert_called_once()

    def test_ssl_skips_starttls(self):
        with patch("inventory_kernel.services.notifier.smtplib.SMTP_SSL") as ssl_cls:
            smtp = ssl_cls.return_value
            self._notifier(use_ssl=True, port=465).notify_low_stock("Saw", "SAW-1", 1, 2)

        ssl_cls.assert_called_once_with("smtp.example.com", 465, timeout=10.0)
        smtp.starttls.assert_not_called()
        smtp.send_message.assert_called_once()

    def test_missing_recipient_logs_and_skips(self, captured_logs):
        with patch("inventory_kernel.services.notifier.smtplib.SMTP") as smtp_cls:
            self._notifier(recipient=None).notify_low_stock("Saw", "SAW-1", 1, 2)

        smtp_cls.assert_not_called()
        assert any(
            r["message"] == "low_stock_recipient_missing" for r in captured_logs()
        )
