from __future__ import annotations

from pylaundry._redact import mask_email, mask_phone, redact_for_log
from pylaundry.models.order import Order


def test_redact_for_log_masks_contact_details() -> None:
    payload = {
        "id": "order_1",
        "customerName": "Ada",
        "customerPhone": "+1 (555) 555-0100",
        "deliveryAddress": "1 Main St",
        "driver": {"email": "bo@example.com", "current_location": {"lat": 1.0, "lng": 2.0}},
    }

    redacted = redact_for_log(payload)
    assert redacted["customerName"] == "Ada"
    assert redacted["customerPhone"] == "***0100"
    assert redacted["deliveryAddress"] == "<redacted>"
    assert redacted["driver"]["email"] == "b***@example.com"
    assert redacted["driver"]["current_location"] == "<redacted>"


def test_redact_for_log_accepts_models() -> None:
    order = Order(id="order_1", customer_phone="+15550100", delivery_address="1 Main St")
    redacted = redact_for_log(order)
    assert redacted["id"] == "order_1"
    assert redacted["customer_phone"] == "***0100"
    assert redacted["delivery_address"] == "<redacted>"


def test_short_or_malformed_contacts_are_fully_hidden() -> None:
    assert mask_phone("123") == "***"
    assert mask_phone("") == "***"
    assert mask_email("not-an-email") == "***"
    assert mask_email("@example.com") == "***"


def test_redact_for_log_truncates_long_strings() -> None:
    long_value = "x" * 600
    redacted = redact_for_log({"notes": long_value}, max_string=10)
    assert redacted["notes"].startswith("x" * 10)
    assert "<truncated>" in redacted["notes"]


def test_redact_for_log_handles_sequences_and_bytes() -> None:
    redacted = redact_for_log([{"phone": "1"}, b"\x00\x01"])
    assert redacted == [{"phone": "***"}, "<bytes:2b>"]
