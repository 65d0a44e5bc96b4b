"""Tests for customer-facing status email wording."""

import pytest

from freshcart.notification.messages import STATUS_MESSAGES, render_status_email
from freshcart.order.order import OrderStatus


class TestRenderStatusEmail:
    def test_subject_carries_order_number_and_message(self):
        subject, body = render_status_email("Ready_For_Pickup", "ORD-2026-0001", "Sam")
        assert subject == "Order ORD-2026-0001: Your order is ready for pickup!"
        assert body.startswith("Hi Sam,")
        assert "Order number: ORD-2026-0001" in body

    def test_anonymous_greeting(self):
        _, body = render_status_email("Paid", "ORD-2026-0001", None)
        assert body.startswith("Hi,")

    def test_cancellation_includes_reason(self):
        _, body = render_status_email("Cancelled", "ORD-2026-0001", "Sam", note="Out of stock")
        assert "Reason: Out of stock" in body

    def test_reason_omitted_for_other_statuses(self):
        _, body = render_status_email("Delivered", "ORD-2026-0001", "Sam", note="Left at door")
        assert "Reason:" not in body

    @pytest.mark.parametrize("status", [OrderStatus.PENDING, OrderStatus.REFUNDED])
    def test_silent_statuses_have_no_message(self, status):
        assert status not in STATUS_MESSAGES
        with pytest.raises(KeyError):
            render_status_email(status.value, "ORD-2026-0001", "Sam")
