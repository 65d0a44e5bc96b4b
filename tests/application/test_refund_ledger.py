"""Application tests for refund queries and statistics."""

from protean import current_domain

from freshcart.refund.ledger import has_pending_refund, list_refunds, refund_stats, refunds_for_order
from freshcart.refund.processing import complete_refund, fail_refund
from freshcart.refund.request import create_refund
from freshcart.refund.review import RejectRefund


class TestLedgerQueries:
    def test_refunds_listed_per_order_and_user(self, hundred_dollar_order):
        first = hundred_dollar_order()
        second = hundred_dollar_order(user_id="user-002")
        create_refund(str(first.id), 10.0, "Other")
        create_refund(str(first.id), 5.0, "Other")
        create_refund(str(second.id), 7.0, "Other")

        assert len(refunds_for_order(str(first.id))) == 2
        assert len(list_refunds(user_id="user-002")) == 1
        assert len(list_refunds(status="Pending")) == 3
        assert len(list_refunds()) == 3

    def test_pending_refund_flag(self, hundred_dollar_order, processing_refund):
        order = hundred_dollar_order()
        assert not has_pending_refund(str(order.id))

        refund = processing_refund(str(order.id), 10.0)
        assert has_pending_refund(str(order.id))

        complete_refund(str(refund.id))
        assert not has_pending_refund(str(order.id))


class TestRefundStats:
    def test_counts_and_refunded_total(self, hundred_dollar_order, processing_refund):
        order = hundred_dollar_order()
        completed = processing_refund(str(order.id), 20.0)
        complete_refund(str(completed.id))
        failed = processing_refund(str(order.id), 5.0)
        fail_refund(str(failed.id), "Card closed")
        processing_refund(str(order.id), 3.0)
        rejected = create_refund(str(order.id), 4.0, "Other")
        current_domain.process(
            RejectRefund(refund_id=str(rejected.id), actor="admin-1", actor_role="admin", reason="Duplicate"),
            asynchronous=False,
        )
        create_refund(str(order.id), 1.0, "Other")

        assert refund_stats() == {
            "pending": 1,
            "approved": 1,
            "completed": 1,
            "rejected": 1,
            "failed": 1,
            "total_refunded_amount": 20.0,
        }
