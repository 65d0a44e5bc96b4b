import os
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Select the config overlay before the domain is first imported."""
    os.environ["PROTEAN_ENV"] = session.config.option.env


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = str(Path(item.fspath))

        if "/domain/" in test_path:
            item.add_marker(pytest.mark.domain)
        elif "/application/" in test_path:
            item.add_marker(pytest.mark.application)
        elif "/integration/" in test_path:
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in test_path:
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session")
def freshcart_bed():
    from protean.integrations.pytest import DomainFixture

    from freshcart.domain import freshcart

    bed = DomainFixture(freshcart)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(freshcart_bed):
    with freshcart_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def _reset_state(_ctx):
    """Fresh adapters before each test, empty stores after it."""
    from protean import current_domain

    from freshcart.catalogue import reset_catalog
    from freshcart.gateway import reset_gateway
    from freshcart.notification import reset_channels
    from freshcart.utils.locks import reset_locks

    reset_gateway()
    reset_channels()
    reset_catalog()
    reset_locks()

    yield

    for _, provider in current_domain.providers.items():
        provider._data_reset()
    current_domain.event_store.store._data_reset()


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------
@pytest.fixture
def slot_date():
    """A booking date comfortably in the future."""
    return (datetime.now(UTC).date() + timedelta(days=3)).isoformat()


@pytest.fixture
def order_items():
    return [
        {"product_id": "apples", "product_name": "Apples", "sku": "APL-1", "quantity": 2, "unit_price": 3.5},
        {"product_id": "bread", "product_name": "Bread", "sku": "BRD-1", "quantity": 1, "unit_price": 4.0},
        {"product_id": "milk", "product_name": "Milk", "sku": "MLK-1", "quantity": 3, "unit_price": 2.0},
    ]


@pytest.fixture
def place_test_order(slot_date, order_items):
    """Checkout through the real entry point; keyword overrides are passed through."""
    from freshcart.order.checkout import place_order

    def _place(**overrides):
        kwargs = {
            "user_id": "user-001",
            "customer_email": "sam@example.com",
            "customer_name": "Sam",
            "items": order_items,
            "fulfillment_type": "Pickup",
            "slot_date": slot_date,
            "slot_start_time": "10:00",
        }
        kwargs.update(overrides)
        return place_order(**kwargs)

    return _place


@pytest.fixture
def paid_order(place_test_order):
    from freshcart.order.payment import confirm_payment

    def _paid(**overrides):
        order = place_test_order(**overrides)
        return confirm_payment(str(order.id), payment_reference="ch_test_001")

    return _paid


@pytest.fixture
def hundred_dollar_order(paid_order):
    """A paid order totalling exactly 100.00 (92.59 plus 8% tax)."""

    def _order(**overrides):
        overrides.setdefault(
            "items",
            [{"product_id": "hamper", "product_name": "Gift Hamper", "quantity": 1, "unit_price": 92.59}],
        )
        return paid_order(**overrides)

    return _order


@pytest.fixture
def processing_refund():
    """Request, approve and issue a refund so it is ready to complete."""
    from protean import current_domain

    from freshcart.refund.processing import issue_refund
    from freshcart.refund.request import create_refund
    from freshcart.refund.review import ApproveRefund

    def _refund(order_id, amount, reason="Quality_Issue"):
        refund = create_refund(order_id, amount, reason)
        current_domain.process(
            ApproveRefund(refund_id=str(refund.id), actor="admin-1", actor_role="admin"),
            asynchronous=False,
        )
        return issue_refund(str(refund.id), actor="admin-1")

    return _refund
