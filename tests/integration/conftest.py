import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient


@pytest.fixture()
def client():
    from freshcart.api import routers
    from freshcart.api.errors import register_error_handlers
    from freshcart.domain import freshcart

    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with freshcart.domain_context():
            return await call_next(request)

    for router in routers:
        app.include_router(router)
    register_error_handlers(app)
    return TestClient(app)


@pytest.fixture()
def order_payload(slot_date):
    return {
        "user_id": "user-api-001",
        "customer_email": "alex@example.com",
        "customer_name": "Alex",
        "items": [
            {"product_id": "apples", "product_name": "Apples", "quantity": 2, "unit_price": 3.5},
            {"product_id": "bread", "product_name": "Bread", "quantity": 1, "unit_price": 4.0},
        ],
        "fulfillment_type": "Pickup",
        "slot_date": slot_date,
        "slot_start_time": "11:00",
    }


@pytest.fixture()
def create_order(client, order_payload):
    """POST /orders and return the response body."""

    def _create(**overrides):
        response = client.post("/orders", json={**order_payload, **overrides})
        assert response.status_code == 201, response.text
        return response.json()

    return _create


@pytest.fixture()
def create_paid_order(client, create_order):
    def _create(**overrides):
        order = create_order(**overrides)
        response = client.put(f"/orders/{order['order_id']}/payment", json={"payment_reference": "ch_api_001"})
        assert response.status_code == 200, response.text
        return response.json()

    return _create
