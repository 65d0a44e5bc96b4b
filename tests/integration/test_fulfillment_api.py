"""Integration tests for the fulfillment endpoints."""

PICKER = {"X-Actor-Id": "picker-7", "X-Actor-Role": "staff"}


def _fulfillment_for(client, order_id):
    response = client.get(f"/fulfillments/by-order/{order_id}")
    assert response.status_code == 200, response.text
    return response.json()


class TestFulfillmentApi:
    def test_paid_order_has_pending_fulfillment(self, client, create_paid_order):
        order = create_paid_order()
        ff = _fulfillment_for(client, order["order_id"])
        assert ff["status"] == "Pending"
        assert ff["total_items_ordered"] == 3
        assert [i["position"] for i in ff["items"]] == [0, 1]

    def test_unpaid_order_has_none(self, client, create_order):
        order = create_order()
        assert client.get(f"/fulfillments/by-order/{order['order_id']}").status_code == 404

    def test_picking_to_ready_for_pickup(self, client, create_paid_order):
        order = create_paid_order()
        ff_id = _fulfillment_for(client, order["order_id"])["fulfillment_id"]

        first = client.put(f"/fulfillments/{ff_id}/items/0", json={"quantity_fulfilled": 1}, headers=PICKER)
        assert first.status_code == 200
        assert first.json()["status"] == "In_Progress"
        assert first.json()["items"][0]["status"] == "Partial"
        assert first.json()["progress_percentage"] == 33

        last = client.put(f"/fulfillments/{ff_id}/items/1", json={"quantity_fulfilled": 1}, headers=PICKER)
        assert last.json()["status"] == "Completed"
        assert last.json()["completed_by"] == "picker-7"

        assert client.get(f"/orders/{order['order_id']}").json()["status"] == "Ready_For_Pickup"

    def test_over_picking_is_400(self, client, create_paid_order):
        order = create_paid_order()
        ff_id = _fulfillment_for(client, order["order_id"])["fulfillment_id"]
        response = client.put(f"/fulfillments/{ff_id}/items/1", json={"quantity_fulfilled": 5}, headers=PICKER)
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_quantity"

    def test_manual_completion_needs_every_item(self, client, create_paid_order):
        order = create_paid_order()
        ff_id = _fulfillment_for(client, order["order_id"])["fulfillment_id"]
        client.put(f"/fulfillments/{ff_id}/start", headers=PICKER)

        response = client.put(f"/fulfillments/{ff_id}/complete", json={}, headers=PICKER)

        assert response.status_code == 400
        assert response.json()["code"] == "incomplete_items"

    def test_notes_and_cancel(self, client, create_paid_order):
        order = create_paid_order()
        ff_id = _fulfillment_for(client, order["order_id"])["fulfillment_id"]

        notes = client.put(f"/fulfillments/{ff_id}/notes", json={"notes": "Cold bag"}, headers=PICKER)
        assert notes.json()["notes"] == "Cold bag"

        cancelled = client.put(f"/fulfillments/{ff_id}/cancel", json={"reason": "Store closed"}, headers=PICKER)
        assert cancelled.json()["status"] == "Cancelled"
        assert client.get("/fulfillments", params={"status": "Cancelled"}).json()[0]["fulfillment_id"] == ff_id

    def test_second_fulfillment_rejected(self, client, create_paid_order):
        order = create_paid_order()
        response = client.post("/fulfillments", json={"order_id": order["order_id"]})
        assert response.status_code == 400
