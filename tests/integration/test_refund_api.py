"""Integration tests for the refund endpoints."""

ADMIN = {"X-Actor-Id": "admin-1", "X-Actor-Role": "admin"}
CUSTOMER = {"X-Actor-Id": "user-api-001", "X-Actor-Role": "customer"}
HAMPER = [{"product_id": "hamper", "product_name": "Gift Hamper", "quantity": 1, "unit_price": 92.59}]


def _request(client, order_id, amount, reason="Quality_Issue"):
    response = client.post("/refunds", json={"order_id": order_id, "amount": amount, "reason": reason})
    assert response.status_code == 201, response.text
    return response.json()


def _approve_and_issue(client, refund_id):
    assert client.put(f"/refunds/{refund_id}/approve", json={}, headers=ADMIN).status_code == 200
    response = client.put(f"/refunds/{refund_id}/issue", headers=ADMIN)
    assert response.status_code == 200, response.text
    return response.json()


class TestRefundRequests:
    def test_request_is_pending(self, client, create_paid_order):
        order = create_paid_order(items=HAMPER)
        refund = _request(client, order["order_id"], 20.0)
        assert refund["status"] == "Pending"
        assert refund["order_number"] == order["order_number"]

    def test_over_total_is_409(self, client, create_paid_order):
        order = create_paid_order(items=HAMPER)
        response = client.post("/refunds", json={"order_id": order["order_id"], "amount": 150.0, "reason": "Other"})
        assert response.status_code == 409
        assert response.json()["code"] == "refund_exceeds_order_total"

    def test_unpaid_order_is_409(self, client, create_order):
        order = create_order()
        response = client.post("/refunds", json={"order_id": order["order_id"], "amount": 1.0, "reason": "Other"})
        assert response.status_code == 409

    def test_unknown_reason_is_400(self, client, create_paid_order):
        order = create_paid_order(items=HAMPER)
        response = client.post("/refunds", json={"order_id": order["order_id"], "amount": 1.0, "reason": "Whim"})
        assert response.status_code == 400


class TestRefundReview:
    def test_customer_cannot_approve(self, client, create_paid_order):
        order = create_paid_order(items=HAMPER)
        refund = _request(client, order["order_id"], 20.0)
        response = client.put(f"/refunds/{refund['refund_id']}/approve", json={}, headers=CUSTOMER)
        assert response.status_code == 403
        assert client.get(f"/refunds/{refund['refund_id']}").json()["status"] == "Pending"

    def test_reject(self, client, create_paid_order):
        order = create_paid_order(items=HAMPER)
        refund = _request(client, order["order_id"], 20.0)
        response = client.put(f"/refunds/{refund['refund_id']}/reject", json={"reason": "No photo"}, headers=ADMIN)
        assert response.json()["status"] == "Rejected"
        assert response.json()["rejection_reason"] == "No photo"

        again = client.put(f"/refunds/{refund['refund_id']}/approve", json={}, headers=ADMIN)
        assert again.status_code == 409


class TestRefundCompletion:
    def test_full_refund_through_api(self, client, create_paid_order):
        order = create_paid_order(items=HAMPER)
        first = _request(client, order["order_id"], 60.0)
        second = _request(client, order["order_id"], 40.0)
        issued = _approve_and_issue(client, first["refund_id"])
        assert issued["status"] == "Processing"
        assert issued["gateway_refund_id"].startswith("fake_re_")
        _approve_and_issue(client, second["refund_id"])

        assert client.put(f"/refunds/{first['refund_id']}/complete", headers=ADMIN).status_code == 200
        assert client.put(f"/refunds/{second['refund_id']}/complete", headers=ADMIN).status_code == 200

        stored = client.get(f"/orders/{order['order_id']}").json()
        assert stored["status"] == "Refunded"
        assert stored["refunded_amount"] == 100.0
        assert sorted(stored["refund_ids"]) == sorted([first["refund_id"], second["refund_id"]])

        extra = client.post("/refunds", json={"order_id": order["order_id"], "amount": 1.0, "reason": "Other"})
        assert extra.status_code == 409

    def test_manual_process_and_fail(self, client, create_paid_order):
        order = create_paid_order(items=HAMPER)
        refund = _request(client, order["order_id"], 10.0)
        client.put(f"/refunds/{refund['refund_id']}/approve", json={}, headers=ADMIN)

        processed = client.put(
            f"/refunds/{refund['refund_id']}/process", json={"gateway_refund_id": "re_manual"}, headers=ADMIN
        )
        assert processed.json()["gateway_refund_id"] == "re_manual"

        failed = client.put(f"/refunds/{refund['refund_id']}/fail", json={"reason": "Card closed"}, headers=ADMIN)
        assert failed.json()["status"] == "Failed"


class TestRefundQueries:
    def test_list_and_stats(self, client, create_paid_order):
        order = create_paid_order(items=HAMPER)
        done = _request(client, order["order_id"], 30.0)
        _approve_and_issue(client, done["refund_id"])
        client.put(f"/refunds/{done['refund_id']}/complete", headers=ADMIN)
        _request(client, order["order_id"], 5.0)

        assert len(client.get("/refunds", params={"order_id": order["order_id"]}).json()) == 2
        assert len(client.get("/refunds", params={"status": "Pending"}).json()) == 1
        assert len(client.get("/refunds", params={"user_id": "user-api-001"}).json()) == 2

        stats = client.get("/refunds/stats").json()
        assert stats["completed"] == 1
        assert stats["pending"] == 1
        assert stats["total_refunded_amount"] == 30.0

    def test_unknown_refund_is_404(self, client):
        assert client.get("/refunds/missing").status_code == 404
