from datetime import date

import pytest


def order_payload(customer_id, **overrides):
    payload = {
        "customer_id": customer_id,
        "order_name": "Campus WiFi",
        "payment_method": "NEFT",
        "payment_terms": "30 days",
        "delivery_method": "Road",
        "executive_name": "Asha Rao",
        "items": [
            {"product_name": "Router", "quantity": 2, "unit_price": 100, "tax_rate": 18, "discount_rate": 10},
            {"product_name": "Cable", "quantity": 1, "unit_price": 50, "delivery_date": ""},
        ],
        "freight_charge_amount": 500,
        "installation_inclusive": True,
        "installation_amount": 1000,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def poc(client, admin, customer):
    res = client.post("/api/pocs/", json={
        "customer_id": customer["id"],
        "name": "Meera",
        "designation": "Purchase Manager",
        "department": "Procurement",
        "phone": "9811111111",
        "email": "meera@globex.test",
    }, headers=admin["headers"])
    return res.json()


@pytest.fixture
def order(client, admin, customer, poc):
    res = client.post("/api/orders/", json=order_payload(customer["id"], poc_id=poc["id"]), headers=admin["headers"])
    assert res.status_code == 201, res.text
    return res.json()


def expected_prefix():
    return f"ACME-{date.today().strftime('%y%m%d')}-GLOBEX-PLANT 2"


def test_order_number_is_generated(order):
    assert order["order_number"] == f"{expected_prefix()}-000"


def test_generate_order_number_counts_existing(client, admin, customer, order):
    res = client.post("/api/orders/generate-order-number", json={"customer_id": customer["id"]}, headers=admin["headers"])
    assert res.json()["order_number"] == f"{expected_prefix()}-001"


def test_item_breakdowns_and_totals(order):
    router, cable = order["items"]
    assert router["subtotal"] == 200
    assert router["discount_amount"] == 20
    assert router["tax_amount"] == pytest.approx(32.4)
    assert router["total_amount"] == pytest.approx(212.4)
    assert cable["delivery_date"] is None

    assert order["subtotal"] == 250
    assert order["total_amount"] == pytest.approx(262.4)
    # Installation is inclusive, only freight is added
    assert order["additional_cost_total"] == 500
    assert order["grand_total"] == pytest.approx(762.4)


def test_order_snapshots_customer_and_poc(order):
    assert order["customer_name"] == "Globex"
    assert order["customer_gst"] == "27AAAAA0000A1Z5"
    assert order["poc_name"] == "Meera"
    assert order["poc_department"] == "Procurement"


def test_empty_address_blocks_start_from_customer(order):
    assert order["billing_city"] == "Pune"
    assert order["shipping_city"] == "Pune"


def test_same_as_billing_copies_order_billing(client, admin, customer):
    res = client.post(
        "/api/orders/",
        json=order_payload(
            customer["id"],
            billing_city="Nagpur",
            billing_country="India",
            shipping_city="Delhi",
            same_as_billing=True,
        ),
        headers=admin["headers"],
    )
    body = res.json()
    assert body["shipping_city"] == "Nagpur"
    assert body["shipping_street_address"] is None


def test_poc_must_belong_to_customer(client, admin, customer):
    res = client.post("/api/orders/", json=order_payload(customer["id"], poc_id=999), headers=admin["headers"])
    assert res.status_code == 400


def test_duplicate_order_number_conflicts(client, admin, customer, order):
    res = client.post(
        "/api/orders/",
        json=order_payload(customer["id"], order_number=order["order_number"]),
        headers=admin["headers"],
    )
    assert res.status_code == 409


def test_negative_additional_cost_is_422(client, admin, customer):
    res = client.post("/api/orders/", json=order_payload(customer["id"], freight_charge_amount=-5), headers=admin["headers"])
    assert res.status_code == 422


def test_order_from_quote_marks_quote_placed(client, admin, customer):
    quote = client.post("/api/quotes/", json={
        "customer_id": customer["id"],
        "invoice_date": "2024-03-09",
        "created_by": "Asha Rao",
        "items": [{"product_name": "Router", "quantity": 1, "unit_price": 100}],
    }, headers=admin["headers"]).json()

    client.post("/api/orders/", json=order_payload(customer["id"], quote_id=quote["id"]), headers=admin["headers"])

    detail = client.get(f"/api/quotes/ref/{quote['ref_no']}", headers=admin["headers"]).json()
    assert detail["status"] == "Order placed"


def test_update_recomputes_totals(client, admin, order):
    number = order["order_number"]
    res = client.put(
        f"/api/orders/number/{number}",
        json={
            "items": [{"product_name": "Switch", "quantity": 1, "unit_price": 1000, "tax_rate": 18}],
            "installation_inclusive": False,
            "status": "Dispatched",
        },
        headers=admin["headers"],
    )
    body = res.json()
    assert body["total_amount"] == pytest.approx(1180)
    assert body["additional_cost_total"] == 1500
    assert body["grand_total"] == pytest.approx(2680)
    assert body["status"] == "Dispatched"
    # Untouched fields keep their stored values
    assert body["payment_method"] == "NEFT"
    assert body["poc_name"] == "Meera"


def test_update_with_null_status_keeps_status(client, admin, order):
    res = client.put(f"/api/orders/number/{order['order_number']}", json={"status": None}, headers=admin["headers"])
    assert res.json()["status"] == "Pending"


def test_order_approval(client, admin, member, order):
    number = order["order_number"]
    client.put(f"/api/orders/number/{number}", json={"pending_approval_by": [member["id"]]}, headers=admin["headers"])

    assert client.post(f"/api/orders/approve/{number}", headers=admin["headers"]).status_code == 400

    res = client.post(f"/api/orders/approve/{number}", headers=member["headers"])
    assert res.json()["status"] == "Approved"


def test_order_lists_and_lookups(client, admin, customer, order):
    headers = admin["headers"]

    body = client.get("/api/orders/", params={"status": "Pending"}, headers=headers).json()
    assert [o["order_number"] for o in body["rows"]] == [order["order_number"]]
    assert client.get("/api/orders/", params={"status": "Closed"}, headers=headers).json()["rows"] == []

    assert client.get("/api/orders/payment-methods", headers=headers).json() == [{"label": "NEFT", "value": "NEFT"}]
    assert client.get("/api/orders/payment-terms", headers=headers).json()[0]["value"] == "30 days"
    assert client.get("/api/orders/delivery-methods", headers=headers).json()[0]["value"] == "Road"
    assert client.get("/api/orders/statuses", headers=headers).json() == [{"label": "Pending", "value": "Pending"}]

    by_customer = client.get(f"/api/orders/customer/{customer['id']}", headers=headers).json()
    assert len(by_customer) == 1
    assert client.get(f"/api/orders/{order['id']}", headers=headers).json()["order_name"] == "Campus WiFi"
    assert client.get(f"/api/orders/number/{order['order_number']}", headers=headers).status_code == 200


def test_download_order_pdf(client, admin, order):
    res = client.get(f"/api/orders/download/{order['order_number']}", headers=admin["headers"])
    assert res.status_code == 200
    assert res.content.startswith(b"%PDF")


def test_delete_orders(client, admin, customer, order):
    second = client.post("/api/orders/", json=order_payload(customer["id"]), headers=admin["headers"]).json()

    res = client.post("/api/orders/delete", json={"ids": [order["id"]]}, headers=admin["headers"])
    assert res.json()["deleted_count"] == 1

    res = client.delete(f"/api/orders/number/{second['order_number']}", headers=admin["headers"])
    assert res.status_code == 200
    assert client.get("/api/orders/", headers=admin["headers"]).json()["total_rows"] == 0

    assert client.post("/api/orders/delete", json={"ids": []}, headers=admin["headers"]).status_code == 400


def test_deleting_poc_unlinks_orders(client, admin, poc, order):
    res = client.delete(f"/api/pocs/{poc['id']}", headers=admin["headers"])
    assert res.status_code == 200

    body = client.get(f"/api/orders/{order['id']}", headers=admin["headers"]).json()
    assert body["poc_id"] is None
    # The contact snapshot stays on the order
    assert body["poc_name"] == "Meera"
