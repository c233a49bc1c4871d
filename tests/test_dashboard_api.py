from datetime import date


def make_quote(client, headers, customer_id, invoice_date, created_by, amount, product="Router"):
    res = client.post("/api/quotes/", json={
        "customer_id": customer_id,
        "invoice_date": invoice_date,
        "created_by": created_by,
        "items": [{"product_name": product, "quantity": 1, "unit_price": amount}],
    }, headers=headers)
    return res.json()


def test_empty_dashboard(client, admin):
    body = client.get("/api/dashboard/", headers=admin["headers"]).json()
    kpis = body["kpi_cards"]
    assert kpis["total_quotes"] == 0
    assert kpis["quote_success_rate"] == "0.00"
    assert kpis["top_sales_representative"] == "N/A"
    assert kpis["total_quote_value"] == "₹0.00"
    assert len(body["charts"]["quote_trends"]) == 6


def test_dashboard_figures(client, admin, customer):
    headers = admin["headers"]
    make_quote(client, headers, customer["id"], "2024-03-05", "Asha Rao", 1000)
    make_quote(client, headers, customer["id"], "2024-02-10", "Ravi Kumar", 300, product="Switch")
    make_quote(client, headers, customer["id"], "2023-01-10", "Ravi Kumar", 200)

    client.put("/api/quotes/ref/001", json={"status": "Approved"}, headers=headers)

    body = client.get("/api/dashboard/", params={"today": "2024-03-20"}, headers=headers).json()
    kpis = body["kpi_cards"]

    assert kpis["total_quotes"] == 3
    assert kpis["total_quote_value"] == "₹1,500.00"
    assert kpis["quote_success_rate"] == "33.33"
    assert kpis["top_sales_representative"] == "Asha Rao"
    assert kpis["total_active_customers"] == 1

    trends = body["charts"]["quote_trends"]
    assert [t["month"] for t in trends] == ["Oct 2023", "Nov 2023", "Dec 2023", "Jan 2024", "Feb 2024", "Mar 2024"]
    assert trends[-1]["total"] == 1000
    assert trends[-2]["total"] == 300

    statuses = {s["status"]: s["count"] for s in body["charts"]["quote_status_distribution"]}
    assert statuses == {"Approved": 1, "Drafted": 2}

    assert body["charts"]["top_products"][0] == {"product_name": "Router", "count": 2}
    assert body["insights"]["top_customers"][0]["customer_name"] == "Globex"
    assert body["insights"]["quotes_by_person"][0] == {"created_by": "Ravi Kumar", "quote_count": 2}


def test_new_customers_window(client, admin, customer):
    today = date.today().isoformat()
    body = client.get("/api/dashboard/", params={"today": today}, headers=admin["headers"]).json()
    assert body["kpi_cards"]["new_customers_added"] == 1
