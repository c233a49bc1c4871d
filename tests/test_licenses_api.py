import pytest


def license_payload(customer_id, **overrides):
    payload = {
        "customer_id": customer_id,
        "license_number": "WPC-2024-001",
        "license_type": "Import",
        "issuing_date": "2024-01-10",
        "expiry_date": "2025-01-09",
        "status": "Active",
        "issuing_authority": "WPC Wing",
        "geographical_coverage": "Maharashtra",
        "end_use_purpose": "Campus network",
        "devices": [
            {
                "product_name": "Access Point",
                "brand": "Netgear",
                "frequency_range": "5.725-5.875 GHz",
                "power_output": 1.0,
                "quantity_approved": 20,
                "equipment_type": "Radio",
                "country_of_origin": "Taiwan",
                "technology_used": "WiFi 6",
            }
        ],
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
def license(client, admin, customer, poc):
    res = client.post(
        "/api/licenses/",
        json=license_payload(customer["id"], contact_person_id=poc["id"]),
        headers=admin["headers"],
    )
    assert res.status_code == 201, res.text
    return res.json()


def test_create_license_snapshots_contact_and_address(license):
    assert license["customer_name"] == "Globex"
    assert license["contact_person_name"] == "Meera"
    assert license["contact_person_number"] == "9811111111"
    assert license["created_by"] == "Asha Rao"
    # WPC block starts from the customer's WPC address
    assert license["wpc_city"] == "Pune"
    assert license["other_documents_urls"] == []
    assert license["devices"][0]["quantity_approved"] == 20


def test_foreign_customer_is_forbidden(client, admin, customer):
    from conftest import auth, register

    outsider = register(client, "boss@other.test", company_name="Other")
    client.post("/api/users/approve", json={"user_ids": [outsider["id"]]}, headers=admin["headers"])

    res = client.post("/api/licenses/", json=license_payload(customer["id"]), headers=auth(outsider["api_token"]))
    assert res.status_code == 403


def test_expiry_before_issue_is_bad_request(client, admin, customer):
    res = client.post(
        "/api/licenses/",
        json=license_payload(customer["id"], expiry_date="2023-12-31"),
        headers=admin["headers"],
    )
    assert res.status_code == 400


def test_update_replaces_devices_and_ignores_nulls(client, admin, license):
    res = client.put(f"/api/licenses/{license['id']}", json={
        "status": None,
        "license_type": "Dealer",
        "devices": [
            {
                "product_name": "Bridge",
                "brand": "Ubiquiti",
                "frequency_range": "5 GHz",
                "power_output": 2.5,
                "quantity_approved": 4,
                "equipment_type": "Radio",
            }
        ],
    }, headers=admin["headers"])
    assert res.status_code == 200

    body = res.json()
    assert body["status"] == "Active"
    assert body["license_type"] == "Dealer"
    assert [d["product_name"] for d in body["devices"]] == ["Bridge"]


def test_select_options(client, admin, license):
    options = client.get("/api/licenses/select-options", headers=admin["headers"]).json()
    assert options["license_types"] == [{"label": "Import", "value": "Import"}]
    assert options["issuing_authorities"][0]["value"] == "WPC Wing"
    assert options["countries_of_origin"][0]["value"] == "Taiwan"
    assert options["technologies_used"][0]["value"] == "WiFi 6"


def test_license_table(client, admin, license):
    body = client.get("/api/licenses/", params={"search": "status:Active"}, headers=admin["headers"]).json()
    assert [r["license_number"] for r in body["rows"]] == ["WPC-2024-001"]
    assert client.get(f"/api/licenses/{license['id']}", headers=admin["headers"]).json()["status"] == "Active"


def test_deleting_poc_unlinks_license(client, admin, poc, license):
    client.delete(f"/api/pocs/{poc['id']}", headers=admin["headers"])

    body = client.get(f"/api/licenses/{license['id']}", headers=admin["headers"]).json()
    assert body["contact_person_id"] is None
    assert body["contact_person_name"] == "Meera"


def test_delete_many_requires_every_license(client, admin, customer, license):
    res = client.post("/api/licenses/delete-many", json={"license_ids": [license["id"], 999]}, headers=admin["headers"])
    assert res.status_code == 403

    res = client.post("/api/licenses/delete-many", json={"license_ids": [license["id"]]}, headers=admin["headers"])
    assert res.json()["deleted_count"] == 1
    assert client.get(f"/api/licenses/{license['id']}", headers=admin["headers"]).status_code == 404
