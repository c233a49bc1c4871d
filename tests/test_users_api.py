from conftest import auth, register


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_first_user_is_approved_admin(client, admin):
    assert admin["role"] == "admin"
    assert admin["approval_by_admin"] is True

    me = client.get("/api/users/me", headers=admin["headers"]).json()
    assert me["email"] == "admin@acme.test"
    assert "api_token" not in me


def test_later_users_wait_for_approval(client, admin):
    pending = register(client, "new@acme.test")
    assert pending["approval_by_admin"] is False
    assert pending["role"] == "user"

    res = client.get("/api/customers/", headers=auth(pending["api_token"]))
    assert res.status_code == 403

    check = client.post("/api/users/check-no-auth", json={"email": "new@acme.test"}).json()
    assert check == {"exists": True, "approved_by_admin": False}


def test_duplicate_email_conflicts(client, admin):
    res = client.post("/api/users/", json={
        "email": "admin@acme.test",
        "first_name": "A",
        "last_name": "B",
    })
    assert res.status_code == 409


def test_missing_or_unknown_token(client, admin):
    assert client.get("/api/users/me").status_code == 401
    assert client.get("/api/users/me", headers=auth("nope")).status_code == 401
    assert client.get("/api/users/me", headers={"Authorization": "Basic abc"}).status_code == 401


def test_only_admin_can_approve(client, admin, member):
    other = register(client, "third@acme.test")
    res = client.post("/api/users/approve", json={"user_ids": [other["id"]]}, headers=member["headers"])
    assert res.status_code == 403

    res = client.post("/api/users/approve", json={"user_ids": [other["id"]]}, headers=admin["headers"])
    assert res.json()["approved_count"] == 1


def test_companies_and_teams_are_public(client, admin, member):
    assert client.get("/api/users/companies").json() == [{"label": "Acme", "value": "Acme"}]
    teams = client.get("/api/users/teams/Acme").json()
    assert [t["value"] for t in teams] == ["Ops", "Sales"]


def test_company_user_table(client, admin, member):
    register(client, "outsider@other.test", company_name="Other")

    res = client.get("/api/users/", params={"sort_by": "first_name"}, headers=admin["headers"])
    body = res.json()
    assert body["total_rows"] == 2
    assert [u["first_name"] for u in body["rows"]] == ["Asha", "Ravi"]

    res = client.get("/api/users/", params={"search": "team_name:Ops"}, headers=admin["headers"])
    assert [u["email"] for u in res.json()["rows"]] == ["ravi@acme.test"]


def test_unknown_sort_column_is_bad_request(client, admin):
    res = client.get("/api/users/", params={"sort_by": "salary"}, headers=admin["headers"])
    assert res.status_code == 400


def test_user_select_options(client, admin, member):
    options = client.get("/api/users/select", headers=admin["headers"]).json()
    assert {o["label"] for o in options} == {"Asha Rao", "Ravi Kumar"}


def test_users_edit_themselves_only(client, admin, member):
    res = client.put(f"/api/users/{admin['id']}", json={"designation": "CEO"}, headers=member["headers"])
    assert res.status_code == 403

    res = client.put(f"/api/users/{member['id']}", json={"designation": "Engineer"}, headers=member["headers"])
    assert res.json()["designation"] == "Engineer"

    res = client.put(f"/api/users/{member['id']}", json={"team_name": "Field"}, headers=admin["headers"])
    assert res.json()["team_name"] == "Field"


def test_admin_deletes_users(client, admin, member):
    res = client.request("DELETE", "/api/users/", json={"user_ids": [member["id"]]}, headers=admin["headers"])
    assert res.json()["deleted_count"] == 1
    assert client.get(f"/api/users/{member['id']}", headers=admin["headers"]).status_code == 404


def test_email_change_to_taken_address_conflicts(client, admin, member):
    res = client.put(f"/api/users/{member['id']}", json={"email": "admin@acme.test"}, headers=member["headers"])
    assert res.status_code == 409

    # Keeping one's own address is not a conflict
    res = client.put(f"/api/users/{member['id']}", json={"email": "ravi@acme.test"}, headers=member["headers"])
    assert res.status_code == 200


def test_null_email_or_name_is_422(client, admin, member):
    for field in ("email", "first_name", "last_name"):
        res = client.put(f"/api/users/{member['id']}", json={field: None}, headers=member["headers"])
        assert res.status_code == 422, field

    me = client.get("/api/users/me", headers=member["headers"]).json()
    assert me["email"] == "ravi@acme.test"
    assert me["first_name"] == "Ravi"


def test_company_cannot_be_changed_through_update(client, admin, member, customer):
    from conftest import register

    register(client, "boss@other.test", company_name="Other")

    res = client.put(f"/api/users/{member['id']}", json={"company_name": "Other"}, headers=member["headers"])
    assert res.status_code == 200
    assert res.json()["company_name"] == "Acme"

    # Still sees its own company's data
    assert client.get("/api/customers/", headers=member["headers"]).json()["total_rows"] == 1


def test_user_lookup_is_scoped_to_company(client, admin, member):
    from conftest import auth, register

    outsider = register(client, "boss@other.test", company_name="Other")
    client.post("/api/users/approve", json={"user_ids": [outsider["id"]]}, headers=admin["headers"])
    headers = auth(outsider["api_token"])

    assert client.get(f"/api/users/{member['id']}", headers=headers).status_code == 404
    assert client.get(f"/api/users/{member['id']}", headers=admin["headers"]).json()["first_name"] == "Ravi"
