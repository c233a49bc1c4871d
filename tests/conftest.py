# tests/conftest.py
import os
import tempfile

# Settings are read at import time, so the test database has to be chosen first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("GENERATED_DIR", tempfile.mkdtemp(prefix="cpq-pdf-"))

import pytest
from fastapi.testclient import TestClient

from cpq.database import Base, engine
from cpq.main import app


@pytest.fixture(autouse=True)
def fresh_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def client():
    return TestClient(app)


def auth(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, email, first_name="Asha", last_name="Rao", company_name="Acme", **extra):
    res = client.post("/api/users/", json={
        "email": email,
        "first_name": first_name,
        "last_name": last_name,
        "company_name": company_name,
        **extra,
    })
    assert res.status_code == 201, res.text
    return res.json()


@pytest.fixture
def admin(client):
    """First registered user: approved admin."""
    user = register(client, "admin@acme.test", team_name="Sales")
    user["headers"] = auth(user["api_token"])
    return user


@pytest.fixture
def member(client, admin):
    """Second user of the same company, approved by the admin."""
    user = register(client, "ravi@acme.test", first_name="Ravi", last_name="Kumar", team_name="Ops")
    res = client.post("/api/users/approve", json={"user_ids": [user["id"]]}, headers=admin["headers"])
    assert res.status_code == 200
    user["headers"] = auth(user["api_token"])
    return user


def customer_payload(**overrides):
    payload = {
        "name": "Globex",
        "ancillary_name": "Plant 2",
        "email": "buyer@globex.test",
        "phone": "9800000000",
        "industry": "Manufacturing",
        "sales_rep": "Asha Rao",
        "type_of_customer": "OEM",
        "gst_number": "27AAAAA0000A1Z5",
        "billing_street_address": "12 MG Road",
        "billing_pin": "411001",
        "billing_city": "Pune",
        "billing_district": "Pune",
        "billing_state": "Maharashtra",
        "billing_country": "India",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def customer(client, admin):
    res = client.post("/api/customers/", json=customer_payload(), headers=admin["headers"])
    assert res.status_code == 201, res.text
    return res.json()
