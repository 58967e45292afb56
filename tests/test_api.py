from datetime import date, timedelta

import pytest

from rental_service.app.enum.rental_enum import DriverVerificationStatus

CRON = {"x-api-key": "cron-secret"}


@pytest.fixture
def verified_driver(client, admin_headers):
    resp = client.post("/api/drivers/", json={
        "full_name": "Thandi Mokoena",
        "email": "thandi@example.com",
        "phone": "+27 82 000 0000",
        "user_id": "5b0c2f0e-8a51-4c51-9a38-2f1f5d7f0a11",
    }, headers=admin_headers)
    assert resp.status_code == 200
    driver = resp.json()["data"]
    assert driver["verification_status"] == DriverVerificationStatus.PENDING_REVIEW.value

    resp = client.post(f"/api/drivers/{driver['id']}/verification",
                       json={"status": "VERIFIED"}, headers=admin_headers)
    assert resp.status_code == 200
    return resp.json()["data"]


@pytest.fixture
def vehicle(client, admin_headers):
    resp = client.post("/api/vehicles/", json={"reg": "ca 123 456", "make": "Suzuki", "model": "Swift"},
                       headers=admin_headers)
    assert resp.status_code == 200
    return resp.json()["data"]


@pytest.fixture
def driver_headers(headers_for, verified_driver):
    return headers_for("driver", user_id=verified_driver["user_id"], driver_id=verified_driver["id"])


@pytest.fixture
def active_contract(client, admin_headers, driver_headers, verified_driver, vehicle):
    resp = client.post("/api/contracts/", json={
        "driver_id": verified_driver["id"],
        "vehicle_id": vehicle["id"],
        "fee_amount_cents": 150000,
        "frequency": "WEEKLY",
        "due_weekday": 1,
        "start_date": "2025-01-02",
        "due_day_of_month": "",
    }, headers=admin_headers)
    assert resp.status_code == 200
    contract = resp.json()["data"]

    assert client.post(f"/api/contracts/{contract['id']}/send", headers=admin_headers).status_code == 200
    resp = client.post(f"/api/driver/contract/{contract['id']}/sign", json={
        "signature_url": "signatures/thandi.png",
        "accept_terms": True,
        "accept_payment_terms": True,
    }, headers=driver_headers)
    assert resp.status_code == 200

    resp = client.post(f"/api/contracts/{contract['id']}/activate", headers=admin_headers)
    assert resp.status_code == 200
    return resp.json()["data"]


def list_payments(client, headers, **params):
    resp = client.get("/api/payments/all", params=params, headers=headers)
    assert resp.status_code == 200
    return resp.json()["data"]["payments"]


def test_responses_are_wrapped(client, vehicle, admin_headers):
    resp = client.get(f"/api/vehicles/{vehicle['id']}", headers=admin_headers)

    body = resp.json()
    assert body["status"] == "Success"
    assert body["data"]["reg"] == "CA123456"
    assert body["data"]["status"] == "AVAILABLE"


def test_missing_token_is_401(client):
    resp = client.get("/api/contracts/all")

    assert resp.status_code == 401
    assert resp.json()["status"] == "Failed"


def test_driver_cannot_use_admin_routes(client, driver_headers):
    resp = client.get("/api/contracts/all", headers=driver_headers)

    assert resp.status_code == 403


def test_activation_flow_creates_first_payment(client, admin_headers, active_contract):
    assert active_contract["status"] == "ACTIVE"
    assert active_contract["vehicle_reg"] == "CA123456"

    payments = list_payments(client, admin_headers, contract_id=active_contract["id"])
    assert [(p["due_date"], p["status"]) for p in payments] == [("2025-01-06", "PENDING")]


def test_invalid_transition_is_409_with_states(client, admin_headers, active_contract):
    resp = client.post(f"/api/contracts/{active_contract['id']}/activate", headers=admin_headers)

    assert resp.status_code == 409
    assert resp.json()["message"] == "contract must be DRIVER_SIGNED, was ACTIVE"


def test_unknown_frequency_is_422(client, admin_headers, verified_driver, vehicle):
    resp = client.post("/api/contracts/", json={
        "driver_id": verified_driver["id"],
        "vehicle_id": vehicle["id"],
        "fee_amount_cents": 1000,
        "frequency": "YEARLY",
        "start_date": "2025-01-02",
    }, headers=admin_headers)

    assert resp.status_code == 422
    assert resp.json()["status"] == "Failed"


def test_mark_paid_and_webhook_retry_are_idempotent(client, admin_headers, active_contract):
    payment_id = list_payments(client, admin_headers)[0]["id"]

    first = client.post(f"/api/payments/{payment_id}/mark-paid",
                        json={"reference": "EFT-001"}, headers=admin_headers).json()["data"]
    retry = client.post("/api/payments/settlements",
                        json={"payment_id": payment_id, "reference": "EFT-001"}, headers=CRON).json()["data"]

    assert first["applied"] is True
    assert first["next_payment"]["due_date"] == "2025-01-13"
    assert retry["applied"] is False
    assert retry["next_payment"] is None

    payments = list_payments(client, admin_headers)
    assert sorted((p["due_date"], p["status"]) for p in payments) == [
        ("2025-01-06", "PAID"), ("2025-01-13", "PENDING"),
    ]


def test_settlement_webhook_requires_secret(client, active_contract, admin_headers):
    payment_id = list_payments(client, admin_headers)[0]["id"]

    resp = client.post("/api/payments/settlements", json={"payment_id": payment_id},
                       headers={"x-api-key": "wrong"})

    assert resp.status_code == 401


def test_settlement_webhook_rejects_near_miss_and_non_ascii_keys(client, active_contract, admin_headers):
    payment_id = list_payments(client, admin_headers)[0]["id"]

    for key in (b"cron-secreT", b"cr\xe9n-secret"):
        resp = client.post("/api/payments/settlements", json={"payment_id": payment_id},
                           headers={"x-api-key": key})
        assert resp.status_code == 401

    payments = list_payments(client, admin_headers)
    assert [p["status"] for p in payments] == ["PENDING"]


def test_payment_overview(client, admin_headers, active_contract):
    payment_id = list_payments(client, admin_headers)[0]["id"]
    client.post(f"/api/payments/{payment_id}/mark-paid", json={}, headers=admin_headers)

    overview = client.get("/api/payments/overview", headers=admin_headers).json()["data"]

    assert overview["paid_count"] == 1
    assert overview["paid_cents"] == 150000
    assert overview["pending_count"] == 1
    assert overview["currency"] == "ZAR"


def test_jobs_generate_and_overdue(client, admin_headers, active_contract):
    assert client.post("/api/jobs/payments/generate").status_code == 401

    generated = client.get("/api/jobs/payments/generate", headers=CRON).json()["data"]
    assert generated["look_ahead_cycles"] == 4
    assert generated["created"] >= 4
    again = client.post("/api/jobs/payments/generate", headers=CRON).json()["data"]
    assert again["created"] == 0

    swept = client.post("/api/jobs/payments/update-overdue", headers=admin_headers).json()["data"]
    # the contract started in January 2025, so everything due before today is late
    late = [p for p in list_payments(client, admin_headers, limit=500)
            if date.fromisoformat(p["due_date"]) < date.today()]
    assert swept["updated"] == len(late)
    assert all(p["status"] == "OVERDUE" for p in late)

    notifications = client.get("/api/notifications/all", params={"limit": 500},
                               headers=admin_headers).json()["data"]
    assert notifications["total"] == len(late)
    assert notifications["unread"] == len(late)

    marked = client.post("/api/notifications/mark-all-read", headers=admin_headers).json()["data"]
    assert marked["updated"] == len(late)


def test_driver_portal(client, driver_headers, active_contract):
    contract = client.get("/api/driver/contract", headers=driver_headers).json()["data"]
    assert contract["id"] == active_contract["id"]

    payments = client.get("/api/driver/payments", headers=driver_headers).json()["data"]
    assert payments["total"] == 1

    notifications = client.get("/api/notifications/all", headers=driver_headers).json()["data"]
    titles = {n["title"] for n in notifications["notifications"]}
    assert {"Contract ready to sign", "Contract active"} <= titles


def test_reject_releases_vehicle(client, admin_headers, verified_driver, vehicle):
    contract = client.post("/api/contracts/", json={
        "driver_id": verified_driver["id"],
        "vehicle_id": vehicle["id"],
        "fee_amount_cents": 5000,
        "frequency": "DAILY",
        "start_date": "2025-01-02",
    }, headers=admin_headers).json()["data"]
    client.post(f"/api/contracts/{contract['id']}/send", headers=admin_headers)

    resp = client.post(f"/api/contracts/{contract['id']}/reject",
                       json={"reason": "Vehicle failed inspection"}, headers=admin_headers)

    assert resp.json()["data"]["status"] == "CANCELLED"
    refreshed = client.get(f"/api/vehicles/{vehicle['id']}", headers=admin_headers).json()["data"]
    assert refreshed["status"] == "AVAILABLE"


def test_assigned_vehicle_status_is_managed_by_contracts(client, admin_headers, active_contract):
    resp = client.put(f"/api/vehicles/{active_contract['vehicle_id']}/status",
                      json={"status": "MAINTENANCE"}, headers=admin_headers)

    assert resp.status_code == 409


def test_payment_settings_round_trip(client, admin_headers):
    current = client.get("/api/settings/payments", headers=admin_headers).json()["data"]
    assert current["auto_generate_next"] is True
    assert current["backfill_cycles"] == 4

    updated = client.put("/api/settings/payments", json={
        "auto_generate_next": False,
        "grace_period_days": 3,
        "default_due_weekday": 5,
    }, headers=admin_headers).json()["data"]

    assert updated["auto_generate_next"] is False
    assert updated["grace_period_days"] == 3
    assert updated["default_due_weekday"] == 5


def test_contract_lookups(client, admin_headers):
    statuses = client.get("/api/contracts/status-lookup", headers=admin_headers).json()["data"]
    frequencies = client.get("/api/contracts/frequency-lookup", headers=admin_headers).json()["data"]

    assert {s["id"] for s in statuses} >= {"DRAFT", "ACTIVE", "CANCELLED"}
    assert [f["id"] for f in frequencies] == ["DAILY", "WEEKLY", "MONTHLY"]


def test_vehicle_maintenance_and_costs_routes(client, admin_headers, vehicle):
    base = f"/api/vehicles/{vehicle['id']}"

    job = client.post(f"{base}/maintenance", json={
        "title": "Clutch replacement", "scheduled_at": "2025-05-02", "odometer_km": "",
    }, headers=admin_headers).json()["data"]
    assert job["status"] == "PLANNED"
    assert job["odometer_km"] is None

    done = client.put(f"{base}/maintenance/{job['id']}", json={
        "status": "COMPLETED", "actual_cost_cents": 780000, "completed_at": "2025-05-03",
    }, headers=admin_headers).json()["data"]
    assert done["status"] == "COMPLETED"

    resp = client.put(f"{base}/maintenance/{job['id']}", json={"status": "CANCELLED"},
                      headers=admin_headers)
    assert resp.status_code == 409

    resp = client.post(f"{base}/costs", json={"type": "FUEL", "amount_cents": 0}, headers=admin_headers)
    assert resp.status_code == 422
    client.post(f"{base}/costs", json={"type": "FUEL", "amount_cents": 90000}, headers=admin_headers)

    costs = client.get(f"{base}/costs", headers=admin_headers).json()["data"]
    assert costs["total"] == 2
    assert costs["total_cents"] == 870000
    assert {c["type"] for c in costs["costs"]} == {"SERVICE", "FUEL"}


def test_driver_updates_own_profile(client, driver_headers):
    resp = client.put("/api/driver/profile", json={
        "phone": "+27 83 555 0101", "address_line1": "12 Long Street", "city": "Cape Town",
    }, headers=driver_headers)

    assert resp.status_code == 200
    profile = client.get("/api/driver/profile", headers=driver_headers).json()["data"]
    assert profile["full_name"] == "Thandi Mokoena"
    assert (profile["phone"], profile["city"]) == ("+27 83 555 0101", "Cape Town")
    assert profile["verification_status"] == "VERIFIED"


def test_admin_dashboard(client, admin_headers, driver_headers, active_contract):
    assert client.get("/api/dashboard/overview", headers=driver_headers).status_code == 403

    dashboard = client.get("/api/dashboard/overview", params={"range": "month"},
                           headers=admin_headers).json()["data"]

    assert dashboard["range"] == "month"
    assert dashboard["kpis"]["active_contracts"] == 1
    assert dashboard["fleet"]["assigned"] == 1
    assert dashboard["drivers"]["verified"] == 1

    resp = client.get("/api/dashboard/overview", params={"range": "year"}, headers=admin_headers)
    assert resp.status_code == 422
