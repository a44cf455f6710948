def _initialize(client, auth_headers, type_="idcard", amount=5000, **extra):
    body = {"type": type_, "amount": amount, **extra}
    return client.post("/api/initialize-payment", json=body, headers=auth_headers)


def test_payment_config_is_public(client):
    response = client.get("/api/payment-config")

    assert response.status_code == 200
    assert set(response.json()) == {"apiKey", "contractCode", "baseUrl"}


def test_initialize_payment_creates_pending_record(client, auth_headers):
    response = _initialize(client, auth_headers, metadata={"capacityIncrease": 50})

    assert response.status_code == 200
    body = response.json()
    assert body["tx_ref"].startswith("NARAP_idcard_")
    payment = body["payment"]
    assert payment["status"] == "pending"
    assert payment["paymentMethod"] == "card"
    assert payment["metadata"] == {"capacityIncrease": 50}
    assert payment["paymentDescription"] == "ID Card Payment - Increase Member Capacity by 50"


def test_initialize_payment_validates_type_and_amount(client, auth_headers):
    assert _initialize(client, auth_headers, type_="gift").status_code == 400
    assert _initialize(client, auth_headers, amount=0).status_code == 400


def test_verify_payment_completes_record(client, auth_headers):
    tx_ref = _initialize(client, auth_headers, type_="certificate", metadata={"capacityIncrease": 10}).json()["tx_ref"]

    response = client.post(
        "/api/verify-payment",
        json={"tx_ref": tx_ref, "transactionReference": "MNFY-1", "amountPaid": 5000},
        headers=auth_headers,
    )

    assert response.status_code == 200
    body = response.json()
    assert body["paymentType"] == "certificate"
    assert body["metadata"] == {"capacityIncrease": 10}
    assert body["payment"]["status"] == "completed"
    assert body["payment"]["transactionReference"] == "MNFY-1"
    assert body["payment"]["paymentDate"] is not None


def test_verify_payment_failure_is_recorded(client, auth_headers):
    tx_ref = _initialize(client, auth_headers).json()["tx_ref"]

    response = client.post(
        "/api/verify-payment",
        json={"txRef": tx_ref, "status": "cancelled"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    history = client.get("/api/payment-history", headers=auth_headers).json()
    assert history["payments"][0]["status"] == "failed"


def test_verify_unknown_payment(client, auth_headers):
    response = client.post("/api/verify-payment", json={"txRef": "NARAP_x_1"}, headers=auth_headers)

    assert response.status_code == 404
    assert response.json()["message"] == "Payment record not found"


def test_increase_limits_adds_to_current_ceiling(client, auth_headers):
    first = client.post(
        "/api/increase-limits",
        json={"memberLimit": 5, "certificateLimit": 3},
        headers=auth_headers,
    ).json()["limits"]
    assert first["memberLimit"] == 5
    assert first["certificateLimit"] == 3

    second = client.post(
        "/api/increase-limits",
        json={"memberLimit": 2, "transactionReference": "MNFY-2"},
        headers=auth_headers,
    ).json()
    assert second["limits"]["memberLimit"] == 7
    assert second["limits"]["certificateLimit"] == 3
    assert second["transactionReference"] == "MNFY-2"

    negative = client.post("/api/increase-limits", json={"memberLimit": -1}, headers=auth_headers)
    assert negative.status_code == 400


def test_limits_status(client, auth_headers, add_member, raise_limits):
    raise_limits(members=5, certificates=0)
    add_member(code="X1")

    status = client.get("/api/limits-status", headers=auth_headers).json()["status"]

    assert status["members"] == {"current": 1, "limit": 5, "remaining": 4, "canAdd": True}
    assert status["certificates"] == {"current": 0, "limit": 0, "remaining": 0, "canAdd": False}


def test_database_hosting_lifecycle(client, auth_headers):
    before = client.get("/api/database-status", headers=auth_headers).json()["status"]
    assert before["active"] is False

    rejected = client.post(
        "/api/database-hosting",
        json={"plan": "monthly", "paymentStatus": "pending"},
        headers=auth_headers,
    )
    assert rejected.status_code == 400

    response = client.post(
        "/api/database-hosting",
        json={"plan": "monthly", "paymentStatus": "successful", "transactionReference": "MNFY-3"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["duration"] == "1 month"

    after = client.get("/api/database-status", headers=auth_headers).json()["status"]
    assert after["active"] is True
    assert after["plan"] == "monthly"
    assert after["expiryDate"] == response.json()["expiryDate"]
    assert 28 <= after["daysRemaining"] <= 31


def test_database_hosting_yearly_plan(client, auth_headers):
    response = client.post(
        "/api/database-hosting",
        json={"plan": "yearly", "paymentStatus": "successful"},
        headers=auth_headers,
    )

    assert response.json()["duration"] == "12 months"
    status = client.get("/api/database-status", headers=auth_headers).json()["status"]
    assert 365 <= status["daysRemaining"] <= 366

    assert client.post(
        "/api/database-hosting",
        json={"plan": "weekly", "paymentStatus": "successful"},
        headers=auth_headers,
    ).status_code == 400


def test_payment_history_pagination_and_filter(client, auth_headers):
    for _ in range(3):
        _initialize(client, auth_headers)
    _initialize(client, auth_headers, type_="certificate")

    page = client.get("/api/payment-history", params={"page": 1, "limit": 3}, headers=auth_headers).json()
    assert len(page["payments"]) == 3
    assert page["total"] == 4
    assert page["totalPages"] == 2
    assert page["currentPage"] == 1

    filtered = client.get("/api/payment-history", params={"type": "certificate"}, headers=auth_headers).json()
    assert [p["type"] for p in filtered["payments"]] == ["certificate"]
