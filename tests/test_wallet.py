import asyncio


def _stored(mock_store, collection, doc_id):
    return asyncio.run(mock_store.find_by_id(collection, doc_id))


def test_wallet_overview(client, user_headers):
    resp = client.get("/api/wallet", headers=user_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["wallet"]["balance"] == {"money": 1000, "points": 150}
    assert data["wallet"]["formatted_balance"] == {"money": "₹1000.00", "points": 150}
    assert data["wallet"]["referral_code"] == "RHTEST0001"
    assert [t["description"] for t in data["transactions"]] == ["Referral bonus", "Welcome bonus"]


def test_wallet_created_on_first_access(client, admin_headers, mock_store):
    data = client.get("/api/wallet", headers=admin_headers).json()["data"]
    assert data["wallet"]["balance"] == {"money": 0, "points": 0}
    assert data["wallet"]["referral_code"].startswith("RH")
    assert data["wallet"]["reward_level"] == "bronze"
    assert len(asyncio.run(mock_store.find("wallets", {"user": "admin1"}))) == 1


def test_add_money(client, user_headers):
    resp = client.post("/api/wallet/add", json={"amount": 250, "payment_method": "upi"}, headers=user_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Successfully added ₹250.00 to wallet"
    assert body["data"]["current_balance"]["money"] == "₹1250.00"
    assert body["data"]["transaction"]["type"] == "credit"

    invalid = client.post("/api/wallet/add", json={"amount": 0}, headers=user_headers)
    assert invalid.status_code == 400
    assert invalid.json()["msg"] == "Valid amount greater than 0 is required"


def test_redeem_points(client, user_headers):
    too_few = client.post("/api/wallet/redeem", json={"points": 50}, headers=user_headers)
    assert too_few.json()["msg"] == "Minimum 100 points required for redemption"

    too_many = client.post("/api/wallet/redeem", json={"points": 1000}, headers=user_headers)
    assert too_many.json()["msg"] == "Insufficient points balance"

    resp = client.post("/api/wallet/redeem", json={"points": 100}, headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["current_balance"] == {"money": "₹1025.00", "points": 50}


def test_referral_bonus_for_both_sides(client, user_headers, mock_store):
    resp = client.post("/api/wallet/referral", json={"referral_code": "RHPROV0001"}, headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["current_balance"]["points"] == 250
    assert _stored(mock_store, "wallets", "wallet2")["balance"]["points"] == 400
    assert _stored(mock_store, "wallets", "wallet1")["referred_by"] == "provider1"

    again = client.post("/api/wallet/referral", json={"referral_code": "RHPROV0001"}, headers=user_headers)
    assert again.status_code == 400
    assert again.json()["msg"] == "You have already used a referral code"


def test_referral_errors(client, user_headers):
    own = client.post("/api/wallet/referral", json={"referral_code": "RHTEST0001"}, headers=user_headers)
    assert own.json()["msg"] == "Cannot use your own referral code"

    unknown = client.post("/api/wallet/referral", json={"referral_code": "RHNOPE0000"}, headers=user_headers)
    assert unknown.status_code == 404
    assert unknown.json()["msg"] == "Invalid referral code"


def test_transactions_are_paginated(client, user_headers):
    body = client.get("/api/wallet/transactions", params={"limit": 1}, headers=user_headers).json()
    assert body["count"] == 2
    assert body["total_pages"] == 2
    assert [t["description"] for t in body["data"]] == ["Referral bonus"]


def test_rewards_summary(client, user_headers):
    data = client.get("/api/wallet/rewards", headers=user_headers).json()["data"]
    assert data["current_points"] == 150
    assert data["current_level"] == "bronze"
    assert data["benefits"]["next_level"] == "silver"
    assert data["benefits"]["points_to_next_level"] == 350


def test_wallet_routes_need_an_existing_wallet(client, admin_headers):
    for path in ("/api/wallet/transactions", "/api/wallet/rewards"):
        resp = client.get(path, headers=admin_headers)
        assert resp.status_code == 404
        assert resp.json()["msg"] == "Wallet not found"


def test_pay_for_booking_marks_it_paid(client, user_headers, mock_store):
    resp = client.post(
        "/api/wallet/pay", json={"booking_id": "RS17572896000000002", "amount": 800}, headers=user_headers
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["current_balance"]["money"] == "₹200.00"
    payment = _stored(mock_store, "bookings", "booking2")["payment"]
    assert payment["method"] == "wallet"
    assert payment["status"] == "paid"


def test_pay_rules(client, user_headers, provider_headers):
    poor = client.post("/api/wallet/pay", json={"booking_id": "booking2", "amount": 5000}, headers=user_headers)
    assert poor.status_code == 400
    assert poor.json()["msg"] == "Insufficient wallet balance"

    not_mine = client.post("/api/wallet/pay", json={"booking_id": "booking2", "amount": 10}, headers=provider_headers)
    assert not_mine.status_code == 403

    missing = client.post("/api/wallet/pay", json={"amount": 10}, headers=user_headers)
    assert missing.json()["msg"] == "Booking ID and amount are required"

    unknown_booking = client.post("/api/wallet/pay", json={"booking_id": "RS-external", "amount": 10}, headers=user_headers)
    assert unknown_booking.status_code == 200
    assert unknown_booking.json()["data"]["transaction"]["booking_id"] == "RS-external"


def test_pay_rejects_settled_or_closed_bookings(client, user_headers, mock_store):
    already_paid = client.post("/api/wallet/pay", json={"booking_id": "booking1", "amount": 600}, headers=user_headers)
    assert already_paid.status_code == 400
    assert already_paid.json()["msg"] == "Booking has already been paid"

    first = client.post("/api/wallet/pay", json={"booking_id": "booking2", "amount": 300}, headers=user_headers)
    assert first.status_code == 200
    again = client.post("/api/wallet/pay", json={"booking_id": "booking2", "amount": 300}, headers=user_headers)
    assert again.status_code == 400
    assert again.json()["msg"] == "Booking has already been paid"

    wallet = _stored(mock_store, "wallets", "wallet1")
    assert wallet["balance"]["money"] == 700


def test_pay_rejects_cancelled_booking(client, user_headers, mock_store):
    client.put("/api/bookings/booking2/status", json={"status": "cancelled"}, headers=user_headers)
    resp = client.post("/api/wallet/pay", json={"booking_id": "booking2", "amount": 100}, headers=user_headers)
    assert resp.status_code == 400
    assert resp.json()["msg"] == "Cannot pay for a cancelled booking"
    assert _stored(mock_store, "wallets", "wallet1")["balance"]["money"] == 1000
