import asyncio

import pytest

from conftest import auth_headers
from rahaseva_api.app.store.seed import DEFAULT_COORDINATES

LONGITUDE, LATITUDE = DEFAULT_COORDINATES
# About 20 km north of the demo volunteer: outside the auto-match radius.
TWENTY_KM_NORTH = [LONGITUDE, LATITUDE + 0.185]

VOLUNTEER = {
    "name": "Weekend Helper",
    "skills": ["carpenter", "painting"],
    "contact": {"phone": "9000000001"},
    "location": {"address": "12 Lake Road", "city": "Hyderabad", "coordinates": [78.47, 17.40]},
    "bio": "Handy with tools",
    "experience": 2,
}


def _help_request(help_type="plumber", coordinates=None, **extra):
    payload = {
        "help_type": help_type,
        "description": "Water pipe burst in the kitchen",
        "location": {"address": "123 Main St, City", "coordinates": coordinates or DEFAULT_COORDINATES},
        "schedule": {"requested_date": "2025-10-05T00:00:00+00:00", "requested_time": "09:30"},
        "urgency": "high",
    }
    payload.update(extra)
    return payload


def _stored(mock_store, collection, doc_id):
    return asyncio.run(mock_store.find_by_id(collection, doc_id))


def test_register_volunteer_promotes_user(client, user_headers, mock_store):
    resp = client.post("/api/community/volunteers/register", json=VOLUNTEER, headers=user_headers)
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["volunteer_id"].startswith("CV")
    assert data["verification"]["is_verified"] is False
    assert _stored(mock_store, "users", "user1")["role"] == "helper"

    profile = client.get("/api/community/volunteers/profile", headers=user_headers).json()["data"]
    assert profile["contact"]["email"] == "test@example.com"
    assert [s["service"] for s in profile["services_offered"]] == ["carpenter", "painting"]
    assert profile["formatted_experience"] == "2 years"

    again = client.post("/api/community/volunteers/register", json=VOLUNTEER, headers=user_headers)
    assert again.status_code == 400
    assert again.json()["msg"] == "You are already registered as a volunteer"


def test_register_volunteer_requires_fields(client, user_headers):
    resp = client.post("/api/community/volunteers/register", json={"name": "X"}, headers=user_headers)
    assert resp.status_code == 400
    assert resp.json()["msg"] == "Missing required fields"


def test_volunteer_profile_lookup_and_update(client, user_headers, provider_headers):
    missing = client.get("/api/community/volunteers/profile", headers=user_headers)
    assert missing.status_code == 404
    assert missing.json()["msg"] == "Volunteer profile not found"

    resp = client.put(
        "/api/community/volunteers/profile",
        json={"bio": "Twenty years of fixing things", "location": {"service_radius": 30}},
        headers=provider_headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["bio"] == "Twenty years of fixing things"
    assert data["location"]["service_radius"] == 30
    assert data["location"]["address"] == "789 Community Center, City"

    invalid = client.put(
        "/api/community/volunteers/profile", json={"location": {"service_radius": 500}}, headers=provider_headers
    )
    assert invalid.status_code == 400


def test_help_request_is_matched_to_nearest_volunteer(client, user_headers, mock_store):
    resp = client.post("/api/community/help-requests", json=_help_request(), headers=user_headers)
    assert resp.status_code == 201
    created = resp.json()["data"]
    assert created["status"] == "pending"
    assert created["request_id"].startswith("CH")

    detail = client.get(f"/api/community/help-requests/{created['request_id']}", headers=user_headers)
    assert detail.status_code == 200
    data = detail.json()["data"]
    assert data["status"] == "accepted"
    assert data["volunteer"] == "volunteer1"
    assert data["urgency_display"] == "High Priority"
    assert [entry["status"] for entry in data["tracking"]] == ["pending", "searching", "accepted"]
    assert _stored(mock_store, "community_volunteers", "volunteer1")["stats"]["total_help_requests"] == 13


def test_help_request_without_candidates_keeps_searching(client, user_headers):
    created = client.post(
        "/api/community/help-requests", json=_help_request("doctor"), headers=user_headers
    ).json()["data"]
    data = client.get(f"/api/community/help-requests/{created['id']}", headers=user_headers).json()["data"]
    assert data["status"] == "searching"
    assert data["volunteer"] is None


def test_requester_is_never_matched_to_own_volunteer_profile(client, provider_headers):
    created = client.post(
        "/api/community/help-requests", json=_help_request(), headers=provider_headers
    ).json()["data"]
    data = client.get(f"/api/community/help-requests/{created['id']}", headers=provider_headers).json()["data"]
    assert data["status"] == "searching"


def test_help_request_validation(client, user_headers):
    resp = client.post("/api/community/help-requests", json={"help_type": "plumber"}, headers=user_headers)
    assert resp.status_code == 400
    assert resp.json()["msg"] == "Missing required fields"


def test_full_help_lifecycle(client, user_headers, provider_headers, mock_store):
    created = client.post("/api/community/help-requests", json=_help_request(), headers=user_headers).json()["data"]
    path = f"/api/community/help-requests/{created['id']}"

    started = client.put(f"{path}/status", json={"status": "in-progress"}, headers=provider_headers)
    assert started.status_code == 200
    assert started.json()["data"]["status_display"] == "Help in Progress"

    not_yet = client.post(f"{path}/feedback", json={"rating": 5}, headers=user_headers)
    assert not_yet.status_code == 400

    done = client.put(f"{path}/status", json={"status": "completed", "notes": "All fixed"}, headers=user_headers)
    assert done.status_code == 200
    assert done.json()["data"]["tracking"][-1] == {
        "status": "completed",
        "timestamp": done.json()["data"]["tracking"][-1]["timestamp"],
        "notes": "All fixed",
        "updated_by": "user",
    }
    stats = _stored(mock_store, "community_volunteers", "volunteer1")["stats"]
    assert stats["completed_requests"] == 11
    assert stats["people_helped"] == 16

    reopened = client.put(f"{path}/status", json={"status": "in-progress"}, headers=user_headers)
    assert reopened.status_code == 400

    feedback = client.post(f"{path}/feedback", json={"rating": 5, "review": "Quick"}, headers=user_headers)
    assert feedback.status_code == 200
    assert feedback.json()["data"]["feedback"]["user_rating"] == 5
    volunteer = _stored(mock_store, "community_volunteers", "volunteer1")
    assert volunteer["stats"]["total_reviews"] == 9
    assert volunteer["stats"]["rating"] == pytest.approx((4.7 * 8 + 5) / 9)

    changed = client.post(f"{path}/feedback", json={"rating": 2}, headers=user_headers)
    assert changed.status_code == 200
    volunteer = _stored(mock_store, "community_volunteers", "volunteer1")
    assert volunteer["stats"]["total_reviews"] == 9
    assert volunteer["stats"]["rating"] == pytest.approx((4.7 * 8 + 2) / 9)

    volunteer_side = client.post(
        f"{path}/feedback", json={"rating": 4, "hours_spent": 2.5}, headers=provider_headers
    )
    assert volunteer_side.status_code == 200
    assert _stored(mock_store, "community_help_requests", created["id"])["help_details"]["hours_spent"] == 2.5


def test_status_changes_require_involvement(client, user_headers, provider_headers):
    created = client.post("/api/community/help-requests", json=_help_request(), headers=user_headers).json()["data"]
    path = f"/api/community/help-requests/{created['id']}"

    outsider = auth_headers("admin1", "user")
    assert client.get(path, headers=outsider).status_code == 403
    assert client.put(f"{path}/status", json={"status": "cancelled"}, headers=outsider).status_code == 403

    # Only admins may cancel once work has started.
    client.put(f"{path}/status", json={"status": "in-progress"}, headers=provider_headers)
    forbidden = client.put(f"{path}/status", json={"status": "cancelled"}, headers=user_headers)
    assert forbidden.status_code == 403

    no_status = client.put(f"{path}/status", json={}, headers=user_headers)
    assert no_status.json()["msg"] == "Status is required"


def test_volunteer_sees_nearby_requests_and_accepts(client, user_headers, provider_headers):
    created = client.post(
        "/api/community/help-requests",
        json=_help_request("electrician", coordinates=TWENTY_KM_NORTH),
        headers=user_headers,
    ).json()["data"]

    before = client.get("/api/community/volunteers/requests", headers=provider_headers).json()["data"]
    assert before["nearby_requests"]["count"] == 0

    client.put("/api/community/volunteers/profile", json={"location": {"service_radius": 30}}, headers=provider_headers)
    after = client.get("/api/community/volunteers/requests", headers=provider_headers).json()["data"]
    nearby = after["nearby_requests"]["requests"]
    assert [r["id"] for r in nearby] == [created["id"]]
    assert 19 < nearby[0]["distance_km"] < 22

    accepted = client.post(
        f"/api/community/help-requests/{created['id']}/accept",
        json={"notes": "On my way"},
        headers=provider_headers,
    )
    assert accepted.status_code == 200
    assert accepted.json()["data"]["status"] == "accepted"

    assigned = client.get("/api/community/volunteers/requests", headers=provider_headers).json()["data"]
    assert created["id"] in [r["id"] for r in assigned["assigned_requests"]["requests"]]

    twice = client.post(f"/api/community/help-requests/{created['id']}/accept", headers=provider_headers)
    assert twice.status_code == 400
    assert twice.json()["msg"] == "Cannot accept request in accepted status"


def test_accept_requires_volunteer_profile_and_skill(client, user_headers, provider_headers):
    created = client.post(
        "/api/community/help-requests", json=_help_request("tutor"), headers=user_headers
    ).json()["data"]
    path = f"/api/community/help-requests/{created['id']}/accept"

    no_profile = client.post(path, headers=user_headers)
    assert no_profile.status_code == 404

    wrong_skill = client.post(path, headers=provider_headers)
    assert wrong_skill.status_code == 400
    assert wrong_skill.json()["msg"] == "You do not have the required skill for this help request"


def test_user_help_request_list(client, user_headers):
    client.post("/api/community/help-requests", json=_help_request("doctor"), headers=user_headers)
    body = client.get("/api/community/help-requests", headers=user_headers).json()
    assert body["count"] == 2
    assert body["data"][0]["help_type"] == "doctor"


def test_admin_views_and_verification(client, user_headers, admin_headers):
    volunteer = client.post("/api/community/volunteers/register", json=VOLUNTEER, headers=user_headers).json()["data"]

    unverified = client.get("/api/community/admin/volunteers", params={"verified": False}, headers=admin_headers).json()
    assert [v["id"] for v in unverified["data"]] == [volunteer["id"]]

    resp = client.put(
        f"/api/community/admin/volunteers/{volunteer['volunteer_id']}/verify",
        json={"is_verified": True, "id_proof_type": "pan"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    verification = resp.json()["data"]["verification"]
    assert verification["is_verified"] is True
    assert verification["verified_by"] == "admin1"
    assert verification["id_proof_type"] == "pan"

    verified = client.get("/api/community/admin/volunteers", params={"verified": True}, headers=admin_headers).json()
    assert verified["count"] == 2

    completed = client.get("/api/community/admin/help-requests", params={"status": "completed"}, headers=admin_headers)
    assert [r["id"] for r in completed.json()["data"]] == ["helpreq1"]

    missing = client.put("/api/community/admin/volunteers/nope/verify", json={}, headers=admin_headers)
    assert missing.status_code == 404
