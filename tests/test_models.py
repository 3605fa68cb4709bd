import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from rahaseva_api.app.models import Booking, CommunityHelpRequest, CommunityVolunteer, User, Wallet
from rahaseva_api.app.models.base import format_public_id
from rahaseva_api.app.models.community import distance_km
from rahaseva_api.app.models.wallet import generate_referral_code, reward_level_for
from rahaseva_api.app.store import MockDataStore, SQLiteDocumentStore


def run(coro):
    return asyncio.run(coro)


def _booking(**overrides) -> Booking:
    data = {
        "user": "user1",
        "provider": "provider1",
        "service_details": {"service_type": "plumber", "problem_description": "Leak"},
        "location": {"address": "Somewhere"},
        "schedule": {"requested_date": "2025-09-01T00:00:00+00:00", "requested_time": "10:00"},
        "pricing": {"base_amount": 500, "total_amount": 500},
    }
    data.update(overrides)
    return Booking.model_validate(data)


def test_format_public_id():
    assert format_public_id("RS", 7, millis=1700000000000) == "RS17000000000000007"


@pytest.mark.parametrize("backend", ["mock", "sqlite"])
def test_public_ids_are_monotonic_and_never_reassigned(backend, tmp_path):
    if backend == "mock":
        store = MockDataStore(seed=False)
    else:
        store = SQLiteDocumentStore(str(tmp_path / "ids.db"))
        store.open()

    bookings = [_booking() for _ in range(5)]
    for booking in bookings:
        run(booking.save(store))
    ids = [booking.booking_id for booking in bookings]

    assert all(public_id.startswith("RS") and len(public_id) == 19 for public_id in ids)
    assert ids == sorted(ids)
    assert len(set(ids)) == 5
    assert [int(public_id[-4:]) for public_id in ids] == [1, 2, 3, 4, 5]

    first = bookings[0]
    first.status = "confirmed"
    run(first.save(store))
    stored = run(Booking.get(store, first.id))
    assert stored.booking_id == ids[0]
    assert stored.status == "confirmed"


def test_save_of_deleted_document_raises_lookup_error():
    store = MockDataStore(seed=False)
    booking = _booking()
    run(booking.save(store))
    run(store.delete("bookings", booking.id))
    with pytest.raises(LookupError):
        run(booking.save(store))


def test_virtual_fields_are_served_but_not_stored():
    store = MockDataStore(seed=False)
    booking = _booking(status="in-progress")
    run(booking.save(store))

    dumped = booking.model_dump(mode="json")
    assert dumped["status_display"] == "In Progress"
    assert dumped["formatted_date"] == booking.created_at.date().isoformat()

    raw = run(store.find_by_id("bookings", booking.id))
    assert "status_display" not in raw
    assert "formatted_date" not in raw


def test_booking_actor_resolution():
    booking = _booking()
    assert booking.actor_for({"id": "admin9", "role": "admin"}) == "admin"
    assert booking.actor_for({"id": "user1", "role": "user"}) == "user"
    assert booking.actor_for({"id": "provider1", "role": "helper"}) == "provider"
    assert booking.actor_for({"id": "someone", "role": "user"}) is None


def test_user_profile_hides_password_and_helper_fields():
    customer = User(name="A", email=" A@Example.COM ", password="hash", service="plumber")
    assert customer.email == "a@example.com"
    profile = customer.profile()
    assert "password" not in profile
    assert "service" not in profile

    helper = User(name="B", email="b@example.com", password="hash", role="helper", service="plumber")
    assert helper.profile()["service"] == "plumber"
    assert "password" not in helper.profile()


def test_user_rating_average():
    helper = User(name="B", email="b@example.com", role="helper", rating=4.0, rating_count=1)
    helper.add_rating(5)
    assert helper.rating == 4.5
    assert helper.rating_count == 2

    helper.add_rating(3, replaces=5)
    assert helper.rating == 3.5
    assert helper.rating_count == 2


def test_wallet_balances_and_points():
    wallet = Wallet(user="user1")
    wallet.add_transaction("credit", 300, "Top up")
    wallet.pay_for_booking(100, "RS1")
    assert wallet.balance.money == 200
    assert wallet.total_spent.money == 100

    assert wallet.add_booking_points(1000, "RS1") == 100
    credited = wallet.redeem_points(100)
    assert credited == 25
    assert wallet.balance.points == 0
    assert wallet.balance.money == 225

    with pytest.raises(ValueError):
        wallet.redeem_points(1)
    with pytest.raises(ValueError):
        wallet.pay_for_booking(10_000, "RS2")


def test_wallet_before_save_assigns_code_and_level():
    store = MockDataStore(seed=False)
    wallet = Wallet(user="user-abcd")
    wallet.add_transaction("point_earned", 600, "Points", is_money=False)
    run(wallet.save(store))
    assert wallet.referral_code.startswith("RH")
    assert wallet.referral_code.endswith("ABCD")
    assert wallet.reward_level == "silver"

    code = wallet.referral_code
    run(wallet.save(store))
    assert wallet.referral_code == code


@pytest.mark.parametrize(
    "points, level",
    [(0, "bronze"), (499, "bronze"), (500, "silver"), (2000, "gold"), (5000, "platinum")],
)
def test_reward_levels(points, level):
    assert reward_level_for(points) == level


def test_referral_code_shape():
    code = generate_referral_code("provider1")
    assert len(code) == 10
    assert code.startswith("RH") and code.endswith("DER1")


def test_recent_transactions_newest_first():
    wallet = Wallet(user="user1")
    old = wallet.add_transaction("credit", 1, "old")
    new = wallet.add_transaction("credit", 2, "new")
    old.created_at = datetime.now(timezone.utc) - timedelta(days=1)
    assert [t.description for t in wallet.recent_transactions(limit=1)] == [new.description]


def test_distance_between_nearby_points():
    assert distance_km([78.486671, 17.385044], [78.486671, 17.385044]) == 0
    # Roughly one degree of latitude.
    assert 110 < distance_km([78.0, 17.0], [78.0, 18.0]) < 112


def test_volunteer_virtuals():
    store = MockDataStore()
    volunteer = run(CommunityVolunteer.get(store, "volunteer1"))
    assert volunteer.completion_rate == 83
    assert volunteer.rating_display == "4.7 (8 reviews)"
    assert volunteer.formatted_experience == "5 years"

    volunteer.experience = 1
    assert volunteer.formatted_experience == "1 year"


def test_help_request_tracking_and_virtuals():
    store = MockDataStore()
    help_request = run(CommunityHelpRequest.get(store, "helpreq1"))
    assert help_request.status_display == "Help Completed"
    assert help_request.urgency_display == "Normal Priority"
    assert help_request.formatted_date == "2025-08-25"

    entry = help_request.track("cancelled", "admin", "Closed")
    assert help_request.tracking[-1] is entry
