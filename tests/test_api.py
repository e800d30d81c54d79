import uuid

from sqlalchemy.exc import OperationalError

from app.core.notifications import add_listener, remove_listener
from app.modules.bookings import repository as bookings_repo
from conftest import bearer, make_token


async def seed_clinics(db, make_provider):
    owner = uuid.uuid4()
    harley = await make_provider(owner_user_id=owner, rating=4.9, base_price=780, procedures=["botox"])
    chelsea = await make_provider(
        name="Chelsea Skin Studio",
        display_name="Chelsea Skin Studio",
        rating=4.7,
        base_price=750,
        procedures=["botox", "hydrafacial"],
    )
    ids = owner, harley.id, chelsea.id
    await db.commit()
    return ids


async def test_health(client):
    res = await client.get("/api/health")
    assert res.status_code == 200
    assert res.json() == {"status": "ok"}

    res = await client.get("/api/health/db")
    assert res.status_code == 200
    assert res.json()["database"] == "sqlite"


async def test_provider_calendar_requires_a_provider_account(client, db, make_provider):
    owner, _, _ = await seed_clinics(db, make_provider)
    body = {"start_time": "2025-05-21T09:00:00+01:00", "end_time": "2025-05-21T10:00:00+01:00"}

    assert (await client.post("/api/provider/slots", json=body)).status_code == 401

    res = await client.post("/api/provider/slots", json=body, headers=bearer(owner, role="user"))
    assert res.status_code == 403
    assert res.json()["detail"] == "forbidden_role"

    res = await client.post("/api/provider/slots", json=body, headers=bearer(uuid.uuid4(), role="provider"))
    assert res.status_code == 403
    assert res.json()["detail"] == "no_provider_for_account"


async def test_slot_editing_over_http(client, db, make_provider):
    owner, harley_id, _ = await seed_clinics(db, make_provider)
    auth = bearer(owner, role="provider")

    res = await client.post(
        "/api/provider/slots",
        json={"start_time": "2025-05-21T09:00:00+01:00", "end_time": "2025-05-21T11:00:00+01:00"},
        headers=auth,
    )
    assert res.status_code == 201
    entry = res.json()
    assert entry["title"] == "Available"
    assert entry["style"] == "positive"
    assert entry["slot"]["provider_id"] == str(harley_id)
    slot_id = entry["slot"]["id"]

    res = await client.post(
        "/api/provider/slots",
        json={"start_time": "2025-05-21T10:00:00+01:00", "end_time": "2025-05-21T12:00:00+01:00"},
        headers=auth,
    )
    assert res.status_code == 409
    assert res.json()["detail"] == "slot_overlap"

    res = await client.post(
        "/api/provider/slots",
        json={"start_time": "2025-05-21T10:00:00", "end_time": "2025-05-21T12:00:00"},
        headers=auth,
    )
    assert res.status_code == 422

    res = await client.get(
        "/api/provider/slots",
        params={"start": "2025-05-21T00:00:00+01:00", "end": "2025-05-22T00:00:00+01:00"},
        headers=auth,
    )
    assert res.status_code == 200
    assert [e["slot"]["id"] for e in res.json()] == [slot_id]

    res = await client.get(f"/api/providers/{harley_id}/next-available")
    assert res.status_code == 200
    assert res.json()["date"] == "2025-05-21"

    assert (await client.delete(f"/api/provider/slots/{slot_id}", headers=auth)).status_code == 204
    res = await client.get(f"/api/providers/{harley_id}/next-available")
    assert res.json() is None


async def test_provider_listing_with_badges(client, db, make_provider):
    _, harley_id, chelsea_id = await seed_clinics(db, make_provider)

    res = await client.get("/api/providers", params={"procedure": "botox", "sort": "price-low"})
    assert res.status_code == 200
    listing = res.json()
    assert listing["badges"]["best_value"] == str(chelsea_id)
    assert listing["badges"]["concierge_pick"] == str(harley_id)
    assert listing["badges"]["soonest_available"] is None
    assert [c["provider"]["id"] for c in listing["providers"]] == [str(chelsea_id), str(harley_id)]
    assert listing["providers"][0]["provider"]["next_available_label"] == "Contact for availability"
    assert listing["pricing"] == {
        "market_price": 1200,
        "offered_price": 750,
        "price_label": "£750",
        "savings": 450,
        "range_min": 400,
        "range_max": 800,
    }

    res = await client.get("/api/providers", params={"procedure": "hydrafacial"})
    assert [c["provider"]["id"] for c in res.json()["providers"]] == [str(chelsea_id)]

    res = await client.get("/api/providers", params={"procedure": "teeth-whitening"})
    assert res.json()["providers"] == []
    assert res.json()["pricing"]["price_label"] == "Contact for pricing"
    assert res.json()["pricing"]["savings"] == 0
    assert res.json()["pricing"]["range_min"] is None

    assert (await client.get("/api/providers", params={"procedure": "botox", "sort": "cheapest"})).status_code == 422


async def test_availability_endpoint(client, db, make_provider):
    owner, harley_id, chelsea_id = await seed_clinics(db, make_provider)
    await client.post(
        "/api/provider/slots",
        json={"start_time": "2025-05-21T13:00:00+01:00", "end_time": "2025-05-21T15:00:00+01:00"},
        headers=bearer(owner, role="provider"),
    )

    res = await client.get(f"/api/providers/{harley_id}/availability")
    assert res.status_code == 200
    body = res.json()
    assert body["is_indicative"] is False
    assert body["days"][0]["date"] == "2025-05-21"
    assert [t["label"] for t in body["days"][0]["times"]] == ["1:00 PM", "2:00 PM"]
    assert body["quick_picks"][0]["label"] == "Earliest"

    res = await client.get(f"/api/providers/{chelsea_id}/availability")
    assert res.json()["is_indicative"] is True
    assert res.json()["notice"] == "Showing indicative times"

    assert (await client.get(f"/api/providers/{uuid.uuid4()}/availability")).status_code == 404


async def test_booking_over_http(client, db, make_provider):
    owner, harley_id, _ = await seed_clinics(db, make_provider)
    res = await client.post(
        "/api/provider/slots",
        json={"start_time": "2025-05-21T09:00:00+01:00", "end_time": "2025-05-21T10:00:00+01:00"},
        headers=bearer(owner, role="provider"),
    )
    slot_id = res.json()["slot"]["id"]
    customer = uuid.uuid4()
    body = {
        "provider_id": str(harley_id),
        "procedure_slug": "botox",
        "procedure_name": "Botox",
        "preferred_date": "2025-05-21",
        "preferred_time": "9:00 AM",
        "slot_id": slot_id,
        "investment_level": "premier",
    }

    toasts = []
    add_listener(toasts.append)
    try:
        res = await client.post("/api/bookings", json=body, headers=bearer(customer))
    finally:
        remove_listener(toasts.append)
    assert res.status_code == 201
    assert [t.title for t in toasts] == ["Reservation Secured"]
    assert toasts[0].description == "Botox on Wednesday, May 21"
    result = res.json()
    assert result["state"] == "succeeded"
    assert result["booking"]["user_id"] == str(customer)
    assert result["booking"]["preferred_time_label"] == "9:00 AM"
    assert result["booking"]["investment_tier_label"] == "Premier"
    assert result["booking"]["investment_range"] == "$1,500 – $4,000"
    assert len(result["tasks"]) == 2

    res = await client.post("/api/bookings", json=body, headers=bearer(uuid.uuid4()))
    assert res.status_code == 409
    assert res.json()["detail"] == "slot_already_taken"

    res = await client.post("/api/bookings", json=body, headers=bearer(owner, role="provider"))
    assert res.status_code == 403

    res = await client.get("/api/bookings/my", headers=bearer(customer))
    assert res.status_code == 200
    page = res.json()
    assert page["total"] == 1
    assert page["items"][0]["id"] == result["booking"]["id"]


async def test_booking_survives_task_write_failure_over_http(client, db, make_provider, monkeypatch):
    _, harley_id, _ = await seed_clinics(db, make_provider)
    real_insert = bookings_repo.insert_task
    calls = {"n": 0}

    async def flaky_insert(session, **kwargs):
        calls["n"] += 1
        if calls["n"] == 2:
            raise OperationalError("INSERT INTO tasks", {}, Exception("disk I/O error"))
        return await real_insert(session, **kwargs)

    monkeypatch.setattr(bookings_repo, "insert_task", flaky_insert)
    customer = uuid.uuid4()
    body = {
        "provider_id": str(harley_id),
        "procedure_slug": "botox",
        "procedure_name": "Botox",
        "preferred_date": "2025-06-01",
        "preferred_time": "9:00 AM",
    }

    res = await client.post("/api/bookings", json=body, headers=bearer(customer))
    assert res.status_code == 201
    result = res.json()
    assert result["state"] == "succeeded"
    assert result["tasks_created"] is False
    assert result["tasks"] == []
    assert result["booking"]["procedure_name"] == "Botox"

    res = await client.get("/api/bookings/my", headers=bearer(customer))
    assert [b["id"] for b in res.json()["items"]] == [result["booking"]["id"]]


async def test_only_access_tokens_are_accepted(client):
    user_id = uuid.uuid4()
    refresh = make_token(user_id, token_type="refresh")
    res = await client.get("/api/bookings/my", headers={"Authorization": f"Bearer {refresh}"})
    assert res.status_code == 401
    assert res.json()["detail"] == "invalid_token_type"

    access = make_token(user_id)
    res = await client.get("/api/bookings/my", headers={"Authorization": f"Bearer {access}"})
    assert res.status_code == 200
