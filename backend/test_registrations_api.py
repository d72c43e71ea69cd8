"""Registration rules, PNR tracking, lifecycle and room allotment."""

from datetime import date, timedelta
import pytest
from sqlalchemy import update
import database
from conftest import days, registration_payload, yatra_payload
from models import RegistrationStatus, Room
from schemas import RegistrationCreate
from services import registrations
from services.registrations import add_months, can_transition, validate_registration

TODAY = date(2026, 1, 31)


def payload_for(**overrides):
    data = registration_payload("yatra-1", arrivalDate=(TODAY + timedelta(days=3)).isoformat(),
                                returnDate=(TODAY + timedelta(days=8)).isoformat())
    data.update(overrides)
    return RegistrationCreate.model_validate(data)


def error_fields(payload):
    return [e["field"] for e in validate_registration(payload, TODAY)]


def test_add_months_clamps_to_month_end():
    assert add_months(date(2026, 1, 31), 1) == date(2026, 2, 28)
    assert add_months(date(2026, 8, 31), 6) == date(2027, 2, 28)
    assert add_months(date(2028, 2, 29), 12) == date(2029, 2, 28)


def test_valid_registration_passes():
    assert error_fields(payload_for()) == []


@pytest.mark.parametrize("overrides,field", [
    ({"pnr": "12345"}, "pnr"),
    ({"pnr": "12345abcde"}, "pnr"),
    ({"name": "J"}, "name"),
    ({"name": "John 3rd"}, "name"),
    ({"whatsappNumber": "5876543210"}, "whatsappNumber"),
    ({"numberOfPersons": 3}, "persons"),
    ({"boardingPoint": {"city": "A", "state": "Punjab"}}, "boardingPoint.city"),
    ({"boardingPoint": {"city": "Amritsar", "state": " "}}, "boardingPoint.state"),
    ({"ticketImages": ["https://img.example/only-one.jpg"]}, "ticketImages"),
    ({"ticketImages": [f"https://img.example/{i}.jpg" for i in range(11)]}, "ticketImages"),
])
def test_field_rules(overrides, field):
    assert field in error_fields(payload_for(**overrides))


def test_person_rules():
    persons = [
        {"name": "Gurpreet Kaur", "age": 0, "gender": "female"},
        {"name": "X", "age": 121, "gender": "male"},
    ]
    fields = error_fields(payload_for(persons=persons))
    assert fields == ["persons.0.age", "persons.1.name", "persons.1.age"]


def test_date_rules():
    assert "arrivalDate" in error_fields(payload_for(arrivalDate="2026-01-30", returnDate="2026-02-02"))
    assert "arrivalDate" in error_fields(payload_for(arrivalDate="2027-02-01", returnDate="2027-02-02"))
    assert error_fields(payload_for(arrivalDate="2027-01-31", returnDate="2027-02-02")) == []
    assert "returnDate" in error_fields(payload_for(returnDate="2026-02-02"))
    assert "returnDate" in error_fields(payload_for(returnDate="2026-08-04"))
    assert error_fields(payload_for(returnDate="2026-08-03")) == []


def test_lifecycle_transitions():
    s = RegistrationStatus
    assert can_transition(s.PENDING, s.APPROVED)
    assert can_transition(s.REJECTED, s.APPROVED)
    assert can_transition(s.APPROVED, s.CANCELLED)
    assert not can_transition(s.REJECTED, s.CANCELLED)
    assert not any(can_transition(s.CANCELLED, target) for target in s)


# ---------- HTTP ----------
def register(client, yatra, **overrides):
    r = client.post("/api/registrations", json=registration_payload(yatra["id"], **overrides))
    assert r.status_code == 201, r.text
    return r.json()["data"]


def test_create_and_track_by_pnr(client, yatra):
    reg = register(client, yatra)
    assert reg["status"] == "pending"
    assert reg["room_status"] == "Pending"
    assert [p["name"] for p in reg["persons"]] == ["Gurpreet Kaur", "Manjit Singh"]

    r = client.get("/api/registrations/by-pnr/1234567890")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["registration"]["id"] == reg["id"]
    assert data["yatra"]["id"] == yatra["id"]
    assert data["hotel"] is None and data["room"] is None

    assert client.get("/api/registrations/by-pnr/123").status_code == 400
    assert client.get("/api/registrations/by-pnr/0000000000").status_code == 404


def test_duplicate_pnr_until_cancelled(client, yatra):
    reg = register(client, yatra)
    r = client.post("/api/registrations", json=registration_payload(yatra["id"]))
    assert r.status_code == 409

    r = client.post(f"/api/registrations/{reg['id']}/cancel", json={"reason": "Plans changed"})
    assert r.status_code == 200
    assert r.json()["data"]["status"] == "cancelled"
    assert r.json()["data"]["cancellation_reason"] == "Plans changed"

    again = register(client, yatra)
    latest = client.get("/api/registrations/by-pnr/1234567890").json()["data"]["registration"]
    assert latest["id"] == again["id"]


def test_cancel_rules(client, yatra):
    reg = register(client, yatra)
    r = client.post(f"/api/registrations/{reg['id']}/cancel", json={"reason": "x" * 101})
    assert r.status_code == 400

    assert client.post(f"/api/registrations/{reg['id']}/cancel").status_code == 200
    r = client.post(f"/api/registrations/{reg['id']}/cancel")
    assert r.status_code == 409


def test_registration_window_closed(client, admin_headers):
    payload = yatra_payload(registration_start_date=days(3))
    closed = client.post("/api/yatra/create-yatra", json=payload, headers=admin_headers).json()["data"]
    r = client.post("/api/registrations", json=registration_payload(closed["id"]))
    assert r.status_code == 400
    assert r.json()["errors"] == [{"field": "yatraId", "message": "Registration is closed for this yatra"}]


def test_review_lifecycle(client, admin_headers, yatra):
    reg = register(client, yatra)
    base = f"/api/registrations/{reg['id']}"

    r = client.post(f"{base}/reject", json={"reason": " "}, headers=admin_headers)
    assert r.status_code == 400

    r = client.post(f"{base}/reject", json={"reason": "Ticket unreadable"}, headers=admin_headers)
    assert r.json()["data"]["status"] == "rejected"
    assert client.post(f"{base}/cancel").status_code == 409

    r = client.post(f"{base}/approve", json={"comments": "Re-uploaded"}, headers=admin_headers)
    data = r.json()["data"]
    assert data["status"] == "approved"
    assert data["admin_comments"] == "Re-uploaded"
    assert data["rejection_reason"] is None
    assert [log["action"] for log in data["logs"]] == ["created", "rejected", "approved"]
    assert data["logs"][-1]["actor"] == "admin@test.local"


def test_room_allotment(client, admin_headers, yatra, hotel):
    reg = register(client, yatra)
    rooms = {r["roomNumber"]: r["id"] for r in hotel["rooms"]}
    base = f"/api/registrations/{reg['id']}"

    r = client.post(f"{base}/assign-rooms", json={"roomIds": [rooms["G1"], rooms["101"]]},
                    headers=admin_headers)
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["room_status"] == "Assigned"
    assert sorted(room["room_number"] for room in data["rooms"]) == ["101", "G1"]

    # reassignment releases rooms that were dropped
    r = client.post(f"{base}/assign-rooms", json={"roomIds": [rooms["101"]]}, headers=admin_headers)
    assert [room["room_number"] for room in r.json()["data"]["rooms"]] == ["101"]

    other = register(client, yatra, pnr="9999999999")
    r = client.post(f"/api/registrations/{other['id']}/assign-rooms", json={"roomIds": [rooms["101"]]},
                    headers=admin_headers)
    assert r.status_code == 409
    r = client.post(f"/api/registrations/{other['id']}/assign-rooms", json={"roomIds": [rooms["G1"]]},
                    headers=admin_headers)
    assert r.status_code == 200

    tracked = client.get("/api/registrations/by-pnr/1234567890").json()["data"]
    assert tracked["room"]["roomNumber"] == "101"
    assert tracked["hotel"]["name"] == "Guru Kripa Niwas"

    r = client.post(f"{base}/cancel", json={"reason": "Unwell"})
    assert r.json()["data"]["rooms"] == []
    stats = client.get(f"/api/hotels/{hotel['id']}", headers=admin_headers).json()["data"]["stats"]
    assert stats["occupiedRooms"] == 1

    r = client.post(f"{base}/assign-rooms", json={"roomIds": [rooms["102"]]}, headers=admin_headers)
    assert r.status_code == 409


def test_unassign_and_foreign_rooms(client, admin_headers, yatra, hotel):
    reg = register(client, yatra)
    base = f"/api/registrations/{reg['id']}"
    room_id = hotel["rooms"][0]["id"]

    r = client.post(f"{base}/assign-rooms", json={"roomIds": ["no-such-room"]}, headers=admin_headers)
    assert r.status_code == 400
    assert client.post(f"{base}/assign-rooms", json={"roomIds": []}, headers=admin_headers).status_code == 400

    client.post(f"{base}/assign-rooms", json={"roomIds": [room_id]}, headers=admin_headers)
    r = client.delete(f"{base}/assign-rooms", headers=admin_headers)
    data = r.json()["data"]
    assert data["rooms"] == []
    assert data["logs"][-1]["action"] == "rooms_unassigned"


def test_list_filters_and_pagination(client, admin_headers, yatra, hotel):
    first = register(client, yatra)
    register(client, yatra, pnr="2222222222", name="Baldev Singh",
             boardingPoint={"city": "Ludhiana", "state": "Punjab"})
    third = register(client, yatra, pnr="3333333333", name="Ramesh Kumar", whatsappNumber="7000000001",
                     boardingPoint={"city": "Delhi", "state": "Delhi"})
    client.post(f"/api/registrations/{first['id']}/assign-rooms",
                json={"roomIds": [hotel["rooms"][0]["id"]]}, headers=admin_headers)
    client.post(f"/api/registrations/{third['id']}/cancel")

    def fetch(**params):
        r = client.get("/api/registrations", params=params, headers=admin_headers)
        assert r.status_code == 200, r.text
        return r.json()

    body = fetch(limit=2, page=1)
    assert body["pagination"] == {"total": 3, "page": 1, "limit": 2, "totalPages": 2}
    assert len(body["data"]) == 2
    assert len(fetch(limit=2, page=2)["data"]) == 1

    assert [r["pnr"] for r in fetch(state="punjab")["data"]] == ["2222222222", "1234567890"]
    assert [r["pnr"] for r in fetch(search="ramesh")["data"]] == ["3333333333"]
    assert [r["pnr"] for r in fetch(search="7000000001")["data"]] == ["3333333333"]
    assert [r["pnr"] for r in fetch(status="cancelled")["data"]] == ["3333333333"]
    assert [r["pnr"] for r in fetch(roomStatus="Assigned")["data"]] == ["1234567890"]
    assert fetch(roomStatus="Pending")["pagination"]["total"] == 2
    assert fetch(yatraId=yatra["id"], arrivalDate=days(10))["pagination"]["total"] == 3
    assert fetch(pnr="2222222222")["data"][0]["name"] == "Baldev Singh"

    r = client.get("/api/registrations", params={"status": "lost"}, headers=admin_headers)
    assert r.status_code == 400

    detail = client.get(f"/api/registrations/{first['id']}", headers=admin_headers).json()["data"]
    assert detail["logs"][0]["action"] == "created"


def test_room_taken_during_allotment_is_a_conflict(client, admin_headers, yatra, hotel, monkeypatch):
    reg = register(client, yatra)
    rival = register(client, yatra, pnr="5555555555")
    g1 = {r["roomNumber"]: r["id"] for r in hotel["rooms"]}["G1"]
    free_rooms = registrations._free_rooms

    async def rival_claims_room_first(db, registration_id, keep=None):
        async with database.async_session() as other:
            await other.execute(update(Room).where(Room.id == g1).values(registration_id=rival["id"]))
            await other.commit()
        return await free_rooms(db, registration_id, keep=keep)

    monkeypatch.setattr(registrations, "_free_rooms", rival_claims_room_first)
    r = client.post(f"/api/registrations/{reg['id']}/assign-rooms", json={"roomIds": [g1]},
                    headers=admin_headers)
    assert r.status_code == 409
    monkeypatch.undo()

    rooms = client.get(f"/api/hotels/{hotel['id']}", headers=admin_headers).json()["data"]["rooms"]
    assert {r["roomNumber"]: r["assignedTo"] for r in rooms}["G1"] == rival["id"]
    detail = client.get(f"/api/registrations/{reg['id']}", headers=admin_headers).json()["data"]
    assert detail["rooms"] == []
    assert [log["action"] for log in detail["logs"]] == ["created"]


def test_duplicate_pnr_is_enforced_by_the_database(client, yatra, monkeypatch):
    async def pnr_looks_free(db, pnr):
        return False

    reg = register(client, yatra)
    monkeypatch.setattr(registrations, "_pnr_in_use", pnr_looks_free)
    r = client.post("/api/registrations", json=registration_payload(yatra["id"]))
    assert r.status_code == 409
    assert r.json()["message"] == "A registration with this PNR already exists"

    client.post(f"/api/registrations/{reg['id']}/cancel")
    assert client.post("/api/registrations", json=registration_payload(yatra["id"])).status_code == 201


def test_search_treats_wildcards_literally(client, admin_headers, yatra):
    register(client, yatra)
    register(client, yatra, pnr="2222222222", name="Baldev Singh")

    def total(term):
        r = client.get("/api/registrations", params={"search": term}, headers=admin_headers)
        return r.json()["pagination"]["total"]

    assert total("%") == 0
    assert total("_") == 0
    assert total("\\") == 0
    assert total("singh") == 1
