import os
import tempfile
from datetime import date, timedelta

TEST_DB = os.path.join(tempfile.gettempdir(), f"yatra_test_{os.getpid()}.db")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB}"
os.environ["ADMIN_EMAIL"] = "admin@test.local"
os.environ["ADMIN_PASSWORD"] = "secret-pass"
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from fastapi.testclient import TestClient

from main import app

ADMIN_EMAIL = os.environ["ADMIN_EMAIL"]
ADMIN_PASSWORD = os.environ["ADMIN_PASSWORD"]


def days(n):
    return (date.today() + timedelta(days=n)).isoformat()


@pytest.fixture
def client():
    if os.path.exists(TEST_DB):
        os.remove(TEST_DB)
    with TestClient(app) as c:
        yield c
    if os.path.exists(TEST_DB):
        os.remove(TEST_DB)


@pytest.fixture
def admin_headers(client):
    r = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert r.status_code == 200, r.text
    return {"Authorization": f"Bearer {r.json()['token']}"}


def yatra_payload(**overrides):
    """Yatra whose registration window is open today."""
    payload = {
        "name": "Hemkund Sahib Yatra",
        "description": "Annual pilgrimage",
        "start_date": days(10),
        "end_date": days(20),
        "registration_start_date": days(0),
        "registration_end_date": days(5),
        "is_active": True,
    }
    payload.update(overrides)
    return payload


def floor(label, numbers, beds=2, charge=500):
    return {
        "floorNumber": label,
        "numberOfRooms": len(numbers),
        "roomNumbers": list(numbers),
        "rooms": [
            {"roomNumber": n, "toiletType": "western", "numberOfBeds": beds, "chargePerDay": charge}
            for n in numbers
        ],
    }


def hotel_payload(yatra_id, **overrides):
    payload = {
        "yatra": yatra_id,
        "name": "Guru Kripa Niwas",
        "address": "Station Road, Rishikesh",
        "hotelType": "B",
        "managerName": "Harpreet Singh",
        "managerContact": "9876543210",
        "numberOfDays": 5,
        "startDate": days(10),
        "endDate": days(14),
        "totalFloors": 2,
        "floors": [floor("G", ["G1", "G2"]), floor("1", ["101", "102", "103"], beds=3, charge=800)],
    }
    payload.update(overrides)
    return payload


def registration_payload(yatra_id, **overrides):
    payload = {
        "pnr": "1234567890",
        "name": "Gurpreet Kaur",
        "whatsappNumber": "9876543210",
        "numberOfPersons": 2,
        "persons": [
            {"name": "Gurpreet Kaur", "age": 34, "gender": "female", "isHandicapped": False},
            {"name": "Manjit Singh", "age": 62, "gender": "male", "isHandicapped": True},
        ],
        "boardingPoint": {"city": "Amritsar", "state": "Punjab"},
        "arrivalDate": days(10),
        "returnDate": days(15),
        "ticketImages": ["https://img.example/t1.jpg", "https://img.example/t2.jpg"],
        "yatraId": yatra_id,
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def yatra(client, admin_headers):
    r = client.post("/api/yatra/create-yatra", json=yatra_payload(), headers=admin_headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]


@pytest.fixture
def hotel(client, admin_headers, yatra):
    r = client.post("/api/hotels", json=hotel_payload(yatra["id"]), headers=admin_headers)
    assert r.status_code == 201, r.text
    return r.json()["data"]
