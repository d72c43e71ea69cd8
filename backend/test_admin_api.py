"""Admin auth and dashboard aggregation."""

from datetime import date
import jwt
from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, registration_payload
from config import SECRET_KEY
from models import Gender, Hotel, Person, Registration, RegistrationStatus, Room
from services.auth import hash_password, verify_password
from services.dashboard import age_range, build_dashboard


def test_password_hashing():
    hashed = hash_password("s3cret")
    assert hashed != hash_password("s3cret")
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)


def test_login_and_me(client, admin_headers):
    r = client.get("/api/admin/me", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["data"]["email"] == ADMIN_EMAIL
    assert client.post("/api/admin/logout", headers=admin_headers).json()["success"] is True


def test_login_rejects_bad_credentials(client):
    r = client.post("/api/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD + "x"})
    assert r.status_code == 401
    assert r.json()["success"] is False

    r = client.post("/api/admin/login", json={"email": ADMIN_EMAIL.upper(), "password": ADMIN_PASSWORD})
    assert r.status_code == 200


def test_non_admin_role_is_forbidden(client):
    token = jwt.encode({"sub": "x", "role": "pilgrim"}, SECRET_KEY, algorithm="HS256")
    r = client.get("/api/admin/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403


def test_expired_token(client):
    token = jwt.encode({"sub": "x", "role": "admin", "exp": 0}, SECRET_KEY, algorithm="HS256")
    r = client.get("/api/admin/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["message"] == "Token expired"


def test_age_ranges():
    assert [age_range(a) for a in (1, 18, 19, 35, 36, 50, 51)] == [
        "0-18", "0-18", "19-35", "19-35", "36-50", "36-50", "50+",
    ]


def make_registration(status, city, state, people, rooms=()):
    reg = Registration(
        status=status, boarding_city=city, boarding_state=state, number_of_persons=len(people),
        arrival_date=date(2026, 5, 1), return_date=date(2026, 5, 5),
    )
    reg.persons = [Person(name=f"P{i}", age=age, gender=Gender(g), is_handicapped=h)
                   for i, (age, g, h) in enumerate(people)]
    reg.rooms = list(rooms)
    return reg


def test_build_dashboard():
    room_a = Room(room_number="1", number_of_beds=2, charge_per_day=100)
    room_b = Room(room_number="2", number_of_beds=3, charge_per_day=100)
    room_a.registration_id = "r1"
    hotel = Hotel(name="Sewa Niwas", number_of_days=2)
    hotel.rooms = [room_a, room_b]

    registrations = [
        make_registration(RegistrationStatus.APPROVED, "Amritsar", "Punjab",
                          [(40, "male", False), (12, "female", True)], rooms=[room_a]),
        make_registration(RegistrationStatus.PENDING, "Amritsar", "Punjab", [(70, "female", False)]),
        make_registration(RegistrationStatus.PENDING, "Delhi", "Delhi", [(25, "other", False)]),
        make_registration(RegistrationStatus.CANCELLED, "Delhi", "Delhi", [(30, "male", True)]),
    ]
    data = build_dashboard(registrations, [hotel])

    assert data["stats"] == {
        "totalRegistrations": 3,
        "totalPeople": 4,
        "allottedRegistrations": 1,
        "pendingAllotment": 2,
        "cancelledRegistrations": 1,
        "availableRooms": 1,
        "availableBeds": 3,
    }
    analytics = data["registrationsAnalytics"]
    punjab = analytics["stateData"][0]
    assert punjab["state"] == "Punjab" and punjab["totalCount"] == 3
    amritsar = punjab["cities"][0]
    assert amritsar["gender"] == {"male": 1, "female": 2}
    assert amritsar["ageRanges"] == {"0-18": 1, "19-35": 0, "36-50": 1, "50+": 1}
    assert amritsar["handicappedCount"] == 1
    assert analytics["genderData"] == [
        {"name": "Male", "value": 1}, {"name": "Female", "value": 2}, {"name": "Other", "value": 1},
    ]
    assert analytics["handicapCount"] == 1
    assert data["hotelAnalytics"] == [
        {"name": "Sewa Niwas", "totalRooms": 2, "availableRooms": 1, "totalBeds": 5, "availableBeds": 3},
    ]


def test_dashboard_endpoint(client, admin_headers, yatra, hotel):
    client.post("/api/registrations", json=registration_payload(yatra["id"]))
    r = client.get("/api/admin/dashboard", params={"yatraId": yatra["id"]}, headers=admin_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["stats"]["totalRegistrations"] == 1
    assert data["stats"]["totalPeople"] == 2
    assert data["stats"]["availableRooms"] == 5
    assert data["registrationsAnalytics"]["ageData"] == [
        {"range": "0-18", "count": 0}, {"range": "19-35", "count": 1},
        {"range": "36-50", "count": 0}, {"range": "50+", "count": 1},
    ]
    assert data["hotelAnalytics"][0]["totalBeds"] == 13

    assert client.get("/api/admin/dashboard").status_code == 401
