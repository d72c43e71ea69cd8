"""Admin dashboard aggregates: headline stats, demographics, hotel occupancy."""

import logging
from typing import Dict, Iterable, List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from models import Hotel, Registration, RegistrationStatus
from services.hotels import hotel_stats

logger = logging.getLogger(__name__)

AGE_RANGES = ("0-18", "19-35", "36-50", "50+")


def age_range(age: int) -> str:
    if age <= 18:
        return "0-18"
    if age <= 35:
        return "19-35"
    if age <= 50:
        return "36-50"
    return "50+"


def _empty_city(city: str) -> Dict:
    return {
        "city": city,
        "totalCount": 0,
        "gender": {"male": 0, "female": 0},
        "ageRanges": {r: 0 for r in AGE_RANGES},
        "handicappedCount": 0,
    }


def build_dashboard(registrations: Iterable[Registration], hotels: Iterable[Hotel]) -> Dict:
    """Aggregate loaded registrations (with persons and rooms) and hotels (with rooms)."""
    registrations = list(registrations)
    hotels = list(hotels)
    active = [r for r in registrations if r.status != RegistrationStatus.CANCELLED]
    allotted = [r for r in active if r.rooms]

    hotel_rows = []
    available_rooms = available_beds = 0
    for hotel in hotels:
        stats = hotel_stats(hotel.rooms, hotel.number_of_days)
        available_rooms += stats["availableRooms"]
        available_beds += stats["availableBeds"]
        hotel_rows.append({
            "name": hotel.name,
            "totalRooms": stats["totalRooms"],
            "availableRooms": stats["availableRooms"],
            "totalBeds": stats["totalBeds"],
            "availableBeds": stats["availableBeds"],
        })

    states: Dict[str, Dict] = {}
    genders = {"Male": 0, "Female": 0, "Other": 0}
    ages = {r: 0 for r in AGE_RANGES}
    handicapped = 0
    for registration in active:
        state = states.setdefault(registration.boarding_state, {
            "state": registration.boarding_state, "totalCount": 0, "cities": {},
        })
        city = state["cities"].setdefault(registration.boarding_city, _empty_city(registration.boarding_city))
        for person in registration.persons:
            gender = person.gender.value
            bucket = age_range(person.age)
            state["totalCount"] += 1
            city["totalCount"] += 1
            if gender in city["gender"]:
                city["gender"][gender] += 1
            city["ageRanges"][bucket] += 1
            genders[gender.capitalize()] += 1
            ages[bucket] += 1
            if person.is_handicapped:
                city["handicappedCount"] += 1
                handicapped += 1

    state_data = []
    for state in sorted(states.values(), key=lambda s: -s["totalCount"]):
        cities = sorted(state["cities"].values(), key=lambda c: -c["totalCount"])
        state_data.append({**state, "cities": cities})

    return {
        "stats": {
            "totalRegistrations": len(active),
            "totalPeople": sum(r.number_of_persons for r in active),
            "allottedRegistrations": len(allotted),
            "pendingAllotment": len(active) - len(allotted),
            "cancelledRegistrations": len(registrations) - len(active),
            "availableRooms": available_rooms,
            "availableBeds": available_beds,
        },
        "registrationsAnalytics": {
            "stateData": state_data,
            "genderData": [{"name": k, "value": v} for k, v in genders.items()],
            "ageData": [{"range": k, "count": v} for k, v in ages.items()],
            "handicapCount": handicapped,
        },
        "hotelAnalytics": hotel_rows,
    }


async def load_dashboard(db: AsyncSession, yatra_id: Optional[str] = None) -> Dict:
    reg_query = select(Registration).options(
        selectinload(Registration.persons), selectinload(Registration.rooms),
    )
    hotel_query = select(Hotel).options(selectinload(Hotel.rooms)).order_by(Hotel.name)
    if yatra_id:
        reg_query = reg_query.where(Registration.yatra_id == yatra_id)
        hotel_query = hotel_query.where(Hotel.yatra_id == yatra_id)

    registrations: List[Registration] = list((await db.execute(reg_query)).scalars().all())
    hotels: List[Hotel] = list((await db.execute(hotel_query)).scalars().all())
    logger.info(f"Dashboard for yatra={yatra_id or 'all'}: "
                f"{len(registrations)} registrations, {len(hotels)} hotels")
    return build_dashboard(registrations, hotels)
