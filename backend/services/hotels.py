"""Hotel accommodation: CRUD, floor/room reconciliation and occupancy stats."""

import logging
from datetime import date
from typing import Dict, Iterable, List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from pydantic.alias_generators import to_camel
from errors import ConflictError, NotFoundError, ValidationFailed
from models import Floor, Hotel, HotelType, Room, ToiletType, Yatra, generate_uuid
from schemas import FloorConfig, HotelCreate, RoomConfig
from services.floor_config import (
    flatten_rooms,
    normalize_label,
    resize_floors,
    validate_configuration,
)
from services.yatras import get_yatra

logger = logging.getLogger(__name__)

# Request field -> column, where the names differ
_COLUMN_FOR = {"yatra": "yatra_id"}

# Fields an update may set to null
NULLABLE_FIELDS = {"map_link", "distance_from_bhavan", "start_date", "end_date"}


def _hotel_query():
    return (
        select(Hotel)
        .options(selectinload(Hotel.floors), selectinload(Hotel.rooms))
        .execution_options(populate_existing=True)
    )


async def get_hotel(db: AsyncSession, hotel_id: str) -> Hotel:
    result = await db.execute(_hotel_query().where(Hotel.id == hotel_id))
    hotel = result.scalars().first()
    if hotel is None:
        raise NotFoundError("Hotel not found")
    return hotel


async def list_hotels(db: AsyncSession, yatra_id: Optional[str] = None) -> List[Hotel]:
    query = _hotel_query().order_by(Hotel.created_at)
    if yatra_id:
        query = query.where(Hotel.yatra_id == yatra_id)
    result = await db.execute(query)
    return list(result.scalars().all())


def validate_stay_window(number_of_days: int, start: Optional[date], end: Optional[date],
                         yatra: Yatra) -> List[Dict[str, str]]:
    """A hotel booking must fit inside its yatra's dates."""
    errors = []
    max_days = yatra.duration_days
    if number_of_days > max_days:
        errors.append({"field": "numberOfDays",
                       "message": f"Duration cannot exceed {max_days} days (Yatra duration)"})
    for field, value in (("startDate", start), ("endDate", end)):
        if value and not yatra.start_date <= value <= yatra.end_date:
            errors.append({"field": field, "message": "Date must fall within the yatra dates"})
    if start and end and end < start:
        errors.append({"field": "endDate", "message": "End date must be on or after start date"})
    return errors


def floor_configs(hotel: Hotel) -> List[FloorConfig]:
    """Rebuild the wizard-shaped configuration from stored floors and rooms."""
    by_floor: Dict[str, List[Room]] = {}
    for room in hotel.rooms:
        by_floor.setdefault(room.floor_id, []).append(room)

    configs = []
    for floor in hotel.floors:
        rooms = sorted(by_floor.get(floor.id, []), key=lambda r: r.position)
        configs.append(FloorConfig(
            floor_number=floor.floor_number,
            number_of_rooms=len(rooms),
            room_numbers=[r.room_number for r in rooms],
            rooms=[
                RoomConfig(
                    room_number=r.room_number,
                    toilet_type=r.toilet_type.value,
                    number_of_beds=r.number_of_beds,
                    charge_per_day=r.charge_per_day,
                )
                for r in rooms
            ],
        ))
    return configs


def _apply_configuration(hotel: Hotel, total_floors: int, floors: List[FloorConfig]):
    """Replace the hotel's floors and rooms with ``floors``.

    Floors are matched by label and rooms by (floor label, room number), so
    rooms that survive an edit keep their id and occupant.
    """
    existing_floors = {normalize_label(f.floor_number): f for f in hotel.floors}
    existing_rooms = {
        (normalize_label(r.floor_number), normalize_label(r.room_number)): r for r in hotel.rooms
    }

    new_floors = []
    for position, config in enumerate(floors):
        floor = existing_floors.pop(normalize_label(config.floor_number), None)
        if floor is None:
            floor = Floor(id=generate_uuid())
        floor.floor_number = config.floor_number.strip()
        floor.position = position
        new_floors.append(floor)

    new_rooms = []
    for entry in flatten_rooms(floors):
        key = (normalize_label(entry["floor_number"]), normalize_label(entry["room_number"]))
        room = existing_rooms.pop(key, None) or Room(id=generate_uuid())
        room.floor_id = new_floors[entry["floor_position"]].id
        room.floor_number = entry["floor_number"]
        room.floor_position = entry["floor_position"]
        room.position = entry["position"]
        room.room_number = entry["room_number"]
        room.toilet_type = ToiletType(entry["toilet_type"])
        room.number_of_beds = entry["number_of_beds"]
        room.charge_per_day = entry["charge_per_day"]
        new_rooms.append(room)

    occupied = [r for r in existing_rooms.values() if r.is_occupied]
    if occupied:
        numbers = ", ".join(sorted(r.room_number for r in occupied))
        raise ConflictError(f"Cannot remove occupied room(s): {numbers}")

    hotel.floors = new_floors
    hotel.rooms = new_rooms
    hotel.total_floors = total_floors


def _column_values(fields: Dict) -> Dict:
    values = {}
    for field, value in fields.items():
        if field in ("floors", "total_floors"):
            continue
        if field == "hotel_type" and value is not None:
            value = HotelType(value)
        values[_COLUMN_FOR.get(field, field)] = value
    return values


async def create_hotel(db: AsyncSession, payload: HotelCreate) -> Hotel:
    yatra = await get_yatra(db, payload.yatra)

    errors = validate_configuration(payload.total_floors, payload.floors)
    errors += validate_stay_window(payload.number_of_days, payload.start_date, payload.end_date, yatra)
    if errors:
        raise ValidationFailed(errors)

    hotel = Hotel(id=generate_uuid(), **_column_values(payload.model_dump()))
    hotel.floors = []
    hotel.rooms = []
    _apply_configuration(hotel, payload.total_floors, payload.floors)
    db.add(hotel)
    await db.commit()
    logger.info(f"Created hotel {hotel.id} ({hotel.name}) with {len(hotel.rooms)} rooms "
                f"on {hotel.total_floors} floors")
    return await get_hotel(db, hotel.id)


async def update_hotel(db: AsyncSession, hotel_id: str, changes: Dict) -> Hotel:
    """Apply a partial update; ``changes`` holds only the fields the client sent."""
    cleared = [f for f, v in changes.items() if v is None and f not in NULLABLE_FIELDS]
    if cleared:
        raise ValidationFailed([{"field": to_camel(f), "message": "Cannot be empty"} for f in cleared])

    hotel = await get_hotel(db, hotel_id)
    floors = changes.get("floors")
    if floors is not None:
        floors = [FloorConfig.model_validate(f) for f in floors]

    yatra = await get_yatra(db, changes.get("yatra") or hotel.yatra_id)
    errors = validate_stay_window(
        changes.get("number_of_days") or hotel.number_of_days,
        changes.get("start_date", hotel.start_date),
        changes.get("end_date", hotel.end_date),
        yatra,
    )

    reconfigure = floors is not None or "total_floors" in changes
    if reconfigure:
        total_floors = changes["total_floors"] if "total_floors" in changes else len(floors)
        if floors is None:
            # Only the floor count changed; new floors need their room numbers
            if total_floors > hotel.total_floors:
                raise ValidationFailed([{"field": "floors", "message": "Send floors when adding floors"}])
            floors = resize_floors(floor_configs(hotel), total_floors)
        errors += validate_configuration(total_floors, floors)
    if errors:
        raise ValidationFailed(errors)

    if "yatra" in changes and changes["yatra"] != hotel.yatra_id and any(r.is_occupied for r in hotel.rooms):
        raise ConflictError("Cannot move a hotel with occupied rooms to another yatra")

    for column, value in _column_values(changes).items():
        setattr(hotel, column, value)
    if reconfigure:
        _apply_configuration(hotel, total_floors, floors)

    await db.commit()
    logger.info(f"Updated hotel {hotel_id}: {sorted(changes)}")
    return await get_hotel(db, hotel_id)


async def delete_hotel(db: AsyncSession, hotel_id: str) -> None:
    hotel = await get_hotel(db, hotel_id)
    if any(r.is_occupied for r in hotel.rooms):
        raise ConflictError("Hotel has occupied rooms; unassign them first")
    await db.delete(hotel)
    await db.commit()
    logger.info(f"Deleted hotel {hotel_id}")


def hotel_stats(rooms: Iterable[Room], number_of_days: int = 1) -> Dict:
    rooms = list(rooms)
    occupied = [r for r in rooms if r.is_occupied]
    total_beds = sum(r.number_of_beds or 0 for r in rooms)
    occupied_beds = sum(r.number_of_beds or 0 for r in occupied)
    daily_revenue = sum(r.charge_per_day or 0 for r in rooms)
    return {
        "totalRooms": len(rooms),
        "occupiedRooms": len(occupied),
        "availableRooms": len(rooms) - len(occupied),
        "totalBeds": total_beds,
        "occupiedBeds": occupied_beds,
        "availableBeds": total_beds - occupied_beds,
        "dailyRevenue": daily_revenue,
        "totalRevenue": daily_revenue * (number_of_days or 1),
    }


def room_to_json(room: Room) -> Dict:
    return {
        "id": room.id,
        "hotelId": room.hotel_id,
        "roomNumber": room.room_number,
        "floor": room.floor_number,
        "toiletType": room.toilet_type.value,
        "numberOfBeds": room.number_of_beds,
        "chargePerDay": room.charge_per_day,
        "isOccupied": room.is_occupied,
        "assignedTo": room.registration_id,
    }


def hotel_summary_to_json(hotel: Hotel) -> Dict:
    return {
        "id": hotel.id,
        "yatra": hotel.yatra_id,
        "name": hotel.name,
        "address": hotel.address,
        "mapLink": hotel.map_link,
        "distanceFromBhavan": hotel.distance_from_bhavan,
        "hotelType": hotel.hotel_type.value,
        "managerName": hotel.manager_name,
        "managerContact": hotel.manager_contact,
        "numberOfDays": hotel.number_of_days,
        "startDate": hotel.start_date.isoformat() if hotel.start_date else None,
        "endDate": hotel.end_date.isoformat() if hotel.end_date else None,
        "checkInTime": hotel.check_in_time,
        "checkOutTime": hotel.check_out_time,
        "hasElevator": hotel.has_elevator,
        "totalFloors": hotel.total_floors,
        "isActive": hotel.is_active,
        "createdAt": hotel.created_at.isoformat() if hotel.created_at else None,
        "updatedAt": hotel.updated_at.isoformat() if hotel.updated_at else None,
    }


def hotel_to_json(hotel: Hotel) -> Dict:
    data = hotel_summary_to_json(hotel)
    data["floors"] = [f.model_dump(by_alias=True) for f in floor_configs(hotel)]
    data["rooms"] = [room_to_json(r) for r in hotel.rooms]
    data["stats"] = hotel_stats(hotel.rooms, hotel.number_of_days)
    return data
