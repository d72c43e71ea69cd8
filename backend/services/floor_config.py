"""
Hotel floor/room configuration.

A hotel configuration is three parallel collections that must stay in step:

    totalFloors                 -> len(floors)
    floor.numberOfRooms         -> len(floor.roomNumbers) == len(floor.rooms)

Count edits grow or shrink the collections without touching entries at
indices that survive the edit: growing appends default records, shrinking
drops trailing records only.

Floor numbers are free-form labels ("G", "M", "1A") and must be unique
across the hotel; room numbers must be non-empty and unique within their
floor. Both comparisons are case-insensitive on trimmed text.
"""

import logging
from typing import Dict, List, Optional
from schemas import FloorConfig, RoomConfig

logger = logging.getLogger(__name__)

MIN_FLOORS, MAX_FLOORS = 1, 20
MIN_ROOMS_PER_FLOOR, MAX_ROOMS_PER_FLOOR = 1, 20
MIN_BEDS = 1
MAX_CHARGE_PER_DAY = 100000
TOILET_TYPES = ("indian", "western")

DEFAULT_TOILET_TYPE = "western"
DEFAULT_BEDS = 1
DEFAULT_CHARGE = 0


def normalize_label(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def default_room() -> RoomConfig:
    return RoomConfig(
        room_number="",
        toilet_type=DEFAULT_TOILET_TYPE,
        number_of_beds=DEFAULT_BEDS,
        charge_per_day=DEFAULT_CHARGE,
    )


def default_floor(index: int) -> FloorConfig:
    """Blank floor for position ``index`` (labelled 1-based)."""
    return FloorConfig(
        floor_number=str(index + 1),
        number_of_rooms=1,
        room_numbers=[""],
        rooms=[default_room()],
    )


def _resize(items: list, new_count: int, make_default) -> list:
    new_count = max(new_count, 0)
    if new_count <= len(items):
        return list(items[:new_count])
    return list(items) + [make_default(i) for i in range(len(items), new_count)]


def resize_floor_rooms(floor: FloorConfig, new_count: int) -> FloorConfig:
    """Return a copy of ``floor`` holding exactly ``new_count`` rooms.

    Room numbers and room records at indices below ``min(old, new)`` are kept
    as they are. A floor whose ``rooms`` list lags behind its ``roomNumbers``
    (data saved before per-room details existed) is padded first so both
    lists describe the same rooms.
    """
    new_count = max(new_count, 0)
    room_numbers = list(floor.room_numbers)
    rooms = [r.model_copy() for r in floor.rooms]
    if len(rooms) < len(room_numbers):
        rooms = _resize(rooms, len(room_numbers), lambda _: default_room())

    return floor.model_copy(update={
        "number_of_rooms": new_count,
        "room_numbers": _resize(room_numbers, new_count, lambda _: ""),
        "rooms": _resize(rooms, new_count, lambda _: default_room()),
    })


def resize_floors(floors: List[FloorConfig], total_floors: int) -> List[FloorConfig]:
    """Grow or shrink the floor list to ``total_floors`` entries."""
    return _resize([f.model_copy() for f in floors], total_floors, default_floor)


def sync_configuration(total_floors: int, floors: List[FloorConfig]) -> List[FloorConfig]:
    """Bring a configuration in line with its count fields.

    The floor list follows ``total_floors`` and every floor's lists follow
    its own ``numberOfRooms``.
    """
    return [resize_floor_rooms(f, f.number_of_rooms) for f in resize_floors(floors, total_floors)]


def room_number_error(room_numbers: List[str], index: int) -> Optional[str]:
    value = normalize_label(room_numbers[index])
    if not value:
        return "Required"
    for i, other in enumerate(room_numbers):
        if i != index and normalize_label(other) == value:
            return "Duplicate"
    return None


def validate_configuration(total_floors: int, floors: List[FloorConfig]) -> List[Dict[str, str]]:
    """Check a configuration; returns a list of ``{"field", "message"}``."""
    errors: List[Dict[str, str]] = []

    def err(field: str, message: str):
        errors.append({"field": field, "message": message})

    if not MIN_FLOORS <= total_floors <= MAX_FLOORS:
        err("totalFloors", f"Total floors must be between {MIN_FLOORS} and {MAX_FLOORS}")
    if len(floors) != total_floors:
        err("floors", f"Expected {total_floors} floors, got {len(floors)}")

    seen_floors: Dict[str, int] = {}
    for fi, floor in enumerate(floors):
        prefix = f"floors.{fi}"
        label = normalize_label(floor.floor_number)
        if not label:
            err(f"{prefix}.floorNumber", "Required")
        elif label in seen_floors:
            err(f"{prefix}.floorNumber", f"Duplicate of floor {seen_floors[label] + 1}")
        else:
            seen_floors[label] = fi

        count = floor.number_of_rooms
        if not MIN_ROOMS_PER_FLOOR <= count <= MAX_ROOMS_PER_FLOOR:
            err(f"{prefix}.numberOfRooms",
                f"Rooms per floor must be between {MIN_ROOMS_PER_FLOOR} and {MAX_ROOMS_PER_FLOOR}")
        if len(floor.room_numbers) != count:
            err(f"{prefix}.roomNumbers", f"Expected {count} room numbers, got {len(floor.room_numbers)}")
        if len(floor.rooms) != count:
            err(f"{prefix}.rooms", f"Expected {count} rooms, got {len(floor.rooms)}")

        for ri in range(len(floor.room_numbers)):
            message = room_number_error(floor.room_numbers, ri)
            if message:
                err(f"{prefix}.roomNumbers.{ri}", message)

        for ri, room in enumerate(floor.rooms):
            if room.toilet_type not in TOILET_TYPES:
                err(f"{prefix}.rooms.{ri}.toiletType", "Toilet type must be indian or western")
            if room.number_of_beds < MIN_BEDS:
                err(f"{prefix}.rooms.{ri}.numberOfBeds", f"At least {MIN_BEDS} bed required")
            if not 0 <= room.charge_per_day <= MAX_CHARGE_PER_DAY:
                err(f"{prefix}.rooms.{ri}.chargePerDay",
                    f"Charge per day must be between 0 and {MAX_CHARGE_PER_DAY}")

    return errors


def flatten_rooms(floors: List[FloorConfig]) -> List[Dict]:
    """Room records to persist, one per non-empty room number.

    ``roomNumbers`` is authoritative for the number; the room record at the
    same index supplies toilet type, beds and charge.
    """
    flat = []
    for fi, floor in enumerate(floors):
        for ri, number in enumerate(floor.room_numbers):
            number = (number or "").strip()
            if not number:
                continue
            config = floor.rooms[ri] if ri < len(floor.rooms) else default_room()
            flat.append({
                "floor_number": floor.floor_number.strip(),
                "floor_position": fi,
                "position": ri,
                "room_number": number,
                "toilet_type": config.toilet_type or DEFAULT_TOILET_TYPE,
                "number_of_beds": config.number_of_beds or DEFAULT_BEDS,
                "charge_per_day": config.charge_per_day or DEFAULT_CHARGE,
            })
    return flat


def configuration_to_json(total_floors: int, floors: List[FloorConfig]) -> Dict:
    return {
        "totalFloors": total_floors,
        "floors": [f.model_dump(by_alias=True) for f in floors],
    }
