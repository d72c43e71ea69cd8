"""
Pilgrim registrations.

Lifecycle (status transitions an operation may perform):

    pending  -> approved | rejected | cancelled
    rejected -> approved
    approved -> rejected | cancelled

Cancelled is terminal. Every change writes a RegistrationLog row, and a
registration that leaves the active states (rejected, cancelled) gives its
rooms back.
"""

import logging
import math
import re
from calendar import monthrange
from datetime import date
from typing import Dict, List, Optional
from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from errors import ConflictError, NotFoundError, ValidationFailed
from models import (
    Admin, Gender, Person, Registration, RegistrationLog, RegistrationStatus, Room, Yatra,
    generate_uuid, utcnow,
)
from schemas import RegistrationCreate
from services.hotels import hotel_summary_to_json, room_to_json
from services.yatras import is_registration_open, yatra_to_json

logger = logging.getLogger(__name__)

PNR_PATTERN = re.compile(r"^\d{10}$")
WHATSAPP_PATTERN = re.compile(r"^[6-9]\d{9}$")
NAME_PATTERN = re.compile(r"^[A-Za-z\s]+$")

MIN_PERSONS, MAX_PERSONS = 1, 20
MIN_AGE, MAX_AGE = 1, 120
MIN_TICKET_IMAGES, MAX_TICKET_IMAGES = 2, 10
MAX_CANCEL_REASON = 100
MAX_ADVANCE_MONTHS = 12
MAX_STAY_MONTHS = 6

TRANSITIONS = {
    RegistrationStatus.PENDING: {
        RegistrationStatus.APPROVED, RegistrationStatus.REJECTED, RegistrationStatus.CANCELLED,
    },
    RegistrationStatus.REJECTED: {RegistrationStatus.APPROVED},
    RegistrationStatus.APPROVED: {RegistrationStatus.REJECTED, RegistrationStatus.CANCELLED},
    RegistrationStatus.CANCELLED: set(),
}


def add_months(day: date, months: int) -> date:
    """Same day ``months`` later, clamped to the end of a shorter month."""
    month_index = day.month - 1 + months
    year, month = day.year + month_index // 12, month_index % 12 + 1
    return day.replace(year=year, month=month, day=min(day.day, monthrange(year, month)[1]))


def is_valid_pnr(pnr: str) -> bool:
    return bool(PNR_PATTERN.match(pnr or ""))


def can_transition(current: RegistrationStatus, target: RegistrationStatus) -> bool:
    return target in TRANSITIONS[current]


def validate_registration(payload: RegistrationCreate, today: Optional[date] = None) -> List[Dict[str, str]]:
    """Field rules for a new registration that need no database access."""
    today = today or date.today()
    errors = []

    def err(field, message):
        errors.append({"field": field, "message": message})

    if not is_valid_pnr(payload.pnr):
        err("pnr", "PNR must be exactly 10 digits")

    name = payload.name.strip()
    if len(name) < 2:
        err("name", "Name must be at least 2 characters")
    elif not NAME_PATTERN.match(name):
        err("name", "Name can only contain letters and spaces")

    if not WHATSAPP_PATTERN.match(payload.whatsapp_number or ""):
        err("whatsappNumber", "Enter a valid 10-digit mobile number")

    if not MIN_PERSONS <= payload.number_of_persons <= MAX_PERSONS:
        err("numberOfPersons", f"Number of persons must be between {MIN_PERSONS} and {MAX_PERSONS}")
    if payload.number_of_persons != len(payload.persons):
        err("persons", f"Expected {payload.number_of_persons} persons, got {len(payload.persons)}")

    for i, person in enumerate(payload.persons):
        person_name = person.name.strip()
        if len(person_name) < 2 or not NAME_PATTERN.match(person_name):
            err(f"persons.{i}.name", "Name must be at least 2 letters")
        if not MIN_AGE <= person.age <= MAX_AGE:
            err(f"persons.{i}.age", f"Age must be between {MIN_AGE} and {MAX_AGE}")

    city = payload.boarding_point.city.strip()
    if len(city) < 2 or not NAME_PATTERN.match(city):
        err("boardingPoint.city", "City must be at least 2 letters")
    if not payload.boarding_point.state.strip():
        err("boardingPoint.state", "State is required")

    if payload.arrival_date < today:
        err("arrivalDate", "Arrival date cannot be in the past")
    elif payload.arrival_date > add_months(today, MAX_ADVANCE_MONTHS):
        err("arrivalDate", "Arrival date cannot be more than 1 year in the future")
    if payload.return_date < payload.arrival_date:
        err("returnDate", "Return date must be on or after arrival date")
    elif payload.return_date > add_months(payload.arrival_date, MAX_STAY_MONTHS):
        err("returnDate", "Return date cannot be more than 6 months after arrival")

    images = [url for url in payload.ticket_images if url and url.strip()]
    if not MIN_TICKET_IMAGES <= len(images) <= MAX_TICKET_IMAGES:
        err("ticketImages",
            f"Upload between {MIN_TICKET_IMAGES} and {MAX_TICKET_IMAGES} ticket images")
    return errors


def _registration_query():
    return (
        select(Registration)
        .options(
            selectinload(Registration.persons),
            selectinload(Registration.logs),
            selectinload(Registration.rooms).selectinload(Room.hotel),
            selectinload(Registration.yatra),
        )
        .execution_options(populate_existing=True)
    )


async def get_registration(db: AsyncSession, registration_id: str) -> Registration:
    result = await db.execute(_registration_query().where(Registration.id == registration_id))
    registration = result.scalars().first()
    if registration is None:
        raise NotFoundError("Registration not found")
    return registration


async def get_by_pnr(db: AsyncSession, pnr: str) -> Registration:
    """Most recent registration for ``pnr``."""
    result = await db.execute(
        _registration_query()
        .where(Registration.pnr == pnr)
        .order_by(Registration.created_at.desc())
        .limit(1)
    )
    registration = result.scalars().first()
    if registration is None:
        raise NotFoundError("No registration found for this PNR")
    return registration


def _log(db: AsyncSession, registration_id: str, action: str, note: Optional[str] = None,
         actor: str = "pilgrim"):
    db.add(RegistrationLog(registration_id=registration_id, action=action, note=note, actor=actor))


async def _free_rooms(db: AsyncSession, registration_id: str, keep: Optional[List[str]] = None) -> int:
    stmt = update(Room).where(Room.registration_id == registration_id)
    if keep:
        stmt = stmt.where(Room.id.notin_(keep))
    result = await db.execute(stmt.values(registration_id=None).execution_options(synchronize_session=False))
    return result.rowcount or 0


async def _pnr_in_use(db: AsyncSession, pnr: str) -> bool:
    existing = await db.scalar(
        select(func.count(Registration.id)).where(
            Registration.pnr == pnr,
            Registration.status != RegistrationStatus.CANCELLED,
        )
    )
    return bool(existing)


async def create_registration(db: AsyncSession, payload: RegistrationCreate,
                              today: Optional[date] = None) -> Registration:
    today = today or date.today()
    errors = validate_registration(payload, today)

    yatra = await db.get(Yatra, payload.yatra_id)
    if yatra is None:
        errors.append({"field": "yatraId", "message": "Yatra not found"})
    elif not is_registration_open(yatra, today):
        errors.append({"field": "yatraId", "message": "Registration is closed for this yatra"})
    if errors:
        raise ValidationFailed(errors)

    if await _pnr_in_use(db, payload.pnr):
        raise ConflictError("A registration with this PNR already exists")

    registration = Registration(
        id=generate_uuid(),
        yatra_id=yatra.id,
        pnr=payload.pnr,
        name=payload.name.strip(),
        whatsapp_number=payload.whatsapp_number,
        number_of_persons=payload.number_of_persons,
        boarding_city=payload.boarding_point.city.strip(),
        boarding_state=payload.boarding_point.state.strip(),
        arrival_date=payload.arrival_date,
        return_date=payload.return_date,
        status=RegistrationStatus.PENDING,
    )
    registration.ticket_image_list = [url.strip() for url in payload.ticket_images if url and url.strip()]
    db.add(registration)
    for position, person in enumerate(payload.persons):
        db.add(Person(
            registration_id=registration.id,
            position=position,
            name=person.name.strip(),
            age=person.age,
            gender=Gender(person.gender),
            is_handicapped=person.is_handicapped,
        ))
    _log(db, registration.id, "created", f"{payload.number_of_persons} person(s)")
    try:
        await db.commit()
    except IntegrityError:
        # Another request registered the same PNR after the check above
        await db.rollback()
        raise ConflictError("A registration with this PNR already exists")
    logger.info(f"Registration {registration.id} created for PNR {payload.pnr}")
    return await get_registration(db, registration.id)


def _check_transition(registration: Registration, target: RegistrationStatus):
    if not can_transition(registration.status, target):
        raise ConflictError(
            f"Cannot change a {registration.status.value} registration to {target.value}"
        )


async def cancel_registration(db: AsyncSession, registration_id: str, reason: Optional[str] = None) -> Registration:
    reason = (reason or "").strip() or None
    if reason and len(reason) > MAX_CANCEL_REASON:
        raise ValidationFailed([{
            "field": "reason", "message": f"Reason cannot exceed {MAX_CANCEL_REASON} characters",
        }])
    registration = await get_registration(db, registration_id)
    _check_transition(registration, RegistrationStatus.CANCELLED)

    registration.status = RegistrationStatus.CANCELLED
    registration.cancellation_reason = reason
    registration.cancelled_at = utcnow()
    freed = await _free_rooms(db, registration.id)
    _log(db, registration.id, "cancelled", reason)
    await db.commit()
    logger.info(f"Registration {registration_id} cancelled ({freed} room(s) freed)")
    return await get_registration(db, registration_id)


async def approve_registration(db: AsyncSession, registration_id: str, admin: Admin,
                               comments: Optional[str] = None) -> Registration:
    registration = await get_registration(db, registration_id)
    _check_transition(registration, RegistrationStatus.APPROVED)

    registration.status = RegistrationStatus.APPROVED
    registration.approved_by_admin_id = admin.id
    registration.approved_at = utcnow()
    registration.rejection_reason = None
    if comments:
        registration.admin_comments = comments.strip()
    _log(db, registration.id, "approved", comments, actor=admin.email)
    await db.commit()
    logger.info(f"Registration {registration_id} approved by {admin.email}")
    return await get_registration(db, registration_id)


async def reject_registration(db: AsyncSession, registration_id: str, admin: Admin, reason: str) -> Registration:
    reason = (reason or "").strip()
    if not reason:
        raise ValidationFailed([{"field": "reason", "message": "Rejection reason is required"}])
    registration = await get_registration(db, registration_id)
    _check_transition(registration, RegistrationStatus.REJECTED)

    registration.status = RegistrationStatus.REJECTED
    registration.rejected_by_admin_id = admin.id
    registration.rejected_at = utcnow()
    registration.rejection_reason = reason
    freed = await _free_rooms(db, registration.id)
    _log(db, registration.id, "rejected", reason, actor=admin.email)
    await db.commit()
    logger.info(f"Registration {registration_id} rejected by {admin.email} ({freed} room(s) freed)")
    return await get_registration(db, registration_id)


async def assign_rooms(db: AsyncSession, registration_id: str, room_ids: List[str], admin: Admin) -> Registration:
    """Allot exactly ``room_ids`` to the registration.

    Rooms held before but missing from ``room_ids`` are released.
    """
    registration = await get_registration(db, registration_id)
    if registration.status in (RegistrationStatus.CANCELLED, RegistrationStatus.REJECTED):
        raise ConflictError(f"Cannot assign rooms to a {registration.status.value} registration")

    room_ids = list(dict.fromkeys(room_ids))
    result = await db.execute(
        select(Room).options(selectinload(Room.hotel)).where(Room.id.in_(room_ids))
    )
    rooms = {room.id: room for room in result.scalars().all()}

    errors = []
    for rid in room_ids:
        room = rooms.get(rid)
        if room is None:
            errors.append({"field": "roomIds", "message": f"Room {rid} not found"})
        elif room.hotel.yatra_id != registration.yatra_id:
            errors.append({"field": "roomIds",
                           "message": f"Room {room.room_number} belongs to another yatra's hotel"})
    if errors:
        raise ValidationFailed(errors)

    taken = [r.room_number for r in rooms.values() if r.registration_id not in (None, registration.id)]
    if taken:
        raise ConflictError(f"Room(s) already occupied: {', '.join(sorted(taken))}")

    await _free_rooms(db, registration.id, keep=room_ids)
    # Claim only rooms still free at write time
    claimed = await db.execute(
        update(Room)
        .where(Room.id.in_(room_ids))
        .where(or_(Room.registration_id.is_(None), Room.registration_id == registration.id))
        .values(registration_id=registration.id)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != len(room_ids):
        await db.rollback()
        logger.warning(f"Registration {registration_id}: rooms taken during allotment")
        raise ConflictError("Room(s) already occupied")
    numbers = ", ".join(f"{rooms[rid].hotel.name} #{rooms[rid].room_number}" for rid in room_ids)
    _log(db, registration.id, "rooms_assigned", numbers, actor=admin.email)
    await db.commit()
    logger.info(f"Registration {registration_id}: assigned {len(room_ids)} room(s)")
    return await get_registration(db, registration_id)


async def unassign_rooms(db: AsyncSession, registration_id: str, admin: Admin) -> Registration:
    registration = await get_registration(db, registration_id)
    freed = await _free_rooms(db, registration.id)
    if freed:
        _log(db, registration.id, "rooms_unassigned", f"{freed} room(s)", actor=admin.email)
    await db.commit()
    logger.info(f"Registration {registration_id}: released {freed} room(s)")
    return await get_registration(db, registration_id)


async def list_registrations(
    db: AsyncSession,
    yatra_id: Optional[str] = None,
    pnr: Optional[str] = None,
    search: Optional[str] = None,
    state: Optional[str] = None,
    status: Optional[str] = None,
    room_status: Optional[str] = None,
    arrival_date: Optional[date] = None,
    page: int = 1,
    limit: int = 10,
):
    """Filtered page of registrations, newest first; returns (rows, pagination)."""
    filters = []
    if yatra_id:
        filters.append(Registration.yatra_id == yatra_id)
    if pnr:
        filters.append(Registration.pnr == pnr)
    if search:
        term = search.strip().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        like = f"%{term}%"
        filters.append(or_(
            Registration.name.ilike(like, escape="\\"),
            Registration.pnr.ilike(like, escape="\\"),
            Registration.whatsapp_number.ilike(like, escape="\\"),
        ))
    if state:
        filters.append(func.lower(Registration.boarding_state) == state.strip().lower())
    if status:
        try:
            filters.append(Registration.status == RegistrationStatus(status.lower()))
        except ValueError:
            raise ValidationFailed([{"field": "status", "message": f"Unknown status '{status}'"}])
    if room_status:
        assigned = select(Room.registration_id).where(Room.registration_id.isnot(None))
        if room_status.lower() == "assigned":
            filters.append(Registration.id.in_(assigned))
        elif room_status.lower() == "pending":
            filters.append(Registration.id.notin_(assigned))
        else:
            raise ValidationFailed([{"field": "roomStatus", "message": "Room status must be Assigned or Pending"}])
    if arrival_date:
        filters.append(Registration.arrival_date == arrival_date)

    total = await db.scalar(select(func.count(Registration.id)).where(*filters)) or 0
    result = await db.execute(
        _registration_query()
        .where(*filters)
        .order_by(Registration.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
    )
    pagination = {
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }
    return list(result.scalars().all()), pagination


def _iso(value):
    return value.isoformat() if value else None


def person_to_json(person: Person) -> Dict:
    return {
        "id": person.id,
        "registration_id": person.registration_id,
        "name": person.name,
        "age": person.age,
        "gender": person.gender.value,
        "is_handicapped": person.is_handicapped,
        "created_at": _iso(person.created_at),
        "updated_at": _iso(person.updated_at),
    }


def log_to_json(log: RegistrationLog) -> Dict:
    return {
        "id": log.id,
        "action": log.action,
        "note": log.note,
        "actor": log.actor,
        "created_at": _iso(log.created_at),
    }


def allotted_room_to_json(room: Room) -> Dict:
    return {
        "id": room.id,
        "hotel_id": room.hotel_id,
        "hotel_name": room.hotel.name if room.hotel else None,
        "room_number": room.room_number,
        "floor": room.floor_number,
        "number_of_beds": room.number_of_beds,
        "toilet_type": room.toilet_type.value,
    }


def registration_to_json(registration: Registration, with_logs: bool = False) -> Dict:
    data = {
        "id": registration.id,
        "yatra_id": registration.yatra_id,
        "pnr": registration.pnr,
        "name": registration.name,
        "whatsapp_number": registration.whatsapp_number,
        "number_of_persons": registration.number_of_persons,
        "boarding_city": registration.boarding_city,
        "boarding_state": registration.boarding_state,
        "arrival_date": _iso(registration.arrival_date),
        "return_date": _iso(registration.return_date),
        "ticket_images": registration.ticket_image_list,
        "status": registration.status.value,
        "room_status": registration.room_status,
        "cancellation_reason": registration.cancellation_reason,
        "admin_comments": registration.admin_comments,
        "rejection_reason": registration.rejection_reason,
        "approved_by_admin_id": registration.approved_by_admin_id,
        "rejected_by_admin_id": registration.rejected_by_admin_id,
        "approved_at": _iso(registration.approved_at),
        "rejected_at": _iso(registration.rejected_at),
        "cancelled_at": _iso(registration.cancelled_at),
        "created_at": _iso(registration.created_at),
        "updated_at": _iso(registration.updated_at),
        "yatra": yatra_to_json(registration.yatra) if registration.yatra else None,
        "persons": [person_to_json(p) for p in registration.persons],
        "rooms": [allotted_room_to_json(r) for r in registration.rooms],
    }
    if with_logs:
        data["logs"] = [log_to_json(log) for log in registration.logs]
    return data


def pnr_detail_to_json(registration: Registration) -> Dict:
    """Shape returned by the public PNR lookup."""
    rooms = list(registration.rooms)
    first = rooms[0] if rooms else None
    registration_data = registration_to_json(registration)
    return {
        "registration": {k: v for k, v in registration_data.items() if k not in ("yatra", "persons", "rooms")},
        "persons": registration_data["persons"],
        "yatra": registration_data["yatra"],
        "hotel": hotel_summary_to_json(first.hotel) if first else None,
        "room": room_to_json(first) if first else None,
        "rooms": registration_data["rooms"],
    }
