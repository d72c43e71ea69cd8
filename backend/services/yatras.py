import logging
from datetime import date
from typing import Dict, List, Optional
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from errors import ConflictError, NotFoundError, ValidationFailed
from models import Hotel, Registration, Yatra

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 3

# Fields an update may set to null
NULLABLE_FIELDS = {"description", "banner_image"}


def validate_yatra_fields(data: Dict, today: Optional[date] = None, check_past: bool = True) -> List[Dict[str, str]]:
    """Date-window and name rules for a yatra.

    ``data`` holds the full set of fields (after merging an update onto the
    stored row). Past-date checks only apply when ``check_past`` is set, so an
    ongoing yatra can still be edited.
    """
    today = today or date.today()
    errors = []

    def err(field, message):
        errors.append({"field": field, "message": message})

    name = (data.get("name") or "").strip()
    if not name:
        err("name", "Yatra name is required")
    elif len(name) < MIN_NAME_LENGTH:
        err("name", f"Title must be at least {MIN_NAME_LENGTH} characters")

    start, end = data.get("start_date"), data.get("end_date")
    reg_start, reg_end = data.get("registration_start_date"), data.get("registration_end_date")

    if check_past:
        for field, value in (("start_date", start), ("end_date", end),
                             ("registration_start_date", reg_start),
                             ("registration_end_date", reg_end)):
            if value and value < today:
                err(field, f"{field.replace('_', ' ').capitalize()} cannot be in the past")

    if start and end and end < start:
        err("end_date", "End date must be after start date")
    if reg_start and reg_end and reg_end < reg_start:
        err("registration_end_date", "Registration end date must be after start date")
    if reg_end and start and reg_end >= start:
        err("registration_end_date", "Registration end date must be before yatra start date")
    return errors


def is_registration_open(yatra: Yatra, today: Optional[date] = None) -> bool:
    today = today or date.today()
    return bool(yatra.is_active) and yatra.registration_start_date <= today <= yatra.registration_end_date


def yatra_to_json(yatra: Yatra, today: Optional[date] = None) -> Dict:
    return {
        "id": yatra.id,
        "name": yatra.name,
        "description": yatra.description,
        "banner_image": yatra.banner_image,
        "start_date": yatra.start_date.isoformat(),
        "end_date": yatra.end_date.isoformat(),
        "registration_start_date": yatra.registration_start_date.isoformat(),
        "registration_end_date": yatra.registration_end_date.isoformat(),
        "is_active": yatra.is_active,
        "is_registration_open": is_registration_open(yatra, today),
        "created_at": yatra.created_at.isoformat() if yatra.created_at else None,
        "updated_at": yatra.updated_at.isoformat() if yatra.updated_at else None,
    }


async def get_yatra(db: AsyncSession, yatra_id: str) -> Yatra:
    yatra = await db.get(Yatra, yatra_id)
    if yatra is None:
        raise NotFoundError("Yatra not found")
    return yatra


async def list_yatras(db: AsyncSession) -> List[Yatra]:
    result = await db.execute(select(Yatra).order_by(Yatra.start_date.desc()))
    return list(result.scalars().all())


async def list_active_yatras(db: AsyncSession, today: Optional[date] = None) -> List[Yatra]:
    """Active yatras that have not ended yet, soonest first."""
    today = today or date.today()
    result = await db.execute(
        select(Yatra)
        .where(Yatra.is_active.is_(True), Yatra.end_date >= today)
        .order_by(Yatra.start_date)
    )
    return list(result.scalars().all())


async def create_yatra(db: AsyncSession, data: Dict, today: Optional[date] = None) -> Yatra:
    errors = validate_yatra_fields(data, today=today)
    if errors:
        raise ValidationFailed(errors)

    yatra = Yatra(**{**data, "name": data["name"].strip()})
    db.add(yatra)
    await db.commit()
    await db.refresh(yatra)
    logger.info(f"Created yatra {yatra.id} ({yatra.name})")
    return yatra


async def update_yatra(db: AsyncSession, yatra_id: str, changes: Dict, today: Optional[date] = None) -> Yatra:
    cleared = [f for f, v in changes.items() if v is None and f not in NULLABLE_FIELDS]
    if cleared:
        raise ValidationFailed([{"field": f, "message": "Cannot be empty"} for f in cleared])

    yatra = await get_yatra(db, yatra_id)
    merged = {
        "name": yatra.name,
        "start_date": yatra.start_date,
        "end_date": yatra.end_date,
        "registration_start_date": yatra.registration_start_date,
        "registration_end_date": yatra.registration_end_date,
        **changes,
    }
    # Only newly entered dates must lie in the future
    errors = validate_yatra_fields(merged, today=today, check_past=False)
    today = today or date.today()
    for field, value in changes.items():
        if field.endswith("date") and value is not None and value < today and value != getattr(yatra, field):
            errors.append({"field": field, "message": f"{field.replace('_', ' ').capitalize()} cannot be in the past"})
    if errors:
        raise ValidationFailed(errors)

    for field, value in changes.items():
        setattr(yatra, field, value.strip() if field == "name" else value)
    await db.commit()
    await db.refresh(yatra)
    logger.info(f"Updated yatra {yatra.id}: {sorted(changes)}")
    return yatra


async def delete_yatra(db: AsyncSession, yatra_id: str) -> None:
    yatra = await get_yatra(db, yatra_id)
    hotels = await db.scalar(select(func.count(Hotel.id)).where(Hotel.yatra_id == yatra_id))
    registrations = await db.scalar(
        select(func.count(Registration.id)).where(Registration.yatra_id == yatra_id)
    )
    if hotels or registrations:
        raise ConflictError(
            f"Yatra has {hotels} hotel(s) and {registrations} registration(s); deactivate it instead"
        )
    await db.delete(yatra)
    await db.commit()
    logger.info(f"Deleted yatra {yatra_id}")
