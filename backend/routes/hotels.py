from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from database import get_db
from errors import ValidationFailed
from models import Admin
from schemas import HotelCreate, HotelUpdate, HotelConfiguration, ResizeRequest
from responses import ok
from services.auth import get_current_admin
from services.floor_config import (
    configuration_to_json,
    resize_floor_rooms,
    sync_configuration,
    validate_configuration,
)
from services.hotels import (
    create_hotel,
    delete_hotel,
    get_hotel,
    hotel_to_json,
    list_hotels,
    update_hotel,
)

router = APIRouter(prefix="/api/hotels", tags=["hotels"])


@router.post('/configuration/sync')
async def post_sync_configuration(req: ResizeRequest, admin: Admin = Depends(get_current_admin)):
    """Resize the configuration to its counts, optionally changing one floor's room count first."""
    floors = list(req.floors)
    if req.floor_index is not None and req.number_of_rooms is not None:
        if not 0 <= req.floor_index < len(floors):
            raise ValidationFailed([{"field": "floorIndex", "message": "Floor index out of range"}])
        floors[req.floor_index] = resize_floor_rooms(floors[req.floor_index], req.number_of_rooms)
    floors = sync_configuration(req.total_floors, floors)
    return ok(configuration_to_json(req.total_floors, floors), "Configuration synchronised")


@router.post('/configuration/validate')
async def post_validate_configuration(req: HotelConfiguration, admin: Admin = Depends(get_current_admin)):
    errors = validate_configuration(req.total_floors, req.floors)
    message = "Configuration is valid" if not errors else f"{len(errors)} problem(s) found"
    return ok({"valid": not errors, "errors": errors}, message)


@router.post('', status_code=201)
async def post_hotel(req: HotelCreate, db: AsyncSession = Depends(get_db),
                     admin: Admin = Depends(get_current_admin)):
    hotel = await create_hotel(db, req)
    return ok(hotel_to_json(hotel), "Hotel created successfully")


@router.get('')
async def get_hotels(yatra: Optional[str] = Query(None, description="Filter by yatra id"),
                     db: AsyncSession = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    hotels = await list_hotels(db, yatra)
    return ok([hotel_to_json(h) for h in hotels], "Hotels fetched successfully")


@router.get('/{hotel_id}')
async def get_one_hotel(hotel_id: str, db: AsyncSession = Depends(get_db),
                        admin: Admin = Depends(get_current_admin)):
    hotel = await get_hotel(db, hotel_id)
    return ok(hotel_to_json(hotel), "Hotel fetched successfully")


@router.put('/{hotel_id}')
async def put_hotel(hotel_id: str, req: HotelUpdate, db: AsyncSession = Depends(get_db),
                    admin: Admin = Depends(get_current_admin)):
    hotel = await update_hotel(db, hotel_id, req.model_dump(exclude_unset=True))
    return ok(hotel_to_json(hotel), "Hotel updated successfully")


@router.delete('/{hotel_id}')
async def remove_hotel(hotel_id: str, db: AsyncSession = Depends(get_db),
                       admin: Admin = Depends(get_current_admin)):
    await delete_hotel(db, hotel_id)
    return ok(None, "Hotel deleted successfully")
