from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from database import get_db
from models import Admin
from schemas import YatraCreate, YatraUpdate
from responses import ok
from services.auth import get_current_admin
from services.yatras import (
    create_yatra,
    delete_yatra,
    get_yatra,
    list_active_yatras,
    list_yatras,
    update_yatra,
    yatra_to_json,
)

router = APIRouter(prefix="/api/yatra", tags=["yatra"])


@router.get('/get-all-yatras')
async def get_all_yatras(db: AsyncSession = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    yatras = await list_yatras(db)
    return ok([yatra_to_json(y) for y in yatras], "Yatras fetched successfully")


@router.get('/active-yatras')
async def get_active_yatras(db: AsyncSession = Depends(get_db)):
    """Public list of yatras that are active and have not ended."""
    yatras = await list_active_yatras(db)
    return ok([yatra_to_json(y) for y in yatras], "Active yatras fetched successfully")


@router.get('/get-yatra/{yatra_id}')
async def get_one_yatra(yatra_id: str, db: AsyncSession = Depends(get_db)):
    yatra = await get_yatra(db, yatra_id)
    return ok(yatra_to_json(yatra), "Yatra fetched successfully")


@router.post('/create-yatra', status_code=201)
async def post_yatra(req: YatraCreate, db: AsyncSession = Depends(get_db),
                     admin: Admin = Depends(get_current_admin)):
    yatra = await create_yatra(db, req.model_dump())
    return ok(yatra_to_json(yatra), "Yatra created successfully")


@router.put('/update-yatra/{yatra_id}')
async def put_yatra(yatra_id: str, req: YatraUpdate, db: AsyncSession = Depends(get_db),
                    admin: Admin = Depends(get_current_admin)):
    yatra = await update_yatra(db, yatra_id, req.model_dump(exclude_unset=True))
    return ok(yatra_to_json(yatra), "Yatra updated successfully")


@router.delete('/delete-yatra/{yatra_id}')
async def remove_yatra(yatra_id: str, db: AsyncSession = Depends(get_db),
                       admin: Admin = Depends(get_current_admin)):
    await delete_yatra(db, yatra_id)
    return ok(None, "Yatra deleted successfully")
