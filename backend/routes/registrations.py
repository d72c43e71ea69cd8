from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from database import get_db
from models import Admin
from schemas import (
    ApproveRequest,
    AssignRoomsRequest,
    CancelRequest,
    RegistrationCreate,
    RejectRequest,
)
from responses import ok
from services.auth import get_current_admin
from services.registrations import (
    approve_registration,
    assign_rooms,
    cancel_registration,
    create_registration,
    get_by_pnr,
    get_registration,
    is_valid_pnr,
    list_registrations,
    pnr_detail_to_json,
    registration_to_json,
    reject_registration,
    unassign_rooms,
)

router = APIRouter(prefix="/api/registrations", tags=["registrations"])


# ---------- Public ----------
@router.post('', status_code=201)
async def post_registration(req: RegistrationCreate, db: AsyncSession = Depends(get_db)):
    registration = await create_registration(db, req)
    return ok(registration_to_json(registration), "Registration submitted successfully")


@router.get('/by-pnr/{pnr}')
async def get_registration_by_pnr(pnr: str, db: AsyncSession = Depends(get_db)):
    """Track a booking by its PNR."""
    if not is_valid_pnr(pnr):
        raise HTTPException(status_code=400, detail="PNR must be exactly 10 digits")
    registration = await get_by_pnr(db, pnr)
    return ok(pnr_detail_to_json(registration), "Registration found")


@router.post('/{registration_id}/cancel')
async def post_cancel(registration_id: str, req: Optional[CancelRequest] = None,
                      db: AsyncSession = Depends(get_db)):
    reason = req.reason if req else None
    registration = await cancel_registration(db, registration_id, reason)
    return ok(registration_to_json(registration), "Registration cancelled successfully")


# ---------- Admin ----------
@router.get('')
async def get_registrations(
    yatra_id: Optional[str] = Query(None, alias="yatraId"),
    pnr: Optional[str] = None,
    search: Optional[str] = None,
    state: Optional[str] = None,
    status: Optional[str] = None,
    room_status: Optional[str] = Query(None, alias="roomStatus"),
    arrival_date: Optional[date] = Query(None, alias="arrivalDate"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    db: AsyncSession = Depends(get_db),
    admin: Admin = Depends(get_current_admin),
):
    rows, pagination = await list_registrations(
        db,
        yatra_id=yatra_id,
        pnr=pnr,
        search=search,
        state=state,
        status=status,
        room_status=room_status,
        arrival_date=arrival_date,
        page=page,
        limit=limit,
    )
    return ok([registration_to_json(r) for r in rows], "Registrations fetched successfully",
              pagination=pagination)


@router.get('/{registration_id}')
async def get_one_registration(registration_id: str, db: AsyncSession = Depends(get_db),
                               admin: Admin = Depends(get_current_admin)):
    registration = await get_registration(db, registration_id)
    return ok(registration_to_json(registration, with_logs=True), "Registration fetched successfully")


@router.post('/{registration_id}/approve')
async def post_approve(registration_id: str, req: Optional[ApproveRequest] = None,
                       db: AsyncSession = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    comments = req.comments if req else None
    registration = await approve_registration(db, registration_id, admin, comments)
    return ok(registration_to_json(registration, with_logs=True), "Registration approved")


@router.post('/{registration_id}/reject')
async def post_reject(registration_id: str, req: RejectRequest, db: AsyncSession = Depends(get_db),
                      admin: Admin = Depends(get_current_admin)):
    registration = await reject_registration(db, registration_id, admin, req.reason)
    return ok(registration_to_json(registration, with_logs=True), "Registration rejected")


@router.post('/{registration_id}/assign-rooms')
async def post_assign_rooms(registration_id: str, req: AssignRoomsRequest,
                            db: AsyncSession = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    registration = await assign_rooms(db, registration_id, req.room_ids, admin)
    return ok(registration_to_json(registration, with_logs=True), "Rooms assigned successfully")


@router.delete('/{registration_id}/assign-rooms')
async def delete_assigned_rooms(registration_id: str, db: AsyncSession = Depends(get_db),
                                admin: Admin = Depends(get_current_admin)):
    registration = await unassign_rooms(db, registration_id, admin)
    return ok(registration_to_json(registration, with_logs=True), "Rooms released")
