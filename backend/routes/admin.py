from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from database import get_db
from models import Admin
from schemas import AdminLogin
from responses import ok
from services.auth import admin_to_json, authenticate, create_token, get_current_admin
from services.dashboard import load_dashboard

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post('/login')
async def login(req: AdminLogin, db: AsyncSession = Depends(get_db)):
    admin = await authenticate(db, req.email, req.password)
    if admin is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return {"token": create_token(admin)}


@router.post('/logout')
async def logout(admin: Admin = Depends(get_current_admin)):
    """Tokens are stateless; the client discards its copy."""
    return ok(None, "Logged out successfully")


@router.get('/me')
async def me(admin: Admin = Depends(get_current_admin)):
    return ok(admin_to_json(admin), "Admin profile")


@router.get('/dashboard')
async def dashboard(yatra_id: Optional[str] = Query(None, alias="yatraId"),
                    db: AsyncSession = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    data = await load_dashboard(db, yatra_id)
    return ok(data, "Dashboard data fetched successfully")
