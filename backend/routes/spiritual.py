from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from database import get_db
from models import Admin
from schemas import ContactRequest
from responses import ok
from services.auth import get_current_admin
from services.spiritual import contact_to_json, get_programs, list_contacts, submit_contact

router = APIRouter(prefix="/api/spiritual", tags=["spiritual"])


@router.get('/programs')
async def programs():
    return ok(get_programs(), "Programs fetched successfully")


@router.post('/contact')
async def post_contact(req: ContactRequest, db: AsyncSession = Depends(get_db)):
    await submit_contact(db, req)
    return ok(None, "Your message has been received. We will contact you soon.")


@router.get('/contact')
async def get_contacts(db: AsyncSession = Depends(get_db), admin: Admin = Depends(get_current_admin)):
    messages = await list_contacts(db)
    return ok([contact_to_json(m) for m in messages], "Messages fetched successfully")
