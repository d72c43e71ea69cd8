"""Charity microsite: seva programs and the contact form."""

import logging
from typing import Dict, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from models import ContactMessage
from schemas import ContactRequest

logger = logging.getLogger(__name__)

SEWA_PROGRAMS = [
    {
        "title": "1 DAY LANGAR SEWA",
        "price": "₹26,000",
        "description": "Provide full-day meals to everyone visiting the Darbar.",
        "impact": "Most Impactful",
    },
    {
        "title": "1 TIME LANGAR SEWA",
        "price": "₹19,000",
        "description": "Sponsor a one-time nutritious meal for thousands.",
        "impact": "Feeds thousands in one sitting",
    },
    {
        "title": "RICE SEWA",
        "price": "₹13,000 / ₹7,100",
        "description": "Contribution towards essential rice supply for Langar.",
        "impact": "Keeps the langar kitchen stocked",
    },
    {
        "title": "VEGETABLES SEWA",
        "price": "₹5,100 / ₹3,100",
        "description": "Support the daily requirement of fresh vegetables.",
        "impact": "Fresh produce for daily meals",
    },
    {
        "title": "WHEAT SEWA",
        "price": "₹1,300",
        "description": "Provide wheat for making fresh rotis in the kitchen.",
        "impact": "Fresh rotis for every visitor",
    },
]

SMALL_CONTRIBUTIONS = ["₹500", "₹350", "₹200", "₹100"]

LANGAR_STATS = [
    {"value": "5000+", "label": "People Served Daily"},
    {"value": "365", "label": "Days of Service"},
    {"value": "₹50+", "label": "Impact Per Meal"},
]


def get_programs() -> Dict:
    return {
        "programs": SEWA_PROGRAMS,
        "smallContributions": SMALL_CONTRIBUTIONS,
        "langarStats": LANGAR_STATS,
    }


async def submit_contact(db: AsyncSession, payload: ContactRequest) -> bool:
    """Store a contact message; returns False when the honeypot caught a bot."""
    if payload.honeypot:
        logger.info("Contact form honeypot filled; message dropped")
        return False

    db.add(ContactMessage(
        name=payload.name,
        email=payload.email.lower(),
        message=payload.message,
    ))
    await db.commit()
    logger.info(f"Contact message received from {payload.email}")
    return True


async def list_contacts(db: AsyncSession) -> List[ContactMessage]:
    result = await db.execute(select(ContactMessage).order_by(ContactMessage.created_at.desc()))
    return list(result.scalars().all())


def contact_to_json(message: ContactMessage) -> Dict:
    return {
        "id": message.id,
        "name": message.name,
        "email": message.email,
        "message": message.message,
        "created_at": message.created_at.isoformat() if message.created_at else None,
    }
