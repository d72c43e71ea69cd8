"""SQLAlchemy ORM models for yatras, hotel accommodation and registrations."""

import json
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Boolean, Column, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text, Enum as SAEnum, text,
)
from sqlalchemy.orm import relationship
from database import Base
import enum


def generate_uuid():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class HotelType(enum.Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"


class ToiletType(enum.Enum):
    INDIAN = "indian"
    WESTERN = "western"


class Gender(enum.Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class RegistrationStatus(enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class Admin(Base):
    __tablename__ = "admins"

    id = Column(String, primary_key=True, default=generate_uuid)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False, default="admin")
    password_hash = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Yatra(Base):
    __tablename__ = "yatras"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    banner_image = Column(String, nullable=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    registration_start_date = Column(Date, nullable=False)
    registration_end_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    hotels = relationship("Hotel", back_populates="yatra")
    registrations = relationship("Registration", back_populates="yatra")

    @property
    def duration_days(self) -> int:
        """Length of the yatra, counting both the first and the last day."""
        return (self.end_date - self.start_date).days + 1


class Hotel(Base):
    __tablename__ = "hotels"

    id = Column(String, primary_key=True, default=generate_uuid)
    yatra_id = Column(String, ForeignKey("yatras.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    address = Column(Text, nullable=False)
    map_link = Column(String, nullable=True)
    distance_from_bhavan = Column(Float, nullable=True)  # km
    hotel_type = Column(SAEnum(HotelType), nullable=False, default=HotelType.A)
    manager_name = Column(String, nullable=False)
    manager_contact = Column(String, nullable=False)
    number_of_days = Column(Integer, nullable=False, default=1)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    check_in_time = Column(String, nullable=False, default="12:00")
    check_out_time = Column(String, nullable=False, default="11:00")
    has_elevator = Column(Boolean, nullable=False, default=False)
    total_floors = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    yatra = relationship("Yatra", back_populates="hotels")
    floors = relationship(
        "Floor", back_populates="hotel", cascade="all, delete-orphan", order_by="Floor.position",
    )
    rooms = relationship(
        "Room", back_populates="hotel", cascade="all, delete-orphan",
        order_by=lambda: [Room.floor_position, Room.position],
    )


class Floor(Base):
    __tablename__ = "floors"

    id = Column(String, primary_key=True, default=generate_uuid)
    hotel_id = Column(String, ForeignKey("hotels.id"), index=True, nullable=False)
    floor_number = Column(String, nullable=False)  # free-form label: "G", "1", "1A"
    position = Column(Integer, nullable=False, default=0)

    hotel = relationship("Hotel", back_populates="floors")


class Room(Base):
    __tablename__ = "rooms"

    id = Column(String, primary_key=True, default=generate_uuid)
    hotel_id = Column(String, ForeignKey("hotels.id"), index=True, nullable=False)
    floor_id = Column(String, ForeignKey("floors.id"), nullable=False)
    floor_number = Column(String, nullable=False)  # copy of the floor label
    floor_position = Column(Integer, nullable=False, default=0)
    position = Column(Integer, nullable=False, default=0)
    room_number = Column(String, nullable=False)
    toilet_type = Column(SAEnum(ToiletType), nullable=False, default=ToiletType.WESTERN)
    number_of_beds = Column(Integer, nullable=False, default=1)
    charge_per_day = Column(Float, nullable=False, default=0)
    registration_id = Column(String, ForeignKey("registrations.id"), index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    hotel = relationship("Hotel", back_populates="rooms")
    floor = relationship("Floor")
    registration = relationship("Registration", back_populates="rooms")

    @property
    def is_occupied(self) -> bool:
        return self.registration_id is not None


class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (
        # One live registration per PNR; cancelled ones free the PNR again
        Index("uq_registrations_active_pnr", "pnr", unique=True,
              sqlite_where=text("status != 'CANCELLED'"),
              postgresql_where=text("status != 'CANCELLED'")),
    )

    id = Column(String, primary_key=True, default=generate_uuid)
    yatra_id = Column(String, ForeignKey("yatras.id"), index=True, nullable=False)
    pnr = Column(String(10), index=True, nullable=False)
    name = Column(String, nullable=False)
    whatsapp_number = Column(String(10), nullable=False)
    number_of_persons = Column(Integer, nullable=False)
    boarding_city = Column(String, nullable=False)
    boarding_state = Column(String, nullable=False)
    arrival_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=False)
    ticket_images = Column(Text, nullable=False, default="[]")  # JSON list of URLs
    status = Column(SAEnum(RegistrationStatus), nullable=False, default=RegistrationStatus.PENDING)
    cancellation_reason = Column(Text, nullable=True)
    rejection_reason = Column(Text, nullable=True)
    admin_comments = Column(Text, nullable=True)
    approved_by_admin_id = Column(String, ForeignKey("admins.id"), nullable=True)
    rejected_by_admin_id = Column(String, ForeignKey("admins.id"), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    rejected_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    yatra = relationship("Yatra", back_populates="registrations")
    persons = relationship(
        "Person", back_populates="registration", cascade="all, delete-orphan", order_by="Person.position",
    )
    logs = relationship(
        "RegistrationLog", back_populates="registration", cascade="all, delete-orphan",
        order_by="RegistrationLog.created_at",
    )
    rooms = relationship("Room", back_populates="registration")

    @property
    def ticket_image_list(self) -> list:
        return json.loads(self.ticket_images or "[]")

    @ticket_image_list.setter
    def ticket_image_list(self, urls: list):
        self.ticket_images = json.dumps(list(urls))

    @property
    def room_status(self) -> str:
        return "Assigned" if self.rooms else "Pending"


class Person(Base):
    __tablename__ = "persons"

    id = Column(String, primary_key=True, default=generate_uuid)
    registration_id = Column(String, ForeignKey("registrations.id"), index=True, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String, nullable=False)
    age = Column(Integer, nullable=False)
    gender = Column(SAEnum(Gender), nullable=False)
    is_handicapped = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    registration = relationship("Registration", back_populates="persons")


class RegistrationLog(Base):
    __tablename__ = "registration_logs"

    id = Column(String, primary_key=True, default=generate_uuid)
    registration_id = Column(String, ForeignKey("registrations.id"), index=True, nullable=False)
    action = Column(String, nullable=False)  # created, approved, rejected, cancelled, rooms_assigned, ...
    note = Column(Text, nullable=True)
    actor = Column(String, nullable=False, default="pilgrim")
    created_at = Column(DateTime(timezone=True), default=utcnow)

    registration = relationship("Registration", back_populates="logs")


class ContactMessage(Base):
    __tablename__ = "contact_messages"

    id = Column(String, primary_key=True, default=generate_uuid)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
