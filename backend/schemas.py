"""Pydantic schemas for API request validation.

Hotel and registration payloads use the camelCase keys of the web client;
yatra payloads use snake_case, matching the client that talks to them.
Business rules (date windows, uniqueness, cardinality) live in the services.
"""

from datetime import date
from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- Floor / Room configuration ----------
class RoomConfig(CamelModel):
    room_number: str = ""
    toilet_type: str = "western"
    number_of_beds: int = 1
    charge_per_day: float = 0


class FloorConfig(CamelModel):
    floor_number: str = ""
    number_of_rooms: int = 1
    room_numbers: List[str] = []
    rooms: List[RoomConfig] = []

    @field_validator("floor_number", mode="before")
    @classmethod
    def _floor_label_as_text(cls, v):
        # Older clients send numeric floor numbers
        return "" if v is None else str(v)

    @field_validator("room_numbers", mode="before")
    @classmethod
    def _room_numbers_as_text(cls, v):
        if v is None:
            return []
        return ["" if n is None else str(n) for n in v]


class HotelConfiguration(CamelModel):
    total_floors: int = 1
    floors: List[FloorConfig] = []


class ResizeRequest(HotelConfiguration):
    """Configuration plus an optional room-count change for one floor."""
    total_floors: int = Field(1, ge=1, le=20)
    floor_index: Optional[int] = Field(None, ge=0)
    number_of_rooms: Optional[int] = Field(None, ge=1, le=20)


# ---------- Hotel ----------
HotelTypeLiteral = Literal["A", "B", "C", "D"]
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class HotelCreate(CamelModel):
    yatra: str = Field(..., description="Yatra id the hotel serves")
    name: str
    address: str
    map_link: Optional[str] = None
    distance_from_bhavan: Optional[float] = Field(None, ge=0, description="Distance in km")
    hotel_type: HotelTypeLiteral = "A"
    manager_name: str
    manager_contact: str = Field(..., pattern=r"^\d{10}$")
    number_of_days: int = Field(1, ge=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    check_in_time: str = Field("12:00", pattern=TIME_PATTERN)
    check_out_time: str = Field("11:00", pattern=TIME_PATTERN)
    has_elevator: bool = False
    is_active: bool = True
    total_floors: int = 1
    floors: List[FloorConfig]

    @field_validator("name", "address", "manager_name")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class HotelUpdate(CamelModel):
    yatra: Optional[str] = None
    name: Optional[str] = None
    address: Optional[str] = None
    map_link: Optional[str] = None
    distance_from_bhavan: Optional[float] = Field(None, ge=0)
    hotel_type: Optional[HotelTypeLiteral] = None
    manager_name: Optional[str] = None
    manager_contact: Optional[str] = Field(None, pattern=r"^\d{10}$")
    number_of_days: Optional[int] = Field(None, ge=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    check_in_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    check_out_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    has_elevator: Optional[bool] = None
    is_active: Optional[bool] = None
    total_floors: Optional[int] = None
    floors: Optional[List[FloorConfig]] = None


# ---------- Yatra ----------
class YatraCreate(BaseModel):
    name: str
    description: Optional[str] = None
    banner_image: Optional[str] = None
    start_date: date
    end_date: date
    registration_start_date: date
    registration_end_date: date
    is_active: bool = True


class YatraUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    banner_image: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    registration_start_date: Optional[date] = None
    registration_end_date: Optional[date] = None
    is_active: Optional[bool] = None


# ---------- Registration ----------
class PersonIn(CamelModel):
    name: str
    age: int
    gender: Literal["male", "female", "other"]
    is_handicapped: bool = False


class BoardingPoint(BaseModel):
    city: str
    state: str


class RegistrationCreate(CamelModel):
    pnr: str
    name: str
    whatsapp_number: str
    number_of_persons: int
    persons: List[PersonIn]
    boarding_point: BoardingPoint
    arrival_date: date
    return_date: date
    ticket_images: List[str] = []
    yatra_id: str


class CancelRequest(BaseModel):
    reason: Optional[str] = None


class ApproveRequest(BaseModel):
    comments: Optional[str] = None


class RejectRequest(BaseModel):
    reason: str


class AssignRoomsRequest(CamelModel):
    room_ids: List[str] = Field(..., min_length=1)


# ---------- Admin ----------
class AdminLogin(BaseModel):
    email: str
    password: str


# ---------- Uploads ----------
class UploadBase64Request(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    base64_image: str = Field(..., alias="base64Image", min_length=1)
    folder: Optional[str] = None
    public_id: Optional[str] = None
    tags: Optional[List[str]] = None


# ---------- Spiritual microsite ----------
class ContactRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=2)
    email: EmailStr
    message: str = Field(..., min_length=10)
    honeypot: Optional[str] = None
