# freelance_music/schemas/user.py
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserBase(BaseModel):
    name: str
    email: EmailStr
    phone: str | None = None
    location: str | None = None


class UserCreate(UserBase):
    password: str
    role: Literal["teacher", "student", "admin"]


class UserPublic(UserBase):
    id: int
    role: str
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class TeacherProfile(BaseModel):
    bio: str | None = None
    instruments: list[str] = Field(default_factory=list)
    hourly_rate: Decimal = Field(gt=0, description="per hour")
    virtual_available: bool = True
    in_person_available: bool = True


class TeacherSignup(UserBase, TeacherProfile):
    """Sign-up payload: account fields and teacher profile together."""
    password: str


class TeacherUpdate(BaseModel):
    bio: str | None = None
    instruments: list[str] | None = None
    hourly_rate: Decimal | None = Field(default=None, gt=0)
    virtual_available: bool | None = None
    in_person_available: bool | None = None


class TeacherPublic(TeacherProfile):
    id: int
    user_id: int
    hourly_rate: Decimal

    model_config = ConfigDict(from_attributes=True)


class StudentProfile(BaseModel):
    primary_instrument: str | None = None
    skill_level: str | None = None
    learning_goals: str | None = None
    referral_source: str | None = None


class StudentSignup(UserBase, StudentProfile):
    password: str


class StudentUpdate(BaseModel):
    # account fields
    name: str | None = None
    email: EmailStr | None = None
    phone: str | None = None
    location: str | None = None
    # profile fields
    primary_instrument: str | None = None
    skill_level: str | None = None
    learning_goals: str | None = None
    referral_source: str | None = None


class StudentPublic(StudentProfile):
    id: int
    user_id: int

    model_config = ConfigDict(from_attributes=True)
