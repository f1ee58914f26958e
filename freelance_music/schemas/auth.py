# freelance_music/schemas/auth.py
from pydantic import BaseModel, EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class SignupResponse(BaseModel):
    user_id: int
    teacher_id: int | None = None
    student_id: int | None = None
