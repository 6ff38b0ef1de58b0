from typing import Literal

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(min_length=8, max_length=72)
    role: Literal["student", "teacher"] = "student"


class UserRead(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: str
    status: str

    class Config:
        from_attributes = True


class UserSummary(BaseModel):
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True
