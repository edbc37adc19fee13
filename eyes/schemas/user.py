# eyes/schemas/user.py
# Pydantic models for profile and settings endpoints

from typing import List, Optional

from pydantic import BaseModel, field_validator


class ProfileResponse(BaseModel):
    id: str
    role: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    child_name: Optional[str] = None            # parents only
    scan_interval: Optional[int] = None         # teachers only
    assigned_teachers: Optional[List[str]] = None
    has_push_token: bool = False


class NameUpdate(BaseModel):
    first_name: str = ""
    last_name: str = ""


class PushTokenUpdate(BaseModel):
    token: str

    @field_validator("token")
    @classmethod
    def token_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Push token cannot be empty")
        return v


class ScanIntervalUpdate(BaseModel):
    seconds: int

    @field_validator("seconds")
    @classmethod
    def positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Please enter a valid positive number.")
        return v


class ScanIntervalResponse(BaseModel):
    seconds: int
    is_default: bool


class AssignedTeachersUpdate(BaseModel):
    teacher_ids: List[str]


class TeacherListItem(BaseModel):
    id: str
    name: str
