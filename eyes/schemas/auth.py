# eyes/schemas/auth.py
# Pydantic request/response models for sign-up, sign-in and password reset

from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator


# ── Sign-up ───────────────────────────────────────────────────────────────────

class ParentSignUpRequest(BaseModel):
    """
    Fields are optional at the schema level: the missing-field checks run in
    a fixed order so the user gets the same one-at-a-time messages the app shows.
    """
    child_name: str = ""
    email: str = ""
    password: str = ""
    face_image_base64: Optional[str] = None
    filename: Optional[str] = None


class TeacherSignUpRequest(BaseModel):
    email: str = ""
    password: str = ""


class SignUpStarted(BaseModel):
    """Email code sent -- the client shows the code entry step next."""
    sign_up_id: str
    client_token: Optional[str] = None
    state: str = "pending"


class VerifyRequest(BaseModel):
    sign_up_id: str
    code: str
    client_token: Optional[str] = None

    @field_validator("code")
    @classmethod
    def code_not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Verification code cannot be empty")
        return v


class ParentVerifyRequest(VerifyRequest):
    """The parent record is written only after verification, so the form travels again."""
    child_name: str
    email: str
    filename: str
    face_image_base64: str


class TeacherVerifyRequest(VerifyRequest):
    email: str


# ── Sessions ──────────────────────────────────────────────────────────────────

class SessionResponse(BaseModel):
    user_id: str
    session_id: Optional[str] = None
    session_token: Optional[str] = None  # bearer token for the rest of the API
    role: Optional[str] = None


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


# ── Password reset ────────────────────────────────────────────────────────────

class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetStarted(BaseModel):
    sign_in_id: str
    client_token: Optional[str] = None
    message: str = "A password reset code has been sent to your email."


class PasswordResetComplete(BaseModel):
    sign_in_id: str
    code: str
    new_password: str
    client_token: Optional[str] = None

    @field_validator("code", "new_password")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Please enter the reset code and your new password.")
        return v


# ── Generic Message ───────────────────────────────────────────────────────────

class MessageResponse(BaseModel):
    message: str
