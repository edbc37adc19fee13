# eyes/api/v1/endpoints/auth.py
# Sign-up, sign-in and password reset, driven through the identity provider
#
# POST /auth/parents/signup           -- create parent account, email code sent
# POST /auth/parents/verify           -- check code, write parent + child record
# POST /auth/teachers/signup          -- create teacher account, email code sent
# POST /auth/teachers/verify          -- check code, write teacher record
# POST /auth/signin                   -- password sign-in, returns session id
# POST /auth/password-reset           -- send reset code by email
# POST /auth/password-reset/complete  -- set the new password with the code

import logging

from fastapi import APIRouter, Depends

from eyes.core.errors import IdentityProviderError, ValidationFailed
from eyes.db import paths
from eyes.db.session import get_store
from eyes.db.store import Store
from eyes.schemas.auth import (
    MessageResponse,
    ParentSignUpRequest,
    ParentVerifyRequest,
    PasswordResetComplete,
    PasswordResetRequest,
    PasswordResetStarted,
    SessionResponse,
    SignInRequest,
    SignUpStarted,
    TeacherSignUpRequest,
    TeacherVerifyRequest,
)
from eyes.services.identity_provider import FlowResult, IdentityProvider, get_identity_provider
from eyes.services.roles import PARENT, TEACHER, resolve_role

logger = logging.getLogger("eyes.auth")

router = APIRouter()

VERIFICATION_FAILED = "Verification failed. Please try again."


# ── Helpers ───────────────────────────────────────────────────────────────────

def _check_parent_form(payload: ParentSignUpRequest) -> None:
    if not payload.child_name and not payload.email and not payload.password:
        raise ValidationFailed(
            "Please complete all fields and scan your child's face.",
            title="Missing Information",
        )
    if not payload.child_name.strip():
        raise ValidationFailed("Please enter your child's name.", title="Missing Child Name")
    if not payload.email.strip():
        raise ValidationFailed("Please enter your email address.", title="Missing Email")
    if not payload.password:
        raise ValidationFailed("Please enter your password.", title="Missing Password")
    if not payload.face_image_base64 or not payload.filename:
        raise ValidationFailed("Capture and validate your face first.", title="Missing Face Scan")


def _check_teacher_form(payload: TeacherSignUpRequest) -> None:
    if not payload.email and not payload.password:
        raise ValidationFailed("Please complete all fields.", title="Missing Information")
    if not payload.email.strip():
        raise ValidationFailed("Please enter your email address.", title="Missing Email")
    if not payload.password:
        raise ValidationFailed("Please enter your password.", title="Missing Password")


def _start_sign_up(provider: IdentityProvider, email: str, password: str) -> SignUpStarted:
    try:
        created = provider.create_sign_up(email.strip(), password)
        prepared = provider.prepare_email_verification(created.id, created.client_token)
    except IdentityProviderError as exc:
        if "identifier is invalid" in exc.message:
            raise ValidationFailed("Please enter a valid email address.", title="Invalid Email")
        raise IdentityProviderError(exc.message, title="Sign Up Error", provider_status=exc.provider_status)
    return SignUpStarted(sign_up_id=created.id, client_token=prepared.client_token)


def _verify(provider: IdentityProvider, payload) -> FlowResult:
    try:
        result = provider.attempt_email_verification(
            payload.sign_up_id, payload.code, payload.client_token
        )
    except IdentityProviderError:
        raise IdentityProviderError(VERIFICATION_FAILED, title="Verification Failed")
    if not result.is_complete or not result.created_user_id:
        raise IdentityProviderError(VERIFICATION_FAILED, title="Verification Failed")
    return result


# ── Parent sign-up ────────────────────────────────────────────────────────────

@router.post("/parents/signup", response_model=SignUpStarted, status_code=201, summary="Start parent sign-up")
def parent_signup(
    payload: ParentSignUpRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    _check_parent_form(payload)
    return _start_sign_up(provider, payload.email, payload.password)


@router.post("/parents/verify", response_model=SessionResponse, summary="Verify parent email and save profile")
def parent_verify(
    payload: ParentVerifyRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
    store: Store = Depends(get_store),
):
    result = _verify(provider, payload)

    parent_id = result.created_user_id
    store.set(paths.parent_path(parent_id), {
        "childName": payload.child_name.strip(),
        "email": payload.email.strip(),
        "clerkId": parent_id,
        "profilePictureFilename": payload.filename,
        "faceRecognition": {
            "filename": payload.filename,
            "imageData": payload.face_image_base64,
        },
    })
    logger.info("Registered parent %s", parent_id)
    return SessionResponse(
        user_id=parent_id, session_id=result.created_session_id,
        session_token=result.session_token, role=PARENT,
    )


# ── Teacher sign-up ───────────────────────────────────────────────────────────

@router.post("/teachers/signup", response_model=SignUpStarted, status_code=201, summary="Start teacher sign-up")
def teacher_signup(
    payload: TeacherSignUpRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    _check_teacher_form(payload)
    return _start_sign_up(provider, payload.email, payload.password)


@router.post("/teachers/verify", response_model=SessionResponse, summary="Verify teacher email and save profile")
def teacher_verify(
    payload: TeacherVerifyRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
    store: Store = Depends(get_store),
):
    result = _verify(provider, payload)

    teacher_id = result.created_user_id
    store.set(paths.teacher_path(teacher_id), {
        "email": payload.email.strip(),
        "clerkId": teacher_id,
    })
    logger.info("Registered teacher %s", teacher_id)
    return SessionResponse(
        user_id=teacher_id, session_id=result.created_session_id,
        session_token=result.session_token, role=TEACHER,
    )


# ── Sign-in ───────────────────────────────────────────────────────────────────

@router.post("/signin", response_model=SessionResponse, summary="Sign in with email and password")
def signin(
    payload: SignInRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
    store: Store = Depends(get_store),
):
    try:
        result = provider.sign_in(payload.email, payload.password)
    except IdentityProviderError as exc:
        raise IdentityProviderError(exc.message, title="Login Failed")

    if not result.is_complete:
        raise IdentityProviderError(
            "Sign-in could not be completed. Please try again.", title="Login Failed"
        )

    user_id = result.created_user_id or ""
    return SessionResponse(
        user_id=user_id,
        session_id=result.created_session_id,
        session_token=result.session_token,
        role=resolve_role(store, user_id),
    )


# ── Password reset ────────────────────────────────────────────────────────────

@router.post("/password-reset", response_model=PasswordResetStarted, summary="Email a password reset code")
def password_reset(
    payload: PasswordResetRequest,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    try:
        result = provider.start_password_reset(payload.email)
    except IdentityProviderError as exc:
        raise IdentityProviderError(
            exc.message or "Unable to send reset link. Please try again.", title="Error"
        )
    return PasswordResetStarted(sign_in_id=result.id, client_token=result.client_token)


@router.post("/password-reset/complete", response_model=MessageResponse, summary="Set a new password")
def password_reset_complete(
    payload: PasswordResetComplete,
    provider: IdentityProvider = Depends(get_identity_provider),
):
    failed = IdentityProviderError(
        "Password reset failed. Please check the code and try again.", title="Error"
    )
    try:
        result = provider.complete_password_reset(
            payload.sign_in_id, payload.code, payload.new_password, payload.client_token
        )
    except IdentityProviderError:
        raise failed
    if not result.is_complete:
        raise failed
    return MessageResponse(message="Your password has been reset successfully. Please login again.")
