# eyes/api/v1/endpoints/users.py
# Profile and settings for the signed-in user
#
# GET   /users/me                 -- role + profile
# PATCH /users/me/name            -- first / last name
# PUT   /users/me/push-token      -- register the device push token
# GET   /users/me/scan-interval   -- teacher scan interval (seconds)
# PUT   /users/me/scan-interval   -- teacher only
# PUT   /users/me/teachers        -- parent picks the teachers they chat with
# GET   /users/teachers           -- teacher directory

from typing import List

from fastapi import APIRouter, Depends

from eyes.core.config import settings
from eyes.core.dependencies import CurrentUser, require_login, require_member, require_parent
from eyes.core.errors import Forbidden, NotFound, ValidationFailed
from eyes.db import paths
from eyes.db.session import get_store
from eyes.db.store import Store
from eyes.models.user import ParentRecord, TeacherRecord
from eyes.schemas.auth import MessageResponse
from eyes.schemas.user import (
    AssignedTeachersUpdate,
    NameUpdate,
    ProfileResponse,
    PushTokenUpdate,
    ScanIntervalResponse,
    ScanIntervalUpdate,
    TeacherListItem,
)
from eyes.services.roles import TEACHER, profile_path

router = APIRouter()


def _build_profile(user: CurrentUser, store: Store) -> ProfileResponse:
    node = store.get(profile_path(user.role, user.id)) or {}
    if user.role == TEACHER:
        t = TeacherRecord.from_node(user.id, node)
        return ProfileResponse(
            id=user.id,
            role=user.role,
            email=t.email,
            first_name=t.first_name,
            last_name=t.last_name,
            scan_interval=t.scan_interval,
            has_push_token=bool(t.push_token),
        )
    p = ParentRecord.from_node(user.id, node)
    return ProfileResponse(
        id=user.id,
        role=user.role,
        email=p.email,
        first_name=p.first_name,
        last_name=p.last_name,
        child_name=p.child_name,
        assigned_teachers=p.assigned_teachers,
        has_push_token=bool(p.push_token),
    )


@router.get("/me", response_model=ProfileResponse, summary="Get own role and profile")
def get_me(
    current_user: CurrentUser = Depends(require_login),
    store: Store = Depends(get_store),
):
    if current_user.role is None:
        raise NotFound("No role found for this account.", title="No Role Found")
    return _build_profile(current_user, store)


@router.patch("/me/name", response_model=ProfileResponse, summary="Update first and last name")
def update_name(
    payload: NameUpdate,
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    first = payload.first_name.strip()
    last = payload.last_name.strip()
    if not first or not last:
        raise ValidationFailed("First and last name are required.", title="Missing Name")

    store.update(profile_path(current_user.role, current_user.id), {
        "firstName": first,
        "lastName": last,
    })
    return _build_profile(current_user, store)


@router.put("/me/push-token", response_model=MessageResponse, summary="Register device push token")
def register_push_token(
    payload: PushTokenUpdate,
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    path = paths.join(profile_path(current_user.role, current_user.id), "fcmToken")
    store.set(path, payload.token)
    return MessageResponse(message=f"Saved push token to {path}")


@router.get("/me/scan-interval", response_model=ScanIntervalResponse, summary="Get scan interval")
def get_scan_interval(
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    if not current_user.is_teacher:
        raise Forbidden("Only teachers can set scan interval.", title="Error")
    value = store.get(paths.join(paths.teacher_path(current_user.id), "scanInterval"))
    if isinstance(value, int) and value > 0:
        return ScanIntervalResponse(seconds=value, is_default=False)
    return ScanIntervalResponse(seconds=settings.default_scan_interval_seconds, is_default=True)


@router.put("/me/scan-interval", response_model=ScanIntervalResponse, summary="Set scan interval (teacher only)")
def set_scan_interval(
    payload: ScanIntervalUpdate,
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    if not current_user.is_teacher:
        raise Forbidden("Only teachers can set scan interval.", title="Error")
    store.update(paths.teacher_path(current_user.id), {"scanInterval": payload.seconds})
    return ScanIntervalResponse(seconds=payload.seconds, is_default=False)


@router.put("/me/teachers", response_model=ProfileResponse, summary="Choose assigned teachers (parent only)")
def set_assigned_teachers(
    payload: AssignedTeachersUpdate,
    current_user: CurrentUser = Depends(require_parent),
    store: Store = Depends(get_store),
):
    teachers = store.get(paths.teachers_root()) or {}
    unknown = [t for t in payload.teacher_ids if t not in teachers]
    if unknown:
        raise ValidationFailed(f"Unknown teacher(s): {', '.join(unknown)}.", title="Invalid Teacher")

    # keep first occurrence order, drop duplicates
    chosen = list(dict.fromkeys(payload.teacher_ids))
    store.set(paths.join(paths.parent_path(current_user.id), "assignedTeachers"), chosen or None)
    return _build_profile(current_user, store)


@router.get("/teachers", response_model=List[TeacherListItem], summary="List teachers")
def list_teachers(
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    teachers = store.get(paths.teachers_root()) or {}
    return [
        TeacherListItem(id=tid, name=TeacherRecord.from_node(tid, node).display_name)
        for tid, node in teachers.items()
        if isinstance(node, dict)
    ]
