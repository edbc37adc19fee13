# eyes/models/user.py
# Denormalized user records
#
#   Users/Teachers/TeacherId/{teacherId}          TeacherRecord
#   Users/Teachers/{classId}/Parents/{parentId}   ParentRecord (one child per parent)
#
# A user's role is decided solely by which of the two subtrees holds the record.

from typing import List, Optional

from pydantic import BaseModel


class TeacherRecord(BaseModel):
    id: str
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    push_token: Optional[str] = None
    scan_interval: Optional[int] = None

    @property
    def display_name(self) -> str:
        if self.first_name:
            return f"{self.first_name} {self.last_name or ''}".strip()
        return "Teacher"

    @classmethod
    def from_node(cls, teacher_id: str, node: dict) -> "TeacherRecord":
        interval = node.get("scanInterval")
        return cls(
            id=teacher_id,
            email=node.get("email"),
            first_name=node.get("firstName"),
            last_name=node.get("lastName"),
            push_token=node.get("fcmToken"),
            scan_interval=interval if isinstance(interval, int) else None,
        )


class ParentRecord(BaseModel):
    id: str
    child_name: Optional[str] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_picture_filename: Optional[str] = None
    assigned_teachers: List[str] = []
    push_token: Optional[str] = None

    @classmethod
    def from_node(cls, parent_id: str, node: dict) -> "ParentRecord":
        assigned = node.get("assignedTeachers") or []
        if isinstance(assigned, dict):
            assigned = list(assigned.values())
        return cls(
            id=parent_id,
            child_name=node.get("childName"),
            email=node.get("email"),
            first_name=node.get("firstName"),
            last_name=node.get("lastName"),
            profile_picture_filename=node.get("profilePictureFilename"),
            assigned_teachers=[t for t in assigned if isinstance(t, str)],
            push_token=node.get("fcmToken"),
        )
