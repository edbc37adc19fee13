# eyes/models/alert.py
# Emotion alerts stored under Users/Teachers/{classId}/Alerts/{parentId}/{alertId}
# Parent and teacher acknowledge independently (seenParent / seenTeacher)

from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from eyes.models.emotion import parse_time

SEEN_FIELDS = {
    "teacher": "seenTeacher",
    "parent": "seenParent",
}


def seen_field(role: str) -> str:
    """Which seen flag belongs to the given audience."""
    try:
        return SEEN_FIELDS[role]
    except KeyError:
        raise ValueError(f"No alert audience for role '{role}'")


class AlertEntry(BaseModel):
    id: str
    parent_id: str
    alert: Optional[str] = None
    type: Optional[str] = None
    suggestion: Optional[str] = None
    child_name: Optional[str] = None
    time: Optional[datetime] = None
    seen_parent: bool = False
    seen_teacher: bool = False

    @classmethod
    def from_node(cls, parent_id: str, alert_id: str, node: dict) -> "AlertEntry":
        return cls(
            id=alert_id,
            parent_id=parent_id,
            alert=node.get("alert"),
            type=node.get("type"),
            suggestion=node.get("suggestion"),
            child_name=node.get("childName"),
            time=parse_time(node.get("time")),
            seen_parent=bool(node.get("seenParent")),
            seen_teacher=bool(node.get("seenTeacher")),
        )

    def is_seen_by(self, role: str) -> bool:
        return self.seen_teacher if seen_field(role) == "seenTeacher" else self.seen_parent

    def is_pending_for(self, role: str) -> bool:
        """An alert needs delivering when it is complete and the audience has not seen it."""
        return bool(self.alert) and bool(self.type) and not self.is_seen_by(role)
