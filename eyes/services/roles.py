# eyes/services/roles.py
# Role resolution: a user is a teacher or a parent depending on which subtree
# holds their record. Checked live on every request -- never cached.

from typing import Optional

from eyes.db import paths
from eyes.db.store import Store

TEACHER = "teacher"
PARENT = "parent"


def resolve_role(store: Store, user_id: str) -> Optional[str]:
    """Teacher path first, then the class parents; None when neither exists."""
    if not user_id:
        return None
    if store.exists(paths.teacher_path(user_id)):
        return TEACHER
    if store.exists(paths.parent_path(user_id)):
        return PARENT
    return None


def profile_path(role: str, user_id: str) -> str:
    if role == TEACHER:
        return paths.teacher_path(user_id)
    if role == PARENT:
        return paths.parent_path(user_id)
    raise ValueError(f"Unknown role '{role}'")
