# eyes/db/paths.py
# Path builders for the realtime database tree
#
#   Users/Teachers/TeacherId/{teacherId}                  teacher profile
#   Users/Teachers/{classId}/Parents/{parentId}           parent / child profile
#   Users/Teachers/{classId}/Parents/{parentId}/emotions  emotion entries
#   Users/Teachers/{classId}/Alerts/{parentId}/{alertId}  emotion alerts
#   Chats/{chatId}/{messageId}                            chat messages
#
# Nothing here is enforced by the database -- every writer goes through these
# helpers so the shape stays consistent.

from typing import Optional

from eyes.core.config import settings

USERS_ROOT = "Users/Teachers"
CHATS_ROOT = "Chats"


def _class(class_id: Optional[str]) -> str:
    return class_id or settings.class_id


def join(*parts: str) -> str:
    return "/".join(p.strip("/") for p in parts if p and p.strip("/"))


# ── Teachers ──────────────────────────────────────────────────────────────────

def teachers_root() -> str:
    return join(USERS_ROOT, "TeacherId")


def teacher_path(teacher_id: str) -> str:
    return join(teachers_root(), teacher_id)


# ── Parents ───────────────────────────────────────────────────────────────────

def class_root(class_id: Optional[str] = None) -> str:
    return join(USERS_ROOT, _class(class_id))


def parents_root(class_id: Optional[str] = None) -> str:
    return join(class_root(class_id), "Parents")


def parent_path(parent_id: str, class_id: Optional[str] = None) -> str:
    return join(parents_root(class_id), parent_id)


def emotions_path(parent_id: str, class_id: Optional[str] = None) -> str:
    return join(parent_path(parent_id, class_id), "emotions")


# ── Alerts ────────────────────────────────────────────────────────────────────

def alerts_root(class_id: Optional[str] = None) -> str:
    return join(class_root(class_id), "Alerts")


def parent_alerts_path(parent_id: str, class_id: Optional[str] = None) -> str:
    return join(alerts_root(class_id), parent_id)


def alert_path(parent_id: str, alert_id: str, class_id: Optional[str] = None) -> str:
    return join(parent_alerts_path(parent_id, class_id), alert_id)


# ── Chats ─────────────────────────────────────────────────────────────────────

def chat_path(chat_id: str) -> str:
    return join(CHATS_ROOT, chat_id)


def message_path(chat_id: str, message_id: str) -> str:
    return join(chat_path(chat_id), message_id)
