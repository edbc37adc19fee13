# eyes/services/alert_service.py
# Emotion alert delivery
#
# Each parent has an alert list; only its newest entry is considered. An
# alert is pending for an audience (teacher / parent) until that audience's
# seen flag is set. Dispatch = flag it seen, then push to the audience.

import logging
from typing import List, Optional

from eyes.db import paths
from eyes.db.store import Store
from eyes.models.alert import AlertEntry, seen_field
from eyes.services import notification_service
from eyes.services.notification_service import PushSender
from eyes.services.roles import PARENT, TEACHER

logger = logging.getLogger("eyes.alerts")

PUSH_TITLES = {
    TEACHER: "New Emotion Alert 🧠",
    PARENT: "Your Child's Emotion Alert",
}


def latest_alert(parent_id: str, alerts: Optional[dict]) -> Optional[AlertEntry]:
    """Newest alert in one parent's list. Push keys sort in creation order."""
    if not isinstance(alerts, dict) or not alerts:
        return None
    key = max(alerts.keys())
    node = alerts[key]
    if not isinstance(node, dict):
        return None
    return AlertEntry.from_node(parent_id, key, node)


def pending_alerts(store: Store, role: str, user_id: str) -> List[AlertEntry]:
    """
    Teacher: newest alert of every parent in the class, when unseen by teachers.
    Parent:  newest alert of their own list, when unseen by the parent.
    """
    if role == TEACHER:
        all_alerts = store.get(paths.alerts_root()) or {}
        candidates = [
            latest_alert(parent_id, alerts)
            for parent_id, alerts in all_alerts.items()
        ]
    elif role == PARENT:
        candidates = [latest_alert(user_id, store.get(paths.parent_alerts_path(user_id)))]
    else:
        return []
    return [a for a in candidates if a is not None and a.is_pending_for(role)]


def acknowledge(store: Store, role: str, parent_id: str, alert_id: str) -> bool:
    """Set the audience's seen flag. Returns False when the alert does not exist."""
    path = paths.alert_path(parent_id, alert_id)
    if not store.exists(path):
        return False
    store.set(paths.join(path, seen_field(role)), True)
    return True


def push_payload(role: str, alert: AlertEntry) -> dict:
    return {
        "title": PUSH_TITLES[role],
        "body": f"{alert.child_name or 'Student'}: {alert.alert}",
        "data": {
            "emotion": alert.type,
            "suggestion": alert.suggestion or "",
            "parentId": alert.parent_id,
            "alertId": alert.id,
        },
    }


def _token_for(store: Store, role: str, user_id: str) -> Optional[str]:
    base = paths.teacher_path(user_id) if role == TEACHER else paths.parent_path(user_id)
    return store.get(paths.join(base, "fcmToken"))


def dispatch(store: Store, sender: PushSender, role: str, user_id: str, alert: AlertEntry) -> bool:
    """Mark the alert seen for this audience, then push it to the user's device."""
    acknowledge(store, role, alert.parent_id, alert.id)
    payload = push_payload(role, alert)
    return notification_service.notify(
        sender,
        _token_for(store, role, user_id),
        notification_type="emotion_alert",
        title=payload["title"],
        body=payload["body"],
        data=payload["data"],
    )


def dispatch_pending(store: Store, sender: PushSender, role: str, user_id: str) -> List[AlertEntry]:
    """Deliver everything pending for one user. Returns the alerts handled."""
    handled = pending_alerts(store, role, user_id)
    for alert in handled:
        dispatch(store, sender, role, user_id, alert)
    return handled


def sweep(store: Store, sender: PushSender) -> int:
    """
    Deliver pending alerts to every audience: all registered teachers for
    each parent's newest alert, and each owning parent for their own.
    Returns the number of pushes the gateway accepted.
    """
    delivered = 0

    # seenTeacher is shared by every teacher of the class: flag once, push to all
    teacher_ids = list((store.get(paths.teachers_root()) or {}).keys())
    for alert in pending_alerts(store, TEACHER, ""):
        acknowledge(store, TEACHER, alert.parent_id, alert.id)
        payload = push_payload(TEACHER, alert)
        delivered += notification_service.notify_many(
            sender,
            [_token_for(store, TEACHER, t) for t in teacher_ids],
            notification_type="emotion_alert",
            title=payload["title"],
            body=payload["body"],
            data=payload["data"],
        )

    all_alerts = store.get(paths.alerts_root()) or {}
    for parent_id in list(all_alerts.keys()):
        for alert in pending_alerts(store, PARENT, parent_id):
            if dispatch(store, sender, PARENT, parent_id, alert):
                delivered += 1

    return delivered
