# eyes/services/emotion_service.py
# Emotion history, dashboard aggregates and alert creation
#
# Entries are written by the classroom scanner under each parent's
# `emotions` node; everything here is read-side aggregation except
# record_emotion(), which also raises an alert for notable emotions.

import logging
from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from eyes.core.config import settings
from eyes.core.errors import NotFound, ValidationFailed
from eyes.db import paths
from eyes.db.store import Store
from eyes.models.emotion import EMOTION_VALUES, SUGGESTIONS, EmotionEntry
from eyes.models.user import ParentRecord

logger = logging.getLogger("eyes.emotions")

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def _sort_key(entry: EmotionEntry) -> datetime:
    return entry.time or EPOCH


def load_entries(store: Store, parent_id: str) -> List[EmotionEntry]:
    """All entries for one child, newest first."""
    data = store.get(paths.emotions_path(parent_id)) or {}
    entries = [
        EmotionEntry.from_node(key, node)
        for key, node in (data.items() if isinstance(data, dict) else [])
        if isinstance(node, dict)
    ]
    entries.sort(key=_sort_key, reverse=True)
    return entries


def history(store: Store, parent_id: str, day: Optional[date] = None) -> List[EmotionEntry]:
    """Known-type entries, newest first, optionally limited to one calendar day."""
    entries = [e for e in load_entries(store, parent_id) if e.is_known]
    if day is not None:
        entries = [e for e in entries if e.time and e.time.date() == day]
    return entries


def latest(store: Store, parent_id: str) -> Optional[EmotionEntry]:
    """Most recent entry that carries a real emotion."""
    for entry in load_entries(store, parent_id):
        if entry.is_known:
            return entry
    return None


def compute_stats(entries: List[EmotionEntry]) -> dict:
    """
    Counts for all five emotions plus a percentage breakdown
    (one decimal) of the ones that occurred.
    """
    counts: Dict[str, int] = {e: 0 for e in EMOTION_VALUES}
    for entry in entries:
        if entry.type in counts:
            counts[entry.type] += 1

    total = sum(counts.values())
    divisor = total or 1
    breakdown = [
        {
            "emotion": emotion,
            "count": count,
            "percentage": round(count / divisor * 100, 1),
        }
        for emotion, count in counts.items()
        if count > 0
    ]
    return {"counts": counts, "total": total, "breakdown": breakdown}


def marked_dates(entries: List[EmotionEntry]) -> List[str]:
    """Calendar days (YYYY-MM-DD) that have at least one entry, sorted."""
    return sorted({e.time.date().isoformat() for e in entries if e.time})


def class_overview(store: Store, name_filter: Optional[str] = None) -> dict:
    """
    Teacher dashboard: newest entry per child (whatever its type) plus a
    count of children currently in each known emotion.
    """
    parents = store.get(paths.parents_root()) or {}
    students = []
    for parent_id, node in parents.items():
        if not isinstance(node, dict):
            continue
        record = ParentRecord.from_node(parent_id, node)
        child_name = record.child_name or "Unknown"
        if name_filter and name_filter.lower() not in child_name.lower():
            continue
        entries = load_entries(store, parent_id)
        current = entries[0] if entries else None
        students.append({
            "parent_id": parent_id,
            "child_name": child_name,
            "latest_emotion": current.type if current else "Unknown",
            "time": current.time if current else None,
        })

    summary = {e: 0 for e in EMOTION_VALUES}
    for s in students:
        if s["latest_emotion"] in summary:
            summary[s["latest_emotion"]] += 1

    return {"students": students, "summary": summary}


def record_emotion(
    store: Store,
    parent_id: str,
    emotion: str,
    time: Optional[datetime] = None,
    confidence: Optional[float] = None,
) -> dict:
    """
    Append an emotion entry for a child. When the emotion is one of the
    configured alert emotions, also append an alert for parent and teacher.
    """
    if emotion not in EMOTION_VALUES:
        raise ValidationFailed(
            f"Emotion must be one of: {', '.join(EMOTION_VALUES)}.",
            title="Invalid Emotion",
        )

    parent_node = store.get(paths.parent_path(parent_id))
    if not isinstance(parent_node, dict):
        raise NotFound("Child not found.")

    child_name = ParentRecord.from_node(parent_id, parent_node).child_name
    when = time or datetime.now(timezone.utc)
    entry = EmotionEntry(
        id="",
        type=emotion,
        time=when,
        confidence=confidence,
        child_name=child_name,
    )
    entry.id = store.push(paths.emotions_path(parent_id), entry.to_node())

    alert_id = None
    if emotion in settings.alert_emotion_set:
        name = child_name or "Student"
        alert_id = store.push(paths.parent_alerts_path(parent_id), {
            "alert": f"{name} seems {emotion.lower()}.",
            "type": emotion,
            "suggestion": SUGGESTIONS.get(emotion, ""),
            "childName": name,
            "time": when.isoformat(),
            "seenParent": False,
            "seenTeacher": False,
        })
        logger.info("Raised %s alert %s for parent %s", emotion, alert_id, parent_id)

    return {"entry": entry, "alert_id": alert_id}
