# eyes/models/emotion.py
# Emotion entries recorded under Users/Teachers/{classId}/Parents/{parentId}/emotions

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class Emotion(str, Enum):
    """The five affects the scanner reports."""
    ANGRY = "Angry"
    HAPPY = "Happy"
    NEUTRAL = "Neutral"
    SAD = "Sad"
    SURPRISED = "Surprised"


EMOTION_VALUES = [e.value for e in Emotion]

# Shown to parent and teacher alongside an alert
SUGGESTIONS = {
    "Angry": "Give the child a quiet space and a few minutes to calm down.",
    "Sad": "Check in gently and offer comfort or a favourite activity.",
    "Surprised": "Explain what just happened in simple words.",
    "Happy": "Praise the moment and keep the activity going.",
    "Neutral": "No action needed.",
}


def parse_time(value: Any) -> Optional[datetime]:
    """
    Entry times arrive either as epoch milliseconds or as ISO-8601 strings,
    depending on which device wrote them. Naive times are taken as UTC.
    """
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


class EmotionEntry(BaseModel):
    """One detected affect. `type` stays a plain string: old entries may hold 'Unknown'."""
    id: str
    type: str
    time: Optional[datetime] = None
    confidence: Optional[float] = None
    child_name: Optional[str] = None

    @property
    def is_known(self) -> bool:
        return self.type in EMOTION_VALUES

    @classmethod
    def from_node(cls, entry_id: str, node: dict) -> "EmotionEntry":
        return cls(
            id=entry_id,
            type=str(node.get("type") or "Unknown"),
            time=parse_time(node.get("time")),
            confidence=node.get("confidence"),
            child_name=node.get("child_name"),
        )

    def to_node(self) -> dict:
        node = {
            "type": self.type,
            "time": self.time.isoformat() if self.time else None,
            "confidence": self.confidence,
            "child_name": self.child_name,
        }
        return {k: v for k, v in node.items() if v is not None}
