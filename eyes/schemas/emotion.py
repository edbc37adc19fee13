# eyes/schemas/emotion.py

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, field_validator

from eyes.models.emotion import Emotion


class EmotionEntryResponse(BaseModel):
    id: str
    type: str
    time: Optional[datetime] = None
    confidence: Optional[float] = None
    child_name: Optional[str] = None


class EmotionHistoryResponse(BaseModel):
    parent_id: str
    child_name: Optional[str] = None
    entries: List[EmotionEntryResponse]


class EmotionBreakdownItem(BaseModel):
    emotion: str
    count: int
    percentage: float


class EmotionStatsResponse(BaseModel):
    parent_id: str
    child_name: Optional[str] = None
    counts: Dict[str, int]
    total: int
    breakdown: List[EmotionBreakdownItem]
    marked_dates: List[str]


class StudentOverview(BaseModel):
    parent_id: str
    child_name: str
    latest_emotion: str
    time: Optional[datetime] = None


class ClassOverviewResponse(BaseModel):
    students: List[StudentOverview]
    summary: Dict[str, int]


class RecordEmotionRequest(BaseModel):
    type: Emotion
    time: Optional[datetime] = None
    confidence: Optional[float] = None

    @field_validator("confidence")
    @classmethod
    def confidence_range(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and not 0 <= v <= 100:
            raise ValueError("Confidence must be between 0 and 100")
        return v


class RecordEmotionResponse(BaseModel):
    entry: EmotionEntryResponse
    alert_id: Optional[str] = None
