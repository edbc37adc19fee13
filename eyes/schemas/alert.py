# eyes/schemas/alert.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class AlertResponse(BaseModel):
    id: str
    parent_id: str
    alert: str
    type: str
    suggestion: str = ""
    child_name: Optional[str] = None
    time: Optional[datetime] = None


class AlertListResponse(BaseModel):
    alerts: List[AlertResponse]


class DispatchResponse(BaseModel):
    dispatched: int
