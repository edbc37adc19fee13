# eyes/api/v1/endpoints/emotions.py
# Emotion history and dashboards
#
# GET  /emotions/class                 -- teacher: latest emotion per child
# GET  /emotions/{parent_id}/history   -- known entries, newest first (?day=YYYY-MM-DD)
# GET  /emotions/{parent_id}/latest    -- most recent real emotion
# GET  /emotions/{parent_id}/stats     -- counts, breakdown, marked calendar days
# POST /emotions/{parent_id}           -- teacher (scanner): record an entry
#
# Teachers may read any child in the class; parents only their own child.

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from eyes.core.dependencies import CurrentUser, require_member, require_teacher
from eyes.core.errors import Forbidden, NotFound
from eyes.db import paths
from eyes.db.session import get_store
from eyes.db.store import Store
from eyes.models.emotion import EmotionEntry
from eyes.models.user import ParentRecord
from eyes.schemas.emotion import (
    ClassOverviewResponse,
    EmotionEntryResponse,
    EmotionHistoryResponse,
    EmotionStatsResponse,
    RecordEmotionRequest,
    RecordEmotionResponse,
)
from eyes.services import emotion_service

router = APIRouter()


def _child_for(store: Store, user: CurrentUser, parent_id: str) -> ParentRecord:
    """Load the child record after checking the caller may see it."""
    if user.is_parent and user.id != parent_id:
        raise Forbidden("You can only view your own child's emotions.")
    node = store.get(paths.parent_path(parent_id))
    if not isinstance(node, dict):
        raise NotFound("Child not found.")
    return ParentRecord.from_node(parent_id, node)


def _entry(entry: EmotionEntry) -> EmotionEntryResponse:
    return EmotionEntryResponse(**entry.model_dump())


@router.get("/class", response_model=ClassOverviewResponse, summary="Class overview (teacher only)")
def class_overview(
    name: Optional[str] = Query(None, description="Case-insensitive child name filter"),
    current_user: CurrentUser = Depends(require_teacher),
    store: Store = Depends(get_store),
):
    return emotion_service.class_overview(store, name_filter=name)


@router.get("/{parent_id}/history", response_model=EmotionHistoryResponse, summary="Emotion history for a child")
def emotion_history(
    parent_id: str,
    day: Optional[date] = Query(None, description="Only entries from this calendar day"),
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    child = _child_for(store, current_user, parent_id)
    entries = emotion_service.history(store, parent_id, day)
    return EmotionHistoryResponse(
        parent_id=parent_id,
        child_name=child.child_name,
        entries=[_entry(e) for e in entries],
    )


@router.get("/{parent_id}/latest", response_model=Optional[EmotionEntryResponse], summary="Latest emotion for a child")
def latest_emotion(
    parent_id: str,
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    _child_for(store, current_user, parent_id)
    entry = emotion_service.latest(store, parent_id)
    return _entry(entry) if entry else None


@router.get("/{parent_id}/stats", response_model=EmotionStatsResponse, summary="Emotion statistics for a child")
def emotion_stats(
    parent_id: str,
    day: Optional[date] = Query(None, description="Restrict counts to this calendar day"),
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    child = _child_for(store, current_user, parent_id)
    all_entries = emotion_service.history(store, parent_id)
    counted = all_entries if day is None else emotion_service.history(store, parent_id, day)
    stats = emotion_service.compute_stats(counted)
    return EmotionStatsResponse(
        parent_id=parent_id,
        child_name=child.child_name,
        marked_dates=emotion_service.marked_dates(all_entries),
        **stats,
    )


@router.post("/{parent_id}", response_model=RecordEmotionResponse, status_code=201, summary="Record an emotion (teacher only)")
def record_emotion(
    parent_id: str,
    payload: RecordEmotionRequest,
    current_user: CurrentUser = Depends(require_teacher),
    store: Store = Depends(get_store),
):
    result = emotion_service.record_emotion(
        store,
        parent_id,
        payload.type.value,
        time=payload.time,
        confidence=payload.confidence,
    )
    return RecordEmotionResponse(entry=_entry(result["entry"]), alert_id=result["alert_id"])
