# eyes/api/v1/endpoints/alerts.py
# Emotion alerts for the signed-in teacher or parent
#
# GET  /alerts                                   -- pending alerts for my audience
# POST /alerts/{parent_id}/{alert_id}/seen       -- acknowledge one alert
# POST /alerts/dispatch                          -- push my pending alerts now

from fastapi import APIRouter, Depends

from eyes.core.dependencies import CurrentUser, require_member
from eyes.core.errors import Forbidden, NotFound
from eyes.db.session import get_store
from eyes.db.store import Store
from eyes.models.alert import AlertEntry
from eyes.schemas.alert import AlertListResponse, AlertResponse, DispatchResponse
from eyes.schemas.auth import MessageResponse
from eyes.services import alert_service
from eyes.services.notification_service import PushSender, get_push_sender

router = APIRouter()


def _to_response(alert: AlertEntry) -> AlertResponse:
    return AlertResponse(
        id=alert.id,
        parent_id=alert.parent_id,
        alert=alert.alert or "",
        type=alert.type or "",
        suggestion=alert.suggestion or "",
        child_name=alert.child_name,
        time=alert.time,
    )


@router.get("", response_model=AlertListResponse, summary="Pending alerts")
def list_pending(
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    alerts = alert_service.pending_alerts(store, current_user.role, current_user.id)
    return AlertListResponse(alerts=[_to_response(a) for a in alerts])


@router.post("/dispatch", response_model=DispatchResponse, summary="Push pending alerts to my device")
def dispatch(
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
    sender: PushSender = Depends(get_push_sender),
):
    handled = alert_service.dispatch_pending(store, sender, current_user.role, current_user.id)
    return DispatchResponse(dispatched=len(handled))


@router.post("/{parent_id}/{alert_id}/seen", response_model=MessageResponse, summary="Acknowledge an alert")
def acknowledge(
    parent_id: str,
    alert_id: str,
    current_user: CurrentUser = Depends(require_member),
    store: Store = Depends(get_store),
):
    if current_user.is_parent and current_user.id != parent_id:
        raise Forbidden("You can only acknowledge your own alerts.")
    if not alert_service.acknowledge(store, current_user.role, parent_id, alert_id):
        raise NotFound("Alert not found.")
    return MessageResponse(message="Alert marked as seen.")
