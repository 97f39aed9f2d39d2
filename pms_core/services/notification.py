import logging
from sqlalchemy.orm import Session

from pms_core.models.notification import WorkflowNotification
from pms_core.services.interfaces import NotificationSink, TransitionEvent
from pms_core.services.workflow_engine import TransitionHook

logger = logging.getLogger(__name__)


class NotificationService:
    """Persistent notification sink for workflow transitions."""

    def __init__(self, db: Session):
        self.db = db

    def dispatch(self, event: TransitionEvent) -> WorkflowNotification:
        notification = WorkflowNotification(
            entity_id=event.entity_id,
            from_status=event.from_status.value,
            to_status=event.to_status.value,
            actor_id=event.actor_id,
            message=f"Record {event.entity_id} moved from {event.from_status.value} to {event.to_status.value}",
        )
        self.db.add(notification)
        # Flushed, not committed: the notification rides on the caller's transaction
        self.db.flush()
        return notification


def notification_hook(sink: NotificationSink) -> TransitionHook:
    """After-hook that fires a TransitionEvent at ``sink``.

    Delivery is best effort: a failing sink is logged and never fails the transition.
    """
    def _hook(entity_id, from_status, to_status, actor_id):
        try:
            sink.dispatch(TransitionEvent(entity_id, from_status, to_status, actor_id))
        except Exception as e:
            logger.warning(f"Notification dispatch failed for {entity_id}: {e}", exc_info=True)
    return _hook
