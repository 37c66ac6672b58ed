from flask import Blueprint, g

from ..services.notification_service import NotificationService
from ..utils.decorators import login_required
from ..utils.responses import ok

bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@bp.get("")
@login_required
def list_notifications():
    items = [n.to_dict() for n in NotificationService.list_for(g.identity.subject_id)]
    return ok("Notifications retrieved successfully", {"notifications": items})


@bp.patch("/<nid>/read")
@login_required
def mark_read(nid):
    notification = NotificationService.mark_read(g.identity.subject_id, nid)
    return ok("Notification marked as read", {"notification": notification.to_dict()})


@bp.delete("/<nid>")
@login_required
def delete_notification(nid):
    NotificationService.delete(g.identity.subject_id, nid)
    return ok("Notification deleted successfully")


@bp.delete("")
@login_required
def delete_all_notifications():
    removed = NotificationService.delete_all(g.identity.subject_id)
    return ok("All notifications deleted successfully", {"count": removed})
