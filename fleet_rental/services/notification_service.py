"""
Notification fan-out and real-time push.

Persisting and pushing notifications is best-effort: the mutation that
triggered them has already been stored and is authoritative, so every
failure here is logged and swallowed.
"""
import logging
from typing import Iterable, Optional

from fleet_rental.exceptions import NotFound
from fleet_rental.models.notification import Notification
from fleet_rental.models.rental import RentalRequest
from fleet_rental.models.user import User
from fleet_rental.services import common
from fleet_rental.utils.constants import Event, LOCATION_RENTAL, LOCATION_USER, NOTIFICATION_LIST_LIMIT

logger = logging.getLogger(__name__)


class NotificationService:

    # --------------- dispatch ---------------
    @staticmethod
    def notify(recipients: Iterable[User], title: str, location: str, location_id: str) -> list[Notification]:
        """
        Persist one notification per recipient, then push each one to its
        recipient's private channel. Returns the rows that were stored.
        """
        created: list[Notification] = []
        col = common._store().notifications
        for user in recipients:
            try:
                doc = col.insert({
                    "title": title,
                    "location": location,
                    "locationId": location_id,
                    "userId": user.id,
                    "isOpened": False,
                })
            except Exception:
                logger.exception("Failed to create notification for user %s", user.id)
                continue
            created.append(Notification.from_doc(doc))

        for notif in created:
            NotificationService.push_realtime(notif)
        return created

    @staticmethod
    def push_realtime(notification: Notification) -> None:
        try:
            delivered = common._channels().emit(
                notification.user_id, Event.NEW_NOTIFICATION, notification.to_dict()
            )
            logger.info("Notifying room %s: %s (delivered to %d connection(s))",
                        notification.user_id, notification.title, delivered)
        except Exception:
            logger.exception("Failed to push notification %s", notification.id)

    @staticmethod
    def broadcast(event: str, payload: dict) -> None:
        try:
            common._channels().emit_all(event, payload)
        except Exception:
            logger.exception("Failed to broadcast %s", event)

    # --------------- triggers ---------------
    @staticmethod
    def user_registered(user: User) -> list[Notification]:
        created = []
        try:
            created = NotificationService.notify(
                common.admins(), f"New user registered: {user.username}", LOCATION_USER, user.id
            )
        except Exception:
            logger.exception("Failed to create admin registration notifications")
        NotificationService.broadcast(
            Event.USERS_UPDATED, {"action": "register", "user": {"id": user.id, "username": user.username}}
        )
        return created

    @staticmethod
    def rental_created(rental: RentalRequest, requester: Optional[User]) -> list[Notification]:
        created = []
        who = requester.username if requester else "a guest"
        try:
            created = NotificationService.notify(
                common.admins(), f"New rental request from {who}", LOCATION_RENTAL, rental.id
            )
        except Exception:
            logger.exception("Failed to create rental request notifications")
        NotificationService.broadcast(Event.RENTALS_UPDATED, {"action": "create", "rentalId": rental.id})
        return created

    @staticmethod
    def rental_updated(rental: RentalRequest, previous_status: str, actor_id: str,
                       actor_is_admin: bool) -> list[Notification]:
        """
        Status changed by an admin -> tell the requester (never notify yourself).
        Cancelled by the requester -> tell every admin.
        Any update -> rentalsUpdated broadcast.
        """
        created = []
        try:
            if rental.status != previous_status:
                if actor_is_admin:
                    owner = common.find_user(rental.requester_id)
                    if owner and owner.id != actor_id:
                        created = NotificationService.notify(
                            [owner], f"Your rental request has been {rental.status}",
                            LOCATION_RENTAL, rental.id,
                        )
                else:
                    requester = common.find_user(actor_id)
                    who = requester.username if requester else actor_id
                    created = NotificationService.notify(
                        common.admins(), f"Rental request from {who} has been cancelled",
                        LOCATION_RENTAL, rental.id,
                    )
        except Exception:
            logger.exception("Failed to create rental update notifications")
        NotificationService.broadcast(
            Event.RENTALS_UPDATED, {"action": "update", "rentalId": rental.id, "status": rental.status}
        )
        return created

    # --------------- recipient operations ---------------
    @staticmethod
    def list_for(user_id: str, limit: int = NOTIFICATION_LIST_LIMIT) -> list[Notification]:
        docs = common._store().notifications.find_many(
            {"userId": user_id}, sort=[("createdAt", -1)], limit=limit
        )
        return [Notification.from_doc(d) for d in docs]

    @staticmethod
    def mark_read(user_id: str, notification_id: str) -> Notification:
        doc = common._store().notifications.update_one(
            {"id": notification_id, "userId": user_id}, {"isOpened": True}
        )
        if doc is None:
            raise NotFound("Notification not found")
        return Notification.from_doc(doc)

    @staticmethod
    def delete(user_id: str, notification_id: str) -> None:
        if common._store().notifications.delete_one({"id": notification_id, "userId": user_id}) is None:
            raise NotFound("Notification not found")

    @staticmethod
    def delete_all(user_id: str) -> int:
        return common._store().notifications.delete_many({"userId": user_id})
