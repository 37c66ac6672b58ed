"""Rental request orchestration: list, create, update and delete."""
from typing import Iterable, Optional

from fleet_rental.exceptions import ConflictError, Forbidden, InvalidDateRange, NotFound
from fleet_rental.models.rental import RentalRequest, RentalDetail
from fleet_rental.models.user import ExpandedUser
from fleet_rental.models.vehicle import Vehicle, VehicleRef, ExpandedVehicle
from fleet_rental.services import common
from fleet_rental.services.conflict_service import ConflictService
from fleet_rental.services.notification_service import NotificationService
from fleet_rental.services.state_machine import authorize_transition, effective_range
from fleet_rental.utils.constants import Event, RentalStatus
from fleet_rental.utils.dates import rental_days
from fleet_rental.utils.security import Identity
from fleet_rental.utils.validators import validate_rental, validate_rental_patch

EXPANDABLE = ("vehicle", "requester")


def _detail(rental: RentalRequest, expand: Iterable[str] = ()) -> RentalDetail:
    """Resolve relation fields: references unless explicitly expanded."""
    expand = set(expand)
    vehicle = VehicleRef(rental.vehicle_id)
    if "vehicle" in expand:
        doc = common._store().vehicles.get(rental.vehicle_id)
        if doc is not None:
            vehicle = ExpandedVehicle(Vehicle.from_doc(doc))
    requester = rental.requester_id
    if "requester" in expand and rental.requester_id:
        doc = common._store().users.get(rental.requester_id)
        if doc is not None:
            requester = ExpandedUser.from_doc(doc)
    return RentalDetail(rental=rental, vehicle=vehicle, requester=requester)


class RentalService:
    """
    Composes the conflict checker, the status state machine and the
    notification dispatcher. The per-vehicle lock is held from the
    overlap check until the write lands.
    """

    @staticmethod
    def list_rentals(actor: Identity, filters: Optional[dict] = None,
                     expand: Iterable[str] = ()) -> list[RentalDetail]:
        """Admins see everything; everyone else only their own requests. Newest first."""
        filters = filters or {}
        flt = {}
        if filters.get("status"):
            flt["status"] = filters["status"]
        if filters.get("vehicleId"):
            flt["vehicleId"] = filters["vehicleId"]
        if not actor.is_admin:
            flt["requesterId"] = actor.subject_id

        docs = common._store().rentals.find_many(flt, sort=[("createdAt", -1)])
        return [_detail(RentalRequest.from_doc(d), expand) for d in docs]

    @staticmethod
    def create_rental(actor: Optional[Identity], data: dict,
                      expand: Iterable[str] = ("vehicle",)) -> RentalDetail:
        clean = validate_rental(data)
        start, end = clean["startDate"], clean["endDate"]
        if end <= start:
            raise InvalidDateRange()

        status = clean.get("status", RentalStatus.PENDING)
        if status != RentalStatus.PENDING and not (actor and actor.is_admin):
            raise Forbidden("only admins may set a rental's status")

        common.get_vehicle(clean["vehicleId"])
        with ConflictService.vehicle_lock(clean["vehicleId"]):
            # re-read under the lock; the car may have been deleted meanwhile
            vehicle = common.get_vehicle(clean["vehicleId"])
            total = clean.get("totalCost")
            if total is None:
                total = round(vehicle.daily_rate * rental_days(start, end), 2)

            if ConflictService.has_overlap(vehicle.id, start, end):
                raise ConflictError()
            doc = common._store().rentals.insert({
                "requesterId": actor.subject_id if actor else None,
                "vehicleId": vehicle.id,
                "startDate": start,
                "endDate": end,
                "status": status,
                "notes": clean.get("notes"),
                "totalCost": total,
            })

        rental = RentalRequest.from_doc(doc)
        requester = common.find_user(rental.requester_id)
        NotificationService.rental_created(rental, requester)
        return _detail(rental, expand)

    @staticmethod
    def update_rental(actor: Identity, rental_id: str, patch: dict,
                      expand: Iterable[str] = ("vehicle",)) -> RentalDetail:
        existing = common.get_rental(rental_id)

        with ConflictService.vehicle_lock(existing.vehicle_id):
            # re-read under the lock; another writer may have landed first
            existing = common.get_rental(rental_id)
            authorize_transition(actor.role, actor.subject_id, existing, patch)
            clean = validate_rental_patch(patch)
            new_range = effective_range(existing, clean)

            new_status = clean.get("status", existing.status)
            becomes_approved = (new_status == RentalStatus.APPROVED
                                and existing.status != RentalStatus.APPROVED)
            if new_range or becomes_approved:
                start, end = new_range or (existing.start_date, existing.end_date)
                if ConflictService.has_overlap(existing.vehicle_id, start, end, exclude_id=existing.id):
                    raise ConflictError()

            changes = {k: v for k, v in clean.items() if k in ("status", "notes", "totalCost")}
            if new_range:
                changes["startDate"], changes["endDate"] = new_range
            doc = common._store().rentals.update_one({"id": existing.id}, changes)

        if doc is None:
            raise NotFound("Rental request not found")
        updated = RentalRequest.from_doc(doc)
        NotificationService.rental_updated(updated, existing.status, actor.subject_id, actor.is_admin)
        return _detail(updated, expand)

    @staticmethod
    def delete_rental(actor: Identity, rental_id: str) -> RentalRequest:
        """Admin-only; the HTTP boundary enforces the role."""
        doc = common._store().rentals.delete_one({"id": rental_id})
        if doc is None:
            raise NotFound("Rental request not found")
        NotificationService.broadcast(
            Event.RENTALS_UPDATED, {"action": "delete", "rentalId": rental_id, "by": actor.subject_id}
        )
        return RentalRequest.from_doc(doc)
