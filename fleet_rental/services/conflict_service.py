"""Rental availability: does an approved booking already occupy a period?"""
import threading
from datetime import datetime
from typing import Optional

from fleet_rental.models.rental import RentalRequest
from fleet_rental.services import common
from fleet_rental.utils.constants import RentalStatus


class ConflictService:
    """
    Overlap checks against approved rentals.

    ``has_overlap`` is a pure read. Callers that check and then write must
    hold ``vehicle_lock(vehicle_id)`` across both steps, otherwise two
    concurrent approvals for the same car can both pass the check.

    Only take the lock for a vehicle that exists, and re-check it once the
    lock is held. ``drop_lock`` runs when the vehicle is deleted.
    """

    _locks: dict[str, threading.Lock] = {}
    _locks_guard = threading.Lock()

    @staticmethod
    def vehicle_lock(vehicle_id: str) -> threading.Lock:
        with ConflictService._locks_guard:
            lock = ConflictService._locks.get(vehicle_id)
            if lock is None:
                lock = ConflictService._locks[vehicle_id] = threading.Lock()
            return lock

    @staticmethod
    def drop_lock(vehicle_id: str) -> None:
        """Forget a deleted vehicle's lock. Ids are never reused."""
        with ConflictService._locks_guard:
            ConflictService._locks.pop(vehicle_id, None)

    @staticmethod
    def approved_rentals(vehicle_id: str) -> list[RentalRequest]:
        docs = common._store().rentals.find_many(
            {"vehicleId": vehicle_id, "status": RentalStatus.APPROVED}
        )
        return [RentalRequest.from_doc(d) for d in docs]

    @staticmethod
    def has_overlap(vehicle_id: str, start: datetime, end: datetime,
                    exclude_id: Optional[str] = None) -> bool:
        """
        True if an approved rental of `vehicle_id` other than `exclude_id`
        intersects [start, end]. Assumes start < end and that the vehicle
        exists; both are the caller's job.
        """
        for r in ConflictService.approved_rentals(vehicle_id):
            if r.id == exclude_id:
                continue
            if r.overlaps(start, end):
                return True
        return False

    @staticmethod
    def booked_vehicle_ids(start: datetime, end: datetime) -> set[str]:
        """Ids of every vehicle with an approved rental intersecting [start, end]."""
        docs = common._store().rentals.find_many({
            "status": RentalStatus.APPROVED,
            "startDate": {"$lte": end},
            "endDate": {"$gte": start},
        })
        return {d["vehicleId"] for d in docs}
