from __future__ import annotations

import logging

from fleet_rental.exceptions import NotFound, ValidationError
from fleet_rental.models.vehicle import Vehicle, VehicleView
from fleet_rental.services import common
from fleet_rental.services.conflict_service import ConflictService
from fleet_rental.services.notification_service import NotificationService
from fleet_rental.utils.constants import Event, VehicleStatus
from fleet_rental.utils.dates import iso
from fleet_rental.utils.validators import validate_vehicle

logger = logging.getLogger(__name__)


class VehicleService:
    """Vehicle catalogue: filter, create, update, delete."""

    @staticmethod
    def list_vehicles(status=None, make=None, model=None, start=None, end=None) -> list[VehicleView]:
        """
        Filter vehicles by stored status and make/model (case-insensitive,
        partial match), newest first.
        When both `start` and `end` are given, a vehicle with an approved
        rental intersecting that window is shown as "rented". The stored
        record is not modified.
        """
        flt = {}
        if status and status != "all":
            flt["status"] = status
        res = common._store().vehicles.find_many(flt, sort=[("createdAt", -1)])

        if make:
            kw = common._lc(make).strip()
            res = [v for v in res if kw in common._lc(v.get("make"))]
        if model:
            kw = common._lc(model).strip()
            res = [v for v in res if kw in common._lc(v.get("model"))]

        booked: set[str] = set()
        if start and end:
            try:
                d1, d2 = common.date_range(start, end)
            except ValueError:
                raise ValidationError(errors=[{"field": "dates", "message": "Invalid date"}])
            booked = ConflictService.booked_vehicle_ids(d1, d2)

        return [VehicleView.of(Vehicle.from_doc(v), v["id"] in booked) for v in res]

    @staticmethod
    def create_vehicle(payload: dict) -> Vehicle:
        clean = validate_vehicle(payload)
        clean.setdefault("status", VehicleStatus.AVAILABLE)
        car = Vehicle.from_doc(common._store().vehicles.insert(clean))
        NotificationService.broadcast(Event.CARS_UPDATED, {"action": "create", "car": car.to_dict()})
        return car

    @staticmethod
    def update_vehicle(vid: str, payload: dict) -> Vehicle:
        clean = validate_vehicle(payload, partial=True)
        doc = common._store().vehicles.update_one({"id": vid}, clean)
        if doc is None:
            raise NotFound("Car not found")
        car = Vehicle.from_doc(doc)
        NotificationService.broadcast(Event.CARS_UPDATED, {"action": "update", "car": car.to_dict()})
        return car

    @staticmethod
    def delete_vehicle(vid: str) -> tuple[Vehicle, int]:
        """
        Delete a vehicle and every rental request that references it.
        Returns the deleted vehicle and the number of rentals removed.
        The vehicle lock keeps new rentals from landing mid-cascade.
        Rentals go first so an interrupted cascade leaves the car in place
        and the delete can be retried.
        """
        common.get_vehicle(vid)
        with ConflictService.vehicle_lock(vid):
            common.get_vehicle(vid)
            removed = common._store().rentals.delete_many({"vehicleId": vid})
            doc = common._store().vehicles.delete_one({"id": vid})
            if doc is None:
                raise NotFound("Car not found")
        ConflictService.drop_lock(vid)

        logger.info("Deleted car %s and %d rental request(s)", vid, removed)
        NotificationService.broadcast(Event.CARS_UPDATED, {"action": "delete", "carId": vid})
        return Vehicle.from_doc(doc), removed

    @staticmethod
    def availability_calendar(vehicle_id: str) -> list[tuple[str, str]]:
        """
        Return (start, end) ISO strings for approved rentals of a vehicle.
        Used by clients to disable booked date ranges.
        """
        common.get_vehicle(vehicle_id)
        ranges = [
            (iso(r.start_date), iso(r.end_date))
            for r in ConflictService.approved_rentals(vehicle_id)
        ]
        ranges.sort(key=lambda t: t[0])
        return ranges
