"""
Unit tests for vehicle admin CRUD and catalogue listing. Focus on service-layer
behavior: validation, unique plates, cascade deletion and derived status.
"""

import pytest

from fleet_rental.exceptions import DuplicateKey, NotFound, ValidationError
from fleet_rental.services.vehicle_service import VehicleService
from fleet_rental.utils.dates import parse_when

PAYLOAD = {
    "make": "Toyota",
    "model": "Corolla",
    "year": 2022,
    "color": "White",
    "dailyRate": 55.0,
    "mileage": 12000,
    "licensePlate": " abc123 ",
}


def put_rental(store, vehicle_id, status="approved", start="2030-11-01", end="2030-11-05"):
    return store.rentals.insert({
        "requesterId": "u1", "vehicleId": vehicle_id, "startDate": parse_when(start),
        "endDate": parse_when(end), "status": status, "notes": None, "totalCost": 0.0,
    })["id"]


def test_admin_create_and_delete_vehicle(store, channels):
    """
    Creating a vehicle assigns an id and default status; deleting removes it.
    Both broadcast a carsUpdated refresh.
    """
    cid = channels.open()
    car = VehicleService.create_vehicle(PAYLOAD)
    assert car.id
    assert car.license_plate == "ABC123"
    assert car.status == "available"
    assert store.vehicles.get(car.id)["make"] == "Toyota"
    msg = channels.next_message(cid, 0.1)
    assert msg["event"] == "carsUpdated" and msg["data"]["action"] == "create"

    deleted, removed = VehicleService.delete_vehicle(car.id)
    assert deleted.id == car.id and removed == 0
    assert store.vehicles.get(car.id) is None
    assert channels.next_message(cid, 0.1)["data"] == {"action": "delete", "carId": car.id}

    # no persisted notifications for car changes
    assert store.notifications.count() == 0


def test_create_requires_every_field():
    with pytest.raises(ValidationError) as exc:
        VehicleService.create_vehicle({"make": "Toyota", "year": 1800, "dailyRate": -1})
    fields = {e["field"] for e in exc.value.errors}
    assert {"model", "color", "licensePlate", "year", "dailyRate", "mileage"} <= fields
    assert "make" not in fields


def test_duplicate_plate_is_rejected():
    VehicleService.create_vehicle(PAYLOAD)
    with pytest.raises(DuplicateKey) as exc:
        VehicleService.create_vehicle({**PAYLOAD, "licensePlate": "ABC123"})
    assert exc.value.errors[0]["field"] == "licensePlate"


def test_update_vehicle_partial():
    car = VehicleService.create_vehicle(PAYLOAD)
    other = VehicleService.create_vehicle({**PAYLOAD, "licensePlate": "XYZ999"})

    updated = VehicleService.update_vehicle(car.id, {"status": "maintenance", "mileage": 12500})
    assert updated.status == "maintenance"
    assert updated.mileage == 12500
    assert updated.make == "Toyota"

    with pytest.raises(ValidationError):
        VehicleService.update_vehicle(car.id, {"status": "stolen"})
    with pytest.raises(DuplicateKey):
        VehicleService.update_vehicle(car.id, {"licensePlate": other.license_plate})
    with pytest.raises(NotFound):
        VehicleService.update_vehicle("missing", {"color": "Red"})


def test_delete_cascades_to_rentals(store, make_car):
    vid = make_car(plate="AAA111")
    keep = make_car(plate="BBB222")
    put_rental(store, vid, "approved")
    put_rental(store, vid, "pending", "2030-12-01", "2030-12-03")
    put_rental(store, keep, "approved")

    _, removed = VehicleService.delete_vehicle(vid)
    assert removed == 2
    assert store.rentals.count({"vehicleId": vid}) == 0
    assert store.rentals.count({"vehicleId": keep}) == 1


def test_delete_unknown_vehicle():
    with pytest.raises(NotFound):
        VehicleService.delete_vehicle("missing")


def test_filter_by_partial_make_and_model(make_car):
    make_car(plate="AAA111", make="Toyota", model="Corolla")
    make_car(plate="BBB222", make="Honda", model="Fit")
    rows = VehicleService.list_vehicles(make="toY")
    assert [v.vehicle.make for v in rows] == ["Toyota"]
    rows = VehicleService.list_vehicles(model="FI")
    assert [v.vehicle.model for v in rows] == ["Fit"]


def test_filter_by_stored_status(make_car):
    make_car(plate="AAA111")
    make_car(plate="BBB222", status="maintenance")
    assert len(VehicleService.list_vehicles(status="maintenance")) == 1
    assert len(VehicleService.list_vehicles(status="all")) == 2
    assert len(VehicleService.list_vehicles()) == 2


def test_window_listing_derives_rented_without_persisting(store, make_car):
    busy = make_car(plate="AAA111")
    idle = make_car(plate="BBB222")
    put_rental(store, busy, "approved")
    put_rental(store, idle, "pending")

    views = {v.vehicle.id: v for v in VehicleService.list_vehicles(start="2030-11-05", end="2030-11-07")}
    assert views[busy].status == "rented"
    assert views[busy].to_dict()["status"] == "rented"
    assert views[idle].status == "available"
    assert store.vehicles.get(busy)["status"] == "available"

    outside = {v.vehicle.id: v.status for v in VehicleService.list_vehicles(start="2030-12-01", end="2030-12-02")}
    assert outside[busy] == "available"


def test_window_listing_rejects_bad_dates(make_car):
    make_car()
    with pytest.raises(ValidationError):
        VehicleService.list_vehicles(start="tomorrow", end="2030-01-01")


def test_availability_calendar(store, make_car):
    vid = make_car()
    put_rental(store, vid, "approved", "2030-12-01", "2030-12-03")
    put_rental(store, vid, "approved", "2030-11-01", "2030-11-05")
    put_rental(store, vid, "rejected", "2030-10-01", "2030-10-05")
    ranges = VehicleService.availability_calendar(vid)
    assert [s[:10] for s, _ in ranges] == ["2030-11-01", "2030-12-01"]


def test_interrupted_cascade_keeps_the_vehicle(store, make_car, monkeypatch):
    from fleet_rental.models.store import Store

    vid = make_car()
    put_rental(store, vid, "approved")

    class Broken:
        def delete_many(self, flt=None):
            raise OSError("disk full")

    monkeypatch.setattr(Store, "rentals", property(lambda self: Broken()))
    with pytest.raises(OSError):
        VehicleService.delete_vehicle(vid)
    assert store.vehicles.get(vid) is not None
