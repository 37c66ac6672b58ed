from flask import Blueprint, request

from . import json_body
from ..services.vehicle_service import VehicleService
from ..utils.constants import Role
from ..utils.decorators import login_required, optional_auth, role_required
from ..utils.responses import ok

bp = Blueprint("cars", __name__, url_prefix="/api/cars")


@bp.get("")
@optional_auth
def list_cars():
    """Cars with filters. Passing startDate and endDate marks cars booked in that window as rented."""
    q = {k: (v or "").strip() for k, v in request.args.items()}
    views = VehicleService.list_vehicles(
        status=q.get("status"),
        make=q.get("make"),
        model=q.get("model"),
        start=q.get("startDate"),
        end=q.get("endDate"),
    )
    cars = [v.to_dict() for v in views]
    return ok("Cars retrieved successfully", {"cars": cars, "count": len(cars)})


@bp.get("/<vid>/availability")
@optional_auth
def availability(vid):
    ranges = VehicleService.availability_calendar(vid)
    return ok("Availability retrieved successfully",
              {"booked": [{"startDate": s, "endDate": e} for s, e in ranges]})


@bp.post("")
@login_required
@role_required(Role.ADMIN)
def create_car():
    car = VehicleService.create_vehicle(json_body())
    return ok("Car created successfully", {"car": car.to_dict()}, 201)


@bp.put("/<vid>")
@login_required
@role_required(Role.ADMIN)
def update_car(vid):
    car = VehicleService.update_vehicle(vid, json_body())
    return ok("Car updated successfully", {"car": car.to_dict()})


@bp.delete("/<vid>")
@login_required
@role_required(Role.ADMIN)
def delete_car(vid):
    car, removed = VehicleService.delete_vehicle(vid)
    return ok("Car deleted successfully", {"car": car.to_dict(), "deletedRentals": removed})
