from flask import Blueprint, g, request

from . import json_body
from ..exceptions import ValidationError
from ..services.rental_service import RentalService, EXPANDABLE
from ..utils.constants import Role
from ..utils.decorators import login_required, role_required
from ..utils.responses import ok

bp = Blueprint("rentals", __name__, url_prefix="/api/rentals")


def _expand(default=()):
    """Parse ?expand=vehicle,requester; absent means `default`."""
    raw = request.args.get("expand")
    if raw is None:
        return default
    fields = [f.strip() for f in raw.split(",") if f.strip()]
    bad = [f for f in fields if f not in EXPANDABLE]
    if bad:
        raise ValidationError(errors=[{"field": "expand", "message": f"Cannot expand {f}"} for f in bad])
    return fields


@bp.get("")
@login_required
def list_rentals():
    filters = {"status": request.args.get("status"), "vehicleId": request.args.get("vehicleId")}
    rentals = [r.to_dict() for r in RentalService.list_rentals(g.identity, filters, _expand(("vehicle",)))]
    return ok("Rental requests retrieved successfully", {"rentals": rentals, "count": len(rentals)})


@bp.post("")
@login_required
def create_rental():
    rental = RentalService.create_rental(g.identity, json_body(), _expand(("vehicle",)))
    return ok("Rental request created successfully", {"rental": rental.to_dict()}, 201)


@bp.put("/<rid>")
@login_required
def update_rental(rid):
    """Admins may change anything; requesters may only cancel their own request."""
    rental = RentalService.update_rental(g.identity, rid, json_body(), _expand(("vehicle",)))
    return ok("Rental request updated successfully", {"rental": rental.to_dict()})


@bp.delete("/<rid>")
@login_required
@role_required(Role.ADMIN)
def delete_rental(rid):
    RentalService.delete_rental(g.identity, rid)
    return ok("Rental request deleted successfully", {"id": rid})
