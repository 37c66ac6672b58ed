"""
Who may move a rental request between statuses.

Admins may set any valid status and edit dates. A requester may only
cancel their own request, and only while it is pending or approved.
"""
from datetime import datetime
from typing import Optional

from fleet_rental.exceptions import Forbidden, InvalidDateRange, ValidationError
from fleet_rental.models.rental import RentalRequest
from fleet_rental.utils.constants import Role, RentalStatus
from fleet_rental.utils.dates import parse_when


def authorize_transition(actor_role: str, actor_id: str, rental: RentalRequest, change: dict) -> None:
    """
    Raise Forbidden unless the actor may apply `change` to `rental`.
    Rules for non-admins, checked in order:
      1. must own the request
      2. may only touch the status field
      3. may only set it to cancelled
      4. current status must be pending or approved
    """
    status = change.get("status")
    if actor_role == Role.ADMIN:
        if status is not None and status not in RentalStatus.ALL:
            raise ValidationError(errors=[{"field": "status", "message": "Invalid status"}])
        return

    if rental.requester_id != actor_id:
        raise Forbidden("not owner")
    if set(change) != {"status"}:
        raise Forbidden("only status mutable")
    if status != RentalStatus.CANCELLED:
        raise Forbidden("only cancellation allowed")
    if rental.status not in RentalStatus.CANCELLABLE:
        raise Forbidden(f"cannot cancel from {rental.status}")


def effective_range(rental: RentalRequest, change: dict) -> Optional[tuple[datetime, datetime]]:
    """
    Merge supplied start/end with the stored values.
    Returns None when the change carries neither date; raises
    InvalidDateRange when the merged range is not end > start.
    """
    if change.get("startDate") is None and change.get("endDate") is None:
        return None
    try:
        start = parse_when(change["startDate"]) if change.get("startDate") is not None else rental.start_date
        end = parse_when(change["endDate"]) if change.get("endDate") is not None else rental.end_date
    except ValueError:
        raise ValidationError(errors=[{"field": "dates", "message": "Invalid date"}])
    if end <= start:
        raise InvalidDateRange()
    return start, end
