"""Shared service helpers and factories."""
from typing import Optional

from fleet_rental.exceptions import NotFound, InvalidDateRange
from fleet_rental.models.rental import RentalRequest
from fleet_rental.models.store import Store
from fleet_rental.models.user import User
from fleet_rental.models.vehicle import Vehicle
from fleet_rental.realtime import ChannelRegistry
from fleet_rental.utils.constants import Role
from fleet_rental.utils.dates import parse_when


def _store() -> Store:
    """Get the singleton store instance."""
    return Store.instance()


def _channels() -> ChannelRegistry:
    """Get the process-wide real-time channel registry."""
    return ChannelRegistry.instance()


# -------- date helpers --------
def date_range(start, end):
    """Parse both ends of a range and require end > start."""
    d1, d2 = parse_when(start), parse_when(end)
    if d2 <= d1:
        raise InvalidDateRange()
    return d1, d2


def _lc(s):
    """Safe lowercase for case-insensitive compare."""
    return (s or "").lower()


# -------- lookups (doc -> typed model, NotFound when missing) --------
def get_user(user_id: str) -> User:
    d = _store().users.get(user_id)
    if d is None:
        raise NotFound("User not found")
    return User.from_doc(d)


def get_vehicle(vehicle_id: str) -> Vehicle:
    d = _store().vehicles.get(vehicle_id)
    if d is None:
        raise NotFound("Car not found")
    return Vehicle.from_doc(d)


def get_rental(rental_id: str) -> RentalRequest:
    d = _store().rentals.get(rental_id)
    if d is None:
        raise NotFound("Rental request not found")
    return RentalRequest.from_doc(d)


def find_user(user_id: Optional[str]) -> Optional[User]:
    d = _store().users.get(user_id) if user_id else None
    return User.from_doc(d) if d else None


def admins() -> list[User]:
    return [User.from_doc(d) for d in _store().users.find_many({"role": Role.ADMIN})]
