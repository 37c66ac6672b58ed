from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from fleet_rental.models.user import ExpandedUser
from fleet_rental.models.vehicle import VehicleRef, ExpandedVehicle
from fleet_rental.utils.constants import RentalStatus
from fleet_rental.utils.dates import iso


@dataclass(frozen=True)
class RentalRequest:
    """
    A customer's request to rent one vehicle for [start_date, end_date].
    Owned by ``requester_id`` for authorization purposes.
    """
    id: str
    requester_id: Optional[str]
    vehicle_id: str
    start_date: datetime
    end_date: datetime
    status: str = RentalStatus.PENDING
    notes: Optional[str] = None
    total_cost: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, d: dict) -> "RentalRequest":
        return cls(
            id=d["id"],
            requester_id=d.get("requesterId"),
            vehicle_id=d["vehicleId"],
            start_date=d["startDate"],
            end_date=d["endDate"],
            status=d.get("status") or RentalStatus.PENDING,
            notes=d.get("notes"),
            total_cost=float(d.get("totalCost") or 0.0),
            created_at=d.get("createdAt"),
            updated_at=d.get("updatedAt"),
        )

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Closed-interval test: a rental ending the day another starts conflicts."""
        return self.start_date <= end and self.end_date >= start


@dataclass(frozen=True)
class RentalDetail:
    """
    A rental with its relation fields resolved. ``vehicle`` and
    ``requester`` are either bare references or expanded records,
    depending on what the caller asked the service to join.
    """
    rental: RentalRequest
    vehicle: Union[VehicleRef, ExpandedVehicle]
    requester: Union[str, ExpandedUser, None] = None

    def to_dict(self) -> dict:
        r = self.rental
        out = {
            "id": r.id,
            "requesterId": r.requester_id,
            "vehicleId": r.vehicle_id,
            "startDate": iso(r.start_date),
            "endDate": iso(r.end_date),
            "status": r.status,
            "notes": r.notes,
            "totalCost": r.total_cost,
            "createdAt": iso(r.created_at),
            "updatedAt": iso(r.updated_at),
        }
        if isinstance(self.vehicle, ExpandedVehicle):
            out["vehicle"] = self.vehicle.to_dict()
        if isinstance(self.requester, ExpandedUser):
            out["requester"] = self.requester.to_dict()
        return out
