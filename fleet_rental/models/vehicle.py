from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fleet_rental.utils.constants import VehicleStatus
from fleet_rental.utils.dates import iso


@dataclass(frozen=True)
class Vehicle:
    """
    Fleet vehicle as persisted. ``status`` is the administrative marker
    (e.g. maintenance); availability for a date window is derived at read
    time, see ``VehicleView``.
    """
    id: str
    make: str
    model: str
    year: int
    color: str
    license_plate: str
    daily_rate: float = 0.0
    mileage: int = 0
    status: str = VehicleStatus.AVAILABLE
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, d: dict) -> "Vehicle":
        return cls(
            id=d["id"],
            make=d.get("make", ""),
            model=d.get("model", ""),
            year=int(d.get("year") or 0),
            color=d.get("color", ""),
            license_plate=d.get("licensePlate", ""),
            daily_rate=float(d.get("dailyRate") or 0.0),
            mileage=int(d.get("mileage") or 0),
            status=d.get("status") or VehicleStatus.AVAILABLE,
            created_at=d.get("createdAt"),
            updated_at=d.get("updatedAt"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "make": self.make,
            "model": self.model,
            "year": self.year,
            "color": self.color,
            "licensePlate": self.license_plate,
            "dailyRate": self.daily_rate,
            "mileage": self.mileage,
            "status": self.status,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


@dataclass(frozen=True)
class VehicleView:
    """
    Read-time projection of a vehicle for a listing window.
    ``status`` is the derived display value; ``vehicle`` is untouched.
    """
    vehicle: Vehicle
    status: str

    @classmethod
    def of(cls, vehicle: Vehicle, booked: bool) -> "VehicleView":
        return cls(vehicle=vehicle, status=VehicleStatus.RENTED if booked else vehicle.status)

    def to_dict(self) -> dict:
        out = self.vehicle.to_dict()
        out["status"] = self.status
        return out


@dataclass(frozen=True)
class VehicleRef:
    """Relation field holding only the vehicle id."""
    id: str

    def to_dict(self) -> dict:
        return {"id": self.id}


@dataclass(frozen=True)
class ExpandedVehicle:
    """Relation field with the vehicle's details joined in."""
    vehicle: Vehicle

    @property
    def id(self) -> str:
        return self.vehicle.id

    def to_dict(self) -> dict:
        return self.vehicle.to_dict()