from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from fleet_rental.utils.dates import iso


@dataclass(frozen=True)
class Notification:
    """
    One persisted notification for one recipient.
    ``location`` names the entity kind (e.g. "RentalRequest") and
    ``location_id`` the entity it is about.
    """
    id: str
    title: str
    location: str
    location_id: str
    user_id: str
    is_opened: bool = False
    created_at: Optional[datetime] = None

    @classmethod
    def from_doc(cls, d: dict) -> "Notification":
        return cls(
            id=d["id"],
            title=d.get("title", ""),
            location=d.get("location", ""),
            location_id=d.get("locationId", ""),
            user_id=d.get("userId", ""),
            is_opened=bool(d.get("isOpened")),
            created_at=d.get("createdAt"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "location": self.location,
            "locationId": self.location_id,
            "userId": self.user_id,
            "isOpened": self.is_opened,
            "createdAt": iso(self.created_at),
        }
