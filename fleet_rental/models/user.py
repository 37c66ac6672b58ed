from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from fleet_rental.utils.constants import Role
from fleet_rental.utils.dates import iso


@dataclass
class User:
    """
    Account record. The Store keeps raw dicts; services wrap them into this
    type before handing them to controllers. ``password_hash`` never leaves
    the service layer: ``to_dict`` omits it.
    """
    id: str
    username: str
    email: str
    password_hash: str = field(repr=False)
    role: str = Role.USER  # "admin" | "user"
    phone: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @classmethod
    def from_doc(cls, d: dict) -> "User":
        return cls(
            id=d["id"],
            username=d.get("username", ""),
            email=d.get("email", ""),
            password_hash=d.get("passwordHash", ""),
            role=d.get("role") or Role.USER,
            phone=d.get("phone"),
            created_at=d.get("createdAt"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "phone": self.phone,
            "createdAt": iso(self.created_at),
        }


@dataclass
class ExpandedUser:
    """Requester details attached to a rental when explicitly expanded."""
    id: str
    username: str
    email: str
    phone: Optional[str] = None

    @classmethod
    def from_doc(cls, d: dict) -> "ExpandedUser":
        return cls(id=d["id"], username=d.get("username", ""), email=d.get("email", ""),
                   phone=d.get("phone"))

    def to_dict(self) -> dict:
        return {"id": self.id, "username": self.username, "email": self.email, "phone": self.phone}
