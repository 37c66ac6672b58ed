"""
Field-level request validation.

Each validator returns a cleaned dict or raises ValidationError whose
``errors`` lists ``{"field", "message"}`` entries for every bad field.
"""
import re
from datetime import date

from fleet_rental.exceptions import ValidationError
from fleet_rental.utils.constants import Role, RentalStatus, VehicleStatus, MIN_VEHICLE_YEAR
from fleet_rental.utils.dates import parse_when

# Compile once at module import
EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
USERNAME_MIN = 3
PASSWORD_MIN = 6

VEHICLE_FIELDS = ("make", "model", "year", "color", "dailyRate", "mileage", "licensePlate", "status")
RENTAL_PATCH_FIELDS = ("status", "startDate", "endDate", "notes", "totalCost")


class _Errors:
    def __init__(self):
        self.items: list[dict] = []

    def add(self, field: str, message: str):
        self.items.append({"field": field, "message": message})

    def raise_if_any(self):
        if self.items:
            raise ValidationError("Validation failed", errors=self.items)


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def _number(value, *, integer=False):
    """Return a number or None; bools and non-numeric strings are rejected."""
    if isinstance(value, bool):
        return None
    try:
        n = float(value)
    except (TypeError, ValueError):
        return None
    if integer:
        return int(n) if n == int(n) else None
    return n


def validate_registration(data: dict) -> dict:
    errs = _Errors()
    username = _text(data.get("username"))
    email = _text(data.get("email")).lower()
    password = data.get("password") if isinstance(data.get("password"), str) else ""
    role = data.get("role") or Role.USER
    phone = _text(data.get("phone")) or None

    if len(username) < USERNAME_MIN:
        errs.add("username", "Username must be at least 3 characters")
    if not EMAIL_PATTERN.match(email):
        errs.add("email", "Please provide a valid email")
    if len(password) < PASSWORD_MIN:
        errs.add("password", "Password must be at least 6 characters")
    if role not in Role.ALL:
        errs.add("role", "Invalid role")
    errs.raise_if_any()
    return {"username": username, "email": email, "password": password, "role": role, "phone": phone}


def validate_login(data: dict) -> dict:
    errs = _Errors()
    email = _text(data.get("email")).lower()
    password = data.get("password") if isinstance(data.get("password"), str) else ""
    if not EMAIL_PATTERN.match(email):
        errs.add("email", "Please provide a valid email")
    if not password:
        errs.add("password", "Password is required")
    errs.raise_if_any()
    return {"email": email, "password": password}


def validate_vehicle(data: dict, *, partial: bool = False) -> dict:
    """
    Validate a car payload. With ``partial`` only supplied fields are
    checked (updates); otherwise every field but status is required.
    """
    errs = _Errors()
    out = {}
    max_year = date.today().year + 1

    for field in ("make", "model", "color", "licensePlate"):
        if field not in data and partial:
            continue
        value = _text(data.get(field))
        if not value:
            errs.add(field, f"{field} is required" if not partial else f"{field} cannot be empty")
            continue
        out[field] = value.upper() if field == "licensePlate" else value

    if "year" in data or not partial:
        year = _number(data.get("year"), integer=True)
        if year is None or not (MIN_VEHICLE_YEAR <= year <= max_year):
            errs.add("year", "Invalid year")
        else:
            out["year"] = year

    if "dailyRate" in data or not partial:
        rate = _number(data.get("dailyRate"))
        if rate is None or rate < 0:
            errs.add("dailyRate", "Daily rate must be a positive number")
        else:
            out["dailyRate"] = rate

    if "mileage" in data or not partial:
        mileage = _number(data.get("mileage"), integer=True)
        if mileage is None or mileage < 0:
            errs.add("mileage", "Mileage must be a positive number")
        else:
            out["mileage"] = mileage

    if data.get("status") is not None:
        if data["status"] not in VehicleStatus.ALL:
            errs.add("status", "Invalid status")
        else:
            out["status"] = data["status"]

    errs.raise_if_any()
    return out


def validate_rental(data: dict) -> dict:
    """Validate a new rental request; end > start is checked by the service."""
    errs = _Errors()
    out = {}

    vehicle_id = data.get("vehicleId")
    if not isinstance(vehicle_id, str) or not vehicle_id.strip():
        errs.add("vehicleId", "Invalid car ID")
    else:
        out["vehicleId"] = vehicle_id.strip()

    for field in ("startDate", "endDate"):
        try:
            out[field] = parse_when(data.get(field))
        except ValueError:
            errs.add(field, f"Invalid {'start' if field == 'startDate' else 'end'} date")

    if data.get("totalCost") is not None:
        cost = _number(data.get("totalCost"))
        if cost is None or cost < 0:
            errs.add("totalCost", "Total cost must be a positive number")
        else:
            out["totalCost"] = cost

    if data.get("status") is not None:
        if data["status"] not in RentalStatus.ALL:
            errs.add("status", "Invalid status")
        else:
            out["status"] = data["status"]

    notes = _text(data.get("notes"))
    if notes:
        out["notes"] = notes

    errs.raise_if_any()
    return out


def validate_rental_patch(data: dict) -> dict:
    """
    Keep the recognised fields of a rental update. Dates and status are
    left as supplied; the state machine owns their semantics.
    """
    errs = _Errors()
    unknown = [k for k in data if k not in RENTAL_PATCH_FIELDS]
    for field in unknown:
        errs.add(field, "Field cannot be updated")
    if not data:
        errs.add("body", "Nothing to update")

    out = {k: v for k, v in data.items() if k in RENTAL_PATCH_FIELDS}
    if "totalCost" in out:
        cost = _number(out["totalCost"])
        if cost is None or cost < 0:
            errs.add("totalCost", "Total cost must be a positive number")
        else:
            out["totalCost"] = cost
    if "notes" in out:
        out["notes"] = _text(out["notes"]) or None

    errs.raise_if_any()
    return out
