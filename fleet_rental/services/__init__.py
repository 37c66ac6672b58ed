from .conflict_service import ConflictService
from .notification_service import NotificationService
from .rental_service import RentalService
from .user_service import UserService
from .vehicle_service import VehicleService

__all__ = [
    "ConflictService",
    "NotificationService",
    "RentalService",
    "UserService",
    "VehicleService",
]
