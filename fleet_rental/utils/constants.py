# fleet_rental/utils/constants.py

"""
Global constants for roles, statuses and real-time event names.
These constants are imported by both models and services.
"""


class Role:
    ADMIN = "admin"
    USER = "user"

    ALL = (ADMIN, USER)


class RentalStatus:
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"

    ALL = (PENDING, APPROVED, COMPLETED, REJECTED, CANCELLED)
    # a requester may only cancel from these
    CANCELLABLE = (PENDING, APPROVED)


class VehicleStatus:
    AVAILABLE = "available"
    RENTED = "rented"
    MAINTENANCE = "maintenance"

    ALL = (AVAILABLE, RENTED, MAINTENANCE)


class Event:
    NEW_NOTIFICATION = "newNotification"
    CARS_UPDATED = "carsUpdated"
    RENTALS_UPDATED = "rentalsUpdated"
    USERS_UPDATED = "usersUpdated"


# Notification "location" values (entity kind the notification points at)
LOCATION_USER = "User"
LOCATION_RENTAL = "RentalRequest"

# Collections in the document store
USERS = "users"
VEHICLES = "vehicles"
RENTALS = "rentals"
NOTIFICATIONS = "notifications"

MIN_VEHICLE_YEAR = 1900
NOTIFICATION_LIST_LIMIT = 50
