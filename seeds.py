from dotenv import load_dotenv
load_dotenv()
from fleet_rental import create_app
from fleet_rental.models.store import Store
from fleet_rental.utils.constants import Role
from fleet_rental.utils.security import generate_hash


def ensure_user(store: Store, username: str, email: str, password: str, role: str) -> str:
    """
    Ensure a user with `email` exists in the store.
    - If exists: update password hash and role (idempotent).
    - If not:   create a new user.
    """
    u = store.users.find_one({"email": email})
    if u:
        store.users.update_one({"id": u["id"]}, {"passwordHash": generate_hash(password), "role": role})
        return u["id"]
    return store.users.insert({
        "username": username,
        "email": email,
        "passwordHash": generate_hash(password),
        "role": role,
        "phone": None,
    })["id"]


def main():
    app = create_app()
    with app.app_context():
        store = Store.instance()

        # ---- Admin / Customer demo accounts ----
        ensure_user(store, "admin", "admin@fleet.local", "Admin123", Role.ADMIN)
        ensure_user(store, "customer", "customer@fleet.local", "Customer123", Role.USER)

        # ---- Demo cars (create only if none exist) ----
        if not store.vehicles.count():
            for car in (
                {"make": "Toyota", "model": "Corolla", "year": 2022, "color": "White",
                 "dailyRate": 45.0, "mileage": 18000, "licensePlate": "ABC123"},
                {"make": "Honda", "model": "Civic", "year": 2021, "color": "Blue",
                 "dailyRate": 50.0, "mileage": 26000, "licensePlate": "HND456"},
                {"make": "Tesla", "model": "Model 3", "year": 2023, "color": "Red",
                 "dailyRate": 95.0, "mileage": 9000, "licensePlate": "EV0789"},
            ):
                store.vehicles.insert({**car, "status": "available"})

        print("Seed complete.")
        print("Admin login:     admin@fleet.local / Admin123")
        print("Customer login:  customer@fleet.local / Customer123")


if __name__ == "__main__":
    main()
