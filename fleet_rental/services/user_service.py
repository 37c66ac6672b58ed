from __future__ import annotations

import logging

from flask import current_app

from fleet_rental.exceptions import DuplicateKey, InvalidCredential
from fleet_rental.models.user import User
from fleet_rental.services import common
from fleet_rental.services.notification_service import NotificationService
from fleet_rental.utils.constants import Role
from fleet_rental.utils.security import generate_hash, check_hash, issue_token
from fleet_rental.utils.validators import validate_registration, validate_login

logger = logging.getLogger(__name__)


def token_for(user: User) -> str:
    return issue_token(current_app.config["SECRET_KEY"], user.id, user.email, user.role)


class UserService:
    """Registration, login and the admin's customer list."""

    @staticmethod
    def register(payload: dict) -> tuple[User, str]:
        """
        Create an account and sign a token for it. Admins are notified of
        every new account; that step never fails the registration.
        """
        clean = validate_registration(payload)
        users = common._store().users
        if users.find_one({"email": clean["email"]}) or users.find_one({"username": clean["username"]}):
            raise DuplicateKey("User with this email or username already exists")

        doc = users.insert({
            "username": clean["username"],
            "email": clean["email"],
            "passwordHash": generate_hash(clean["password"]),
            "role": clean["role"],
            "phone": clean["phone"],
        })
        user = User.from_doc(doc)
        logger.info("Registered %s (%s)", user.username, user.role)
        NotificationService.user_registered(user)
        return user, token_for(user)

    @staticmethod
    def login(payload: dict) -> tuple[User, str]:
        clean = validate_login(payload)
        doc = common._store().users.find_one({"email": clean["email"]})
        if not doc or not check_hash(clean["password"], doc.get("passwordHash", "")):
            raise InvalidCredential("Invalid email or password")
        user = User.from_doc(doc)
        return user, token_for(user)

    @staticmethod
    def list_customers() -> list[dict]:
        """Customer accounts, newest first, each with its rental count."""
        store = common._store()
        out = []
        for d in store.users.find_many({"role": Role.USER}, sort=[("createdAt", -1)]):
            row = User.from_doc(d).to_dict()
            row["rentalCount"] = store.rentals.count({"requesterId": d["id"]})
            out.append(row)
        return out
