"""Password hashing and bearer-token issue/verification."""
from dataclasses import dataclass

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from werkzeug.security import generate_password_hash, check_password_hash

from fleet_rental.exceptions import InvalidCredential
from fleet_rental.utils.constants import Role

TOKEN_SALT = "auth-token"


@dataclass(frozen=True)
class Identity:
    """Who a verified token speaks for."""
    subject_id: str
    email: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def generate_hash(password: str) -> str:
    return generate_password_hash(password)


def check_hash(password: str, hashed: str) -> bool:
    try:
        return check_password_hash(hashed, password)
    except (TypeError, ValueError):
        return False


def _serializer(secret_key: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(secret_key, salt=TOKEN_SALT)


def issue_token(secret_key: str, subject_id: str, email: str, role: str) -> str:
    return _serializer(secret_key).dumps({"userId": subject_id, "email": email, "role": role})


def verify_token(secret_key: str, token: str, max_age: int) -> Identity:
    """
    Validate a bearer credential and return its Identity.
    Raises InvalidCredential for bad signatures, expired tokens and
    payloads missing the expected claims.
    """
    if not token:
        raise InvalidCredential("No token provided")
    try:
        payload = _serializer(secret_key).loads(token, max_age=max_age)
    except SignatureExpired:
        raise InvalidCredential("Token expired")
    except BadSignature:
        raise InvalidCredential("Invalid token")

    if not isinstance(payload, dict) or not payload.get("userId"):
        raise InvalidCredential("Invalid token")
    role = payload.get("role")
    if role not in Role.ALL:
        raise InvalidCredential("Invalid token")
    return Identity(subject_id=payload["userId"], email=payload.get("email", ""), role=role)
