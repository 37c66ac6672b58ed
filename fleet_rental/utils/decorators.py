from functools import wraps

from flask import current_app, g, request

from fleet_rental.exceptions import Forbidden, InvalidCredential
from fleet_rental.utils.security import verify_token


def bearer_token():
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):].strip()


def _verify(token):
    return verify_token(current_app.config["SECRET_KEY"], token, current_app.config["TOKEN_MAX_AGE"])


def login_required(fn):
    """Require a valid bearer token; the caller's Identity lands in g.identity."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        token = bearer_token()
        if not token:
            raise InvalidCredential("No token provided")
        g.identity = _verify(token)
        return fn(*args, **kwargs)

    return wrapper


def optional_auth(fn):
    """Attach an Identity when a valid token is sent; carry on anonymously otherwise."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        g.identity = None
        token = bearer_token()
        if token:
            try:
                g.identity = _verify(token)
            except InvalidCredential:
                g.identity = None
        return fn(*args, **kwargs)

    return wrapper


def role_required(*roles):
    """Use below login_required."""
    def deco(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            identity = g.get("identity")
            if identity is None:
                raise InvalidCredential("Authentication required")
            if identity.role not in roles:
                raise Forbidden("Admin access required" if "admin" in roles else "Insufficient permission")
            return fn(*args, **kwargs)

        return wrapper

    return deco
