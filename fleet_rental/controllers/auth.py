from flask import Blueprint

from . import json_body
from ..services.user_service import UserService
from ..utils.responses import ok

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@bp.post("/register")
def register():
    user, token = UserService.register(json_body())
    return ok("User registered successfully", {"token": token, "user": user.to_dict()}, 201)


@bp.post("/login")
def login():
    user, token = UserService.login(json_body())
    return ok("Login successful", {"token": token, "user": user.to_dict()})
