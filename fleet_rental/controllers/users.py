from flask import Blueprint

from ..services.user_service import UserService
from ..utils.constants import Role
from ..utils.decorators import login_required, role_required
from ..utils.responses import ok

bp = Blueprint("users", __name__, url_prefix="/api/users")


@bp.get("")
@login_required
@role_required(Role.ADMIN)
def list_users():
    users = UserService.list_customers()
    return ok("Users retrieved successfully", {"users": users, "count": len(users)})
