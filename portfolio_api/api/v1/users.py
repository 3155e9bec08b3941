"""User administration and self-service profile endpoints."""

from __future__ import annotations

from flask import Blueprint, request

from portfolio_api.api.deps import (
    current_user_id,
    json_body,
    parse_pagination,
    require_auth,
    require_roles,
    timing,
)
from portfolio_api.api.envelope import envelope_response, paginated_response
from portfolio_api.models.user import SystemRole
from portfolio_api.schemas import (
    USER_SORT_FIELDS,
    ProfileUpdateSchema,
    UserFilterSchema,
    UserSchema,
    UserUpdateSchema,
)
from portfolio_api.services.users.dto import ProfileUpdateIn, UserQueryIn, UserUpdateIn
from portfolio_api.services.users.service import UserService

bp = Blueprint("users", __name__)

ADMIN = SystemRole.ADMIN.value

user_schema = UserSchema()
user_list_schema = UserSchema(many=True)
user_filter_schema = UserFilterSchema()
user_update_schema = UserUpdateSchema()
profile_update_schema = ProfileUpdateSchema()


# --------------------------- Self-service profile ---------------------------


@bp.get("/profile")
@require_auth
@timing
def get_profile():
    user = UserService().get_profile(current_user_id())
    return envelope_response(user_schema.dump(user))


@bp.patch("/profile")
@require_auth
@timing
def update_profile():
    payload = profile_update_schema.load(json_body())
    user = UserService().update_profile(current_user_id(), ProfileUpdateIn(**payload))
    return envelope_response(user_schema.dump(user), message="Updated successfully")


# ------------------------------- Admin CRUD ---------------------------------


@bp.get("")
@require_roles(ADMIN)
@timing
def list_users():
    """Return paginated users filtered by email, full name or gender."""

    filters = user_filter_schema.load(request.args)
    pagination = parse_pagination(sortable=USER_SORT_FIELDS)
    page = UserService().list_users(UserQueryIn(**filters), pagination)
    return paginated_response(page, user_list_schema.dump)


@bp.get("/<int:user_id>")
@require_roles(ADMIN)
@timing
def get_user(user_id: int):
    user = UserService().get_user(user_id)
    return envelope_response(user_schema.dump(user))


@bp.patch("/<int:user_id>")
@require_roles(ADMIN)
@timing
def update_user(user_id: int):
    payload = user_update_schema.load(json_body())
    if "roles" in payload:
        payload["roles"] = tuple(payload["roles"])
    user = UserService().update_user(user_id, UserUpdateIn(**payload))
    return envelope_response(user_schema.dump(user), message="Updated successfully")


@bp.delete("/<int:user_id>")
@require_roles(ADMIN)
@timing
def delete_user(user_id: int):
    """Soft-delete a user."""

    UserService().delete_user(user_id)
    return envelope_response(None, message="Deleted successfully")
