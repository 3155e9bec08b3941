"""User resource schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate

from portfolio_api.models.user import Gender, SystemRole

GENDERS = [g.value for g in Gender]
ROLES = [r.value for r in SystemRole]

#: Public sort keys accepted by ``GET /users``
USER_SORT_FIELDS = ("createdAt", "updatedAt", "fullName", "email", "id")


class UserFilterSchema(Schema):
    """Supported query parameters for listing users."""

    class Meta:
        unknown = EXCLUDE

    email = fields.String(load_default=None, validate=validate.Length(min=1, max=254))
    full_name = fields.String(
        data_key="fullName", load_default=None, validate=validate.Length(min=1, max=100)
    )
    gender = fields.String(load_default=None, validate=validate.OneOf(GENDERS))


class UserUpdateSchema(Schema):
    """Admin update payload; every field is optional."""

    full_name = fields.String(data_key="fullName", validate=validate.Length(min=1, max=100))
    email = fields.Email(validate=validate.Length(max=254))
    avatar = fields.Url(allow_none=True, validate=validate.Length(max=512))
    gender = fields.String(validate=validate.OneOf(GENDERS))
    roles = fields.List(
        fields.String(validate=validate.OneOf(ROLES)), validate=validate.Length(min=1)
    )


class ProfileUpdateSchema(Schema):
    """Self-service profile payload."""

    full_name = fields.String(data_key="fullName", validate=validate.Length(min=1, max=100))
    avatar = fields.Url(allow_none=True, validate=validate.Length(max=512))
    gender = fields.String(validate=validate.OneOf(GENDERS))


class UserSchema(Schema):
    """Public representation of a user; password material is never included."""

    id = fields.Integer(required=True)
    full_name = fields.String(data_key="fullName", required=True)
    email = fields.String(allow_none=True)
    roles = fields.List(fields.String())
    avatar = fields.String(allow_none=True)
    gender = fields.String(allow_none=True)
    google_id = fields.String(data_key="googleId", allow_none=True)
    facebook_id = fields.String(data_key="facebookId", allow_none=True)
    created_at = fields.DateTime(data_key="createdAt", allow_none=True)
    updated_at = fields.DateTime(data_key="updatedAt", allow_none=True)
