"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

PASSWORD_LENGTH = validate.Length(min=8, max=128)


class RegisterSchema(Schema):
    """Input payload for account registration."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=PASSWORD_LENGTH)
    full_name = fields.String(
        data_key="fullName", required=True, validate=validate.Length(min=1, max=100)
    )


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshSchema(Schema):
    refresh_token = fields.String(data_key="refreshToken", required=True)


class LogoutSchema(Schema):
    """Logout body; the access token travels in the ``Authorization`` header."""

    refresh_token = fields.String(data_key="refreshToken", load_default=None)


class ChangePasswordSchema(Schema):
    current_password = fields.String(data_key="currentPassword", required=True)
    new_password = fields.String(data_key="newPassword", required=True, validate=PASSWORD_LENGTH)


class OAuthTokenSchema(Schema):
    """Provider access token obtained by the client."""

    access_token = fields.String(data_key="accessToken", required=True)


class TokenPairSchema(Schema):
    """Response payload containing an access/refresh token pair."""

    access_token = fields.String(required=True)
    refresh_token = fields.String(required=True)
