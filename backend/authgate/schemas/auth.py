"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

IDENTIFIER_PATTERN = r"^\s*[A-Za-z0-9][A-Za-z0-9._@+-]*\s*$"


class RegisterSchema(Schema):
    """Input payload for account registration.

    Password strength is judged by the service's password policy, not here.
    """

    identifier = fields.String(
        required=True,
        validate=[validate.Length(min=1, max=64), validate.Regexp(IDENTIFIER_PATTERN)],
    )
    password = fields.String(required=True, validate=validate.Length(min=1))
    full_name = fields.String(load_default=None, validate=validate.Length(max=100))
    email = fields.Email(load_default=None, validate=validate.Length(max=254))


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    identifier = fields.String(required=True, validate=validate.Length(min=1, max=64))
    password = fields.String(required=True, validate=validate.Length(min=1))


class TokenResponseSchema(Schema):
    """Response payload carrying a bearer token."""

    token = fields.String(required=True)
    token_type = fields.String(dump_default="Bearer")
    expires_at = fields.DateTime(required=True)


class IdentitySchema(Schema):
    """Public identity of a user; never includes the password hash."""

    identifier = fields.String(required=True)
    full_name = fields.String(allow_none=True)
    email = fields.String(allow_none=True)
    created_at = fields.DateTime(allow_none=True)
