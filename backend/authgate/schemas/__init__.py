from .auth import IdentitySchema, LoginSchema, RegisterSchema, TokenResponseSchema

__all__ = ["IdentitySchema", "LoginSchema", "RegisterSchema", "TokenResponseSchema"]
