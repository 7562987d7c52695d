"""User model: the persisted side of a login identity."""

from __future__ import annotations

from typing import Any

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates
from werkzeug.security import check_password_hash, generate_password_hash

from authgate.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

IDENTIFIER_MAX_LENGTH = 64


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Login identity with its password hash and profile fields.

    Fields
    ------
    identifier : str
        Immutable login name and token subject. Stored trimmed and lowercased.
    password_hash : str
        Hashed password (write-only setter via ``password``).
    full_name : str | None
        Optional display name.
    email : str | None
        Optional contact address, not used for login.
    """

    __tablename__ = "users"
    __repr_key__ = "identifier"

    identifier: Mapped[str] = mapped_column(String(IDENTIFIER_MAX_LENGTH), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(254), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    email: Mapped[str | None] = mapped_column(String(254), nullable=True)

    __table_args__ = (UniqueConstraint("identifier", name="uq_users_identifier"),)

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - write-only
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        """
        Hash and set the password.

        :param raw: Plain text password.
        :raises ValueError: If ``raw`` is empty or not a string.
        """
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = generate_password_hash(raw)

    def verify_password(self, raw: str) -> bool:
        """
        Check ``raw`` against the stored hash in constant time.

        :returns: ``True`` if it matches.
        """
        if not self.password_hash:
            return False
        return bool(check_password_hash(self.password_hash, raw))

    # -------------------- Validators --------------------
    @validates("identifier")
    def _normalize_identifier(self, key: str, value: str) -> str:
        if not isinstance(value, str):
            raise ValueError("Identifier is required.")
        v = value.strip().lower()
        if self.identifier is not None and v != self.identifier:
            raise ValueError("Identifier is immutable.")
        if not v or len(v) > IDENTIFIER_MAX_LENGTH:
            raise ValueError("Identifier must be 1-64 characters.")
        return v

    @validates("email")
    def _normalize_email(self, key: str, value: str | None) -> str | None:
        if value is None:
            return None
        v = value.strip().lower()
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v
