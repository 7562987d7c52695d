"""User repository: lookups and password checks, no token handling."""

from __future__ import annotations

from typing import cast

from sqlalchemy import select
from werkzeug.security import check_password_hash

from authgate.models.user import User
from authgate.repositories.base import BaseRepository
from authgate.services._shared.ports.credential_store import (
    DUMMY_PASSWORD_HASH,
    normalize_identifier,
)


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`."""

    model = User

    def _filterable_fields(self):
        return {"identifier": User.identifier, "email": User.email}

    def _updatable_fields(self):
        # identifier is immutable and the password has its own setter
        return {"full_name", "email"}

    def get_by_identifier(self, identifier: str) -> User | None:
        """Fetch a user by identifier, normalizing it first.

        :param identifier: Raw login identifier.
        :returns: User or ``None``.
        """
        stmt = select(User).where(User.identifier == normalize_identifier(identifier))
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def exists_by_identifier(self, identifier: str) -> bool:
        stmt = select(User.id).where(User.identifier == normalize_identifier(identifier))
        return self.session.execute(stmt).first() is not None

    def authenticate(self, identifier: str, password: str) -> User | None:
        """Return the user when ``password`` matches, else ``None``.

        An unknown identifier still pays for one hash comparison against
        :data:`DUMMY_PASSWORD_HASH`.
        """
        user = self.get_by_identifier(identifier)
        if user is None:
            check_password_hash(DUMMY_PASSWORD_HASH, password)
            return None
        return user if user.verify_password(password) else None
