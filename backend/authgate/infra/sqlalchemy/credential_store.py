# authgate/infra/sqlalchemy/credential_store.py
from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError

from authgate.models.user import User
from authgate.services._shared.dto import ProfileIn, UserIdentityOut
from authgate.services._shared.errors import DuplicateIdentifierError, violates
from authgate.services._shared.ports import CredentialStore
from authgate.services._shared.ports.credential_store import normalize_identifier
from authgate.uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive timestamps; they are stored as UTC
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _to_identity(user: User) -> UserIdentityOut:
    return UserIdentityOut(
        identifier=user.identifier,
        full_name=user.full_name,
        email=user.email,
        created_at=_as_utc(user.created_at),
    )


class SQLAlchemyCredentialStore(CredentialStore):
    """
    Credential store over the ``users`` table.

    Every call opens its own unit of work; identities leave the store as
    detached DTOs, never as ORM instances.
    """

    def find_by_identifier(self, identifier: str) -> UserIdentityOut | None:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            user = uow.users.get_by_identifier(identifier)
            return _to_identity(user) if user else None

    def create(self, identifier: str, raw_password: str, profile: ProfileIn) -> UserIdentityOut:
        key = normalize_identifier(identifier)
        try:
            with SQLAlchemyUnitOfWork() as uow:
                if uow.users.exists_by_identifier(key):
                    raise DuplicateIdentifierError(key)
                user = User(identifier=key, full_name=profile.full_name, email=profile.email)
                user.password = raw_password
                uow.users.add(user)
                identity = _to_identity(user)
        except IntegrityError as exc:
            # lost a race with a concurrent registration
            if violates(exc, "uq_users_identifier") or violates(exc, "users.identifier"):
                raise DuplicateIdentifierError(key) from exc
            raise
        return identity

    def verify_password(self, identifier: str, raw_password: str) -> UserIdentityOut | None:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            user = uow.users.authenticate(identifier, raw_password)
            return _to_identity(user) if user else None
