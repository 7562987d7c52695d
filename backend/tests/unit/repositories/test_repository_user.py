"""Unit tests for UserRepository."""

import pytest
from authgate.repositories.user import UserRepository
from tests.factories.user import DEFAULT_PASSWORD, UserFactory


class TestUserRepository:
    """Ensure ``UserRepository`` performs lookups and password checks."""

    @pytest.fixture()
    def repo(self, session):
        return UserRepository(session=session)

    def test_get_by_identifier_normalizes(self, repo, session):
        u = UserFactory(identifier="alice")
        session.flush()

        fetched = repo.get_by_identifier("  ALICE ")
        assert fetched is not None
        assert fetched.id == u.id

    def test_exists_by_identifier(self, repo, session):
        UserFactory(identifier="bob")
        session.flush()

        assert repo.exists_by_identifier("bob")
        assert not repo.exists_by_identifier("nobody")

    def test_authenticate_valid_and_invalid(self, repo, session):
        UserFactory(identifier="authuser", password="strongpass")
        session.flush()

        assert repo.authenticate("authuser", "strongpass") is not None
        assert repo.authenticate("authuser", "wrongpass") is None
        assert repo.authenticate("nope", "strongpass") is None

    def test_find_one_and_exists_use_whitelist(self, repo, session):
        u = UserFactory(identifier="carol", email="carol@example.com")
        session.flush()

        assert repo.find_one(email="carol@example.com").id == u.id
        assert repo.exists(identifier="carol")
        with pytest.raises(ValueError, match="non-filterable"):
            repo.find_one(password_hash="x")

    def test_assign_updates_whitelist(self, repo, session):
        u = UserFactory(identifier="dave")
        session.flush()

        repo.assign_updates(u, {"full_name": "Dave D."})
        assert repo.get(u.id).full_name == "Dave D."
        with pytest.raises(ValueError, match="non-updatable"):
            repo.assign_updates(u, {"identifier": "eve"})

    def test_factory_default_password(self, repo, session):
        UserFactory(identifier="frank")
        session.flush()
        assert repo.authenticate("frank", DEFAULT_PASSWORD) is not None
