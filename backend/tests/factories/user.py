"""Factory Boy definition for :class:`authgate.models.user.User`."""

from __future__ import annotations

import factory
from authgate.models.user import User

from tests.factories import BaseFactory

DEFAULT_PASSWORD = "Passw0rd!"


class UserFactory(BaseFactory):
    """Build persisted users; the password goes through the hashing setter."""

    class Meta:
        model = User

    id = None  # let autoincrement handle it
    identifier = factory.Sequence(lambda n: f"user{n}")
    full_name = factory.Faker("name")
    email = factory.LazyAttribute(lambda o: f"{o.identifier}@example.com")
    password_hash = factory.LazyFunction(lambda: "")  # set via postgen

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        obj.password = extracted or DEFAULT_PASSWORD
