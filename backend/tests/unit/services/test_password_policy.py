from __future__ import annotations

import pytest
from authgate.services._shared.errors import WeakCredentialError
from authgate.services.tokens import MinimumStrengthPolicy


@pytest.fixture()
def policy():
    return MinimumStrengthPolicy()


def test_accepts_reasonable_password(policy):
    policy.validate("alice", "secret123")


@pytest.mark.parametrize(
    ("password", "rule"),
    [
        ("short", "min_length"),
        ("x" * 129, "max_length"),
        ("Alice-Long", "not_identifier"),
    ],
)
def test_rejects_with_rule(policy, password, rule):
    identifier = "alice-long" if rule == "not_identifier" else "alice"
    with pytest.raises(WeakCredentialError) as excinfo:
        policy.validate(identifier, password)
    assert excinfo.value.rule == rule


def test_bounds_are_configurable():
    MinimumStrengthPolicy(min_length=4).validate("bob", "abcd")
    with pytest.raises(WeakCredentialError):
        MinimumStrengthPolicy(min_length=4).validate("bob", "abc")
