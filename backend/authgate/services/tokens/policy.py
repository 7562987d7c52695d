# authgate/services/tokens/policy.py
"""Password acceptance rules applied at registration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from authgate.services._shared.errors import WeakCredentialError


class PasswordPolicy(Protocol):
    def validate(self, identifier: str, raw_password: str) -> None:
        """:raises WeakCredentialError: When ``raw_password`` is rejected."""


@dataclass(frozen=True, slots=True)
class MinimumStrengthPolicy(PasswordPolicy):
    """
    Length bounds plus "not the identifier itself".

    :param min_length: Shortest accepted password.
    :param max_length: Longest accepted password; bounds hashing cost.
    """

    min_length: int = 8
    max_length: int = 128

    def validate(self, identifier: str, raw_password: str) -> None:
        if not isinstance(raw_password, str) or len(raw_password) < self.min_length:
            raise WeakCredentialError(
                f"Password must be at least {self.min_length} characters.", rule="min_length"
            )
        if len(raw_password) > self.max_length:
            raise WeakCredentialError(
                f"Password must be at most {self.max_length} characters.", rule="max_length"
            )
        if raw_password.strip().lower() == identifier.strip().lower():
            raise WeakCredentialError(
                "Password must differ from the identifier.", rule="not_identifier"
            )
