# authgate/services/tokens/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True, slots=True)
class TokenLifetimeConfig:
    """
    Token emission configuration.

    :param access_ttl: Lifetime of every issued token, refreshed ones included.
    :type access_ttl: timedelta
    """

    access_ttl: timedelta = timedelta(hours=1)

    def __post_init__(self) -> None:
        if self.access_ttl <= timedelta(0):
            raise ValueError("access_ttl must be positive.")
