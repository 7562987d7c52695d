from .dto import TokenLifetimeConfig
from .policy import MinimumStrengthPolicy, PasswordPolicy
from .service import TokenLifecycleManager

__all__ = [
    "MinimumStrengthPolicy",
    "PasswordPolicy",
    "TokenLifecycleManager",
    "TokenLifetimeConfig",
]
