from .redis_revocation_ledger import RedisRevocationLedger

__all__ = ["RedisRevocationLedger"]
