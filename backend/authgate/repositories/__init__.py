from authgate.repositories.user import UserRepository

__all__ = ["UserRepository"]
