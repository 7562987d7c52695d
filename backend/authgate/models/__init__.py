from authgate.models.user import User

__all__ = ["User"]
