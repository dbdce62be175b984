from .user import UserEntitlement

__all__ = ["UserEntitlement"]
