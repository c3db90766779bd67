# API endpoints
from . import auth, swms, user, payments, reference, health

__all__ = ["auth", "swms", "user", "payments", "reference", "health"]
