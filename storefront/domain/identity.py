# storefront/domain/identity.py
from dataclasses import dataclass


@dataclass(frozen=True)
class CurrentUser:
    """Caller identity resolved by the authentication layer."""

    id: int
    email: str
    role: str = "user"
