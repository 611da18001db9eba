"""Authentication and authorization module for META Storage."""

from .credential_store import CredentialStore
from .authorizer import Authorizer, create_token, time_window_label
from .token_middleware import TokenAuthMiddleware

__all__ = [
    "CredentialStore",
    "Authorizer",
    "create_token",
    "time_window_label",
    "TokenAuthMiddleware"
]
