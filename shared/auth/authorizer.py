"""
Time-windowed token authorizer for META Storage.

A client proves knowledge of its shared secret by sending
``sha256(client_id + secret + label)`` where ``label`` encodes the current
local calendar hour. The server accepts the token for the current hour and
the hour before it, so client/server clock skew of just under two hours is
tolerated without any per-request state.

Tokens are not bound to a request and can be replayed within their window.
That is acceptable only for internal, authenticated clients.
"""

import hashlib
import hmac
from datetime import datetime, timedelta
from typing import Callable, Optional

from shared.errors import UnauthorizedError

from .credential_store import CredentialStore


def time_window_label(when: datetime) -> str:
    """
    Encode the calendar hour of ``when`` as ``year:month:day:hour``.

    The month is zero-based (January is 0) to stay compatible with tokens
    produced by existing clients.
    """
    return f"{when.year}:{when.month - 1}:{when.day}:{when.hour}"


def create_token(client_id: str, secret: str, when: Optional[datetime] = None) -> str:
    """Compute the token a client sends for the hour window containing ``when``."""
    if when is None:
        when = datetime.now()
    payload = client_id + secret + time_window_label(when)
    return hashlib.sha256(payload.encode('utf-8')).hexdigest()


class Authorizer:
    """Validates (client id, token) pairs against a CredentialStore."""

    def __init__(
        self,
        credential_store: CredentialStore,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the authorizer.

        Args:
            credential_store: Immutable credential lookup
            clock: Returns the current local time; defaults to ``datetime.now``

        Raises:
            ValueError: If no credential store is provided
        """
        if credential_store is None:
            raise ValueError("CredentialStore must be provided")

        self.credential_store = credential_store
        self._clock = clock or datetime.now

    def candidate_tokens(self, client_id: str, secret: str):
        """Tokens accepted right now: current hour and the preceding hour."""
        now = self._clock()
        return [
            create_token(client_id, secret, now),
            # Real date arithmetic: 00:xx falls back to 23:xx of the previous day
            create_token(client_id, secret, now - timedelta(hours=1)),
        ]

    def authorize(self, client_id: str, token: str) -> None:
        """
        Verify a presented token.

        Raises:
            UnauthorizedError: If the client is unknown or the token is invalid
        """
        secret = self.credential_store.get_secret(client_id)
        if secret is None:
            raise UnauthorizedError(f"Unknown clientId '{client_id}'.")

        if not token or not isinstance(token, str):
            raise UnauthorizedError("Invalid token.")

        presented = token.encode('utf-8')
        for candidate in self.candidate_tokens(client_id, secret):
            if hmac.compare_digest(candidate.encode('utf-8'), presented):
                return

        raise UnauthorizedError("Invalid token.")
