"""
Credential store for META Storage.

Holds the immutable mapping of client id to shared secret that the
Authorizer verifies tokens against. Loaded once at startup.
"""

import json
import logging
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Union

from shared.config.config_manager import ConfigValidationError


logger = logging.getLogger(__name__)


class CredentialStore:
    """Read-only lookup of client id -> shared secret."""

    def __init__(self, credentials: Mapping[str, str]):
        """
        Initialize the store from a mapping.

        Args:
            credentials: Mapping of client id to shared secret. It is copied,
                so later changes to the argument are not visible here.

        Raises:
            ValueError: If a client id or secret is not a non-empty string
        """
        for client_id, secret in credentials.items():
            if not isinstance(client_id, str) or not client_id:
                raise ValueError("Client id must be a non-empty string")
            if not isinstance(secret, str) or not secret:
                raise ValueError(f"Secret for client '{client_id}' must be a non-empty string")

        self._credentials = MappingProxyType(dict(credentials))

    @classmethod
    def from_file(cls, filename: Union[str, Path]) -> 'CredentialStore':
        """
        Load credentials from a JSON object file ``{"clientId": "secret"}``.

        Raises:
            ConfigValidationError: If the file is missing or malformed
        """
        path = Path(filename)
        if not path.exists():
            raise ConfigValidationError(f"Credentials DB file '{filename}' not exists.")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigValidationError(f"Cannot read DB file. ({e})")

        if not isinstance(data, dict):
            raise ConfigValidationError("Cannot read DB file. (expected a JSON object)")

        try:
            store = cls(data)
        except ValueError as e:
            raise ConfigValidationError(f"Cannot read DB file. ({e})")

        logger.info(f"Loaded {len(store)} client credentials from {path}")
        return store

    def get_secret(self, client_id: str) -> Optional[str]:
        """Return the shared secret for a client, or None when unknown."""
        return self._credentials.get(client_id)

    def client_ids(self) -> List[str]:
        return sorted(self._credentials)

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._credentials

    def __len__(self) -> int:
        return len(self._credentials)

    def __repr__(self) -> str:
        # Secrets are never rendered
        return f"<CredentialStore(clients={self.client_ids()})>"
