"""Socket.dev API key resolution and storage.

Priority: environment override (SOCKET_SCANNER_TOKEN / NI_SOCKETDEV_TOKEN)
-> OS keyring. An empty string is treated the same as a missing key.

Provides:
- SecretStore: Protocol for the persistent key store
- KeyringStore: SecretStore backed by the OS keyring
- CredentialProvider: Resolve, store and delete the API key
"""

from typing import Literal, Protocol, runtime_checkable

import keyring
import structlog
from keyring.errors import KeyringError

from socket_scanner.core.config import Config, load_config

logger = structlog.get_logger()

SERVICE_NAME = "socket-scanner"
API_KEY_NAME = "socket-api-key"

KeySource = Literal["environment", "keyring", "none"]


@runtime_checkable
class SecretStore(Protocol):
    """Persistent storage for a single named secret."""

    def get(self) -> str | None:
        ...

    def set(self, value: str) -> None:
        ...

    def delete(self) -> None:
        ...


class KeyringStore:
    """API key stored in the OS keyring under SERVICE_NAME / API_KEY_NAME."""

    def __init__(self, service: str = SERVICE_NAME, name: str = API_KEY_NAME):
        self.service = service
        self.name = name

    def get(self) -> str | None:
        return keyring.get_password(self.service, self.name)

    def set(self, value: str) -> None:
        keyring.set_password(self.service, self.name, value)

    def delete(self) -> None:
        keyring.delete_password(self.service, self.name)


class CredentialProvider:
    """Resolves the API key from the environment, then the secret store.

    Args:
        config: Configuration carrying the environment override
        store: Secret store (defaults to the OS keyring)
    """

    def __init__(self, config: Config | None = None, store: SecretStore | None = None):
        self.config = config or load_config()
        self.store = store or KeyringStore()

    def _stored_key(self) -> str | None:
        try:
            key = self.store.get()
        except KeyringError as e:
            logger.debug("secret_store_unavailable", error=str(e))
            return None
        return key or None

    def resolve(self) -> str | None:
        """Return the API key, or None when none is configured."""
        if self.config.api_token:
            return self.config.api_token
        return self._stored_key()

    def key_source(self) -> KeySource:
        """Where resolve() would take the key from."""
        if self.config.api_token:
            return "environment"
        if self._stored_key():
            return "keyring"
        return "none"

    def has_api_key(self) -> bool:
        return self.resolve() is not None

    def set_api_key(self, api_key: str) -> None:
        """Store the API key in the secret store.

        Raises:
            ValueError: If the key is empty after stripping whitespace
        """
        api_key = api_key.strip()
        if not api_key:
            raise ValueError("API key cannot be empty")
        self.store.set(api_key)
        logger.info("api_key_stored", service=SERVICE_NAME)

    def delete_api_key(self) -> None:
        """Remove the stored API key. Store errors propagate to the caller."""
        self.store.delete()
        logger.info("api_key_deleted", service=SERVICE_NAME)
