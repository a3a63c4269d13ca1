"""Persistence of the learner-supplied model API credential."""
from typing import Optional, Protocol

import structlog

from ..domain.errors import StorageAccessError

logger = structlog.get_logger(__name__)

KEY_PREFIX = "sk-"
MIN_KEY_LENGTH = 21


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...
    def set_item(self, key: str, value: str) -> None: ...
    def remove_item(self, key: str) -> None: ...


def is_valid_format(key: Optional[str]) -> bool:
    """Advisory format check; nothing is sent to the provider."""
    return bool(key) and key.startswith(KEY_PREFIX) and len(key) >= MIN_KEY_LENGTH


class LocalKeyStore:
    """Holds exactly one credential under ``storage_key``.

    Reads never raise: a storage failure is logged and reported as "no key".
    """

    def __init__(self, storage: KeyValueStorage, storage_key: str):
        self.storage = storage
        self.storage_key = storage_key
        self.api_key: Optional[str] = None

    @property
    def has_key(self) -> bool:
        return bool(self.api_key)

    def get(self) -> Optional[str]:
        try:
            self.api_key = self.storage.get_item(self.storage_key)
        except StorageAccessError as e:
            logger.warning("key_store_read_failed", storage_key=self.storage_key, error=str(e))
            return None
        return self.api_key

    def set(self, key: Optional[str]) -> None:
        try:
            if key is not None:
                self.storage.set_item(self.storage_key, key)
            else:
                self.storage.remove_item(self.storage_key)
        except StorageAccessError as e:
            logger.warning("key_store_write_failed", storage_key=self.storage_key, error=str(e))
            return
        self.api_key = key

    def clear(self) -> None:
        self.set(None)

    is_valid_format = staticmethod(is_valid_format)
