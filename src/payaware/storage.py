"""Credential storage.

The session logic only needs asynchronous ``get``/``set``/``delete`` by
string key (see :class:`CredentialStore`).  Two implementations ship
with the library: an in-memory store for tests and short-lived
processes, and a Fernet-encrypted JSON file for anything that must
survive a restart.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from cryptography.fernet import Fernet, InvalidToken

from payaware.exceptions import ConfigError, CredentialUnavailableError

if TYPE_CHECKING:
    from payaware.config import PayAwareConfig

_logger = logging.getLogger(__name__)


class CredentialStore(Protocol):
    """Async key-value secret storage.

    Each call is individually atomic; there are no multi-key
    transactions.  Failures raise :class:`CredentialUnavailableError`.
    """

    async def get(self, key: str) -> str | None:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


async def read_credential(store: CredentialStore, key: str) -> str | None:
    """Read *key*, treating storage failures and empty values as absent.

    Any error from the store counts as a failure, not only
    :class:`CredentialUnavailableError`: platform keychains raise their own.
    """
    try:
        value = await store.get(key)
    except Exception:
        _logger.warning("Credential %s unavailable; treating as absent", key, exc_info=True)
        return None
    return value or None


class MemoryCredentialStore:
    """Dict-backed store; contents are lost with the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._values.get(key)

    async def set(self, key: str, value: str) -> None:
        self._values[key] = value

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        return dict(self._values)


def generate_credentials_key() -> str:
    """Generate a new Fernet key for :class:`EncryptedFileCredentialStore`."""
    return Fernet.generate_key().decode("utf-8")


class EncryptedFileCredentialStore:
    """All credentials in one Fernet-encrypted JSON file.

    The whole map is re-encrypted on every write and replaced atomically
    (write to a temp file, then ``os.replace``).  File I/O runs in a
    worker thread so the event loop never blocks on disk.
    """

    def __init__(self, path: str | os.PathLike[str], key: str) -> None:
        try:
            self._fernet = Fernet(key.encode("utf-8"))
        except ValueError as exc:
            raise ConfigError("credentials key must be a urlsafe base64 encoded 32-byte key") from exc
        self._path = Path(path)
        self._lock = asyncio.Lock()

    def _load(self) -> dict[str, str]:
        try:
            blob = self._path.read_bytes()
        except FileNotFoundError:
            return {}
        except OSError as exc:
            raise CredentialUnavailableError(f"cannot read {self._path}: {exc}") from exc
        if not blob:
            return {}
        try:
            data = json.loads(self._fernet.decrypt(blob))
        except InvalidToken as exc:
            raise CredentialUnavailableError(f"{self._path} cannot be decrypted with this key") from exc
        except json.JSONDecodeError as exc:
            raise CredentialUnavailableError(f"{self._path} is corrupt") from exc
        if not isinstance(data, dict):
            raise CredentialUnavailableError(f"{self._path} is corrupt")
        return {str(k): str(v) for k, v in data.items()}

    def _store(self, values: dict[str, str]) -> None:
        blob = self._fernet.encrypt(json.dumps(values, separators=(",", ":")).encode("utf-8"))
        tmp = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(blob)
            os.chmod(tmp, 0o600)
            os.replace(tmp, self._path)
        except OSError as exc:
            raise CredentialUnavailableError(f"cannot write {self._path}: {exc}") from exc

    async def get(self, key: str) -> str | None:
        async with self._lock:
            values = await asyncio.to_thread(self._load)
        return values.get(key)

    async def set(self, key: str, value: str) -> None:
        async with self._lock:
            values = await asyncio.to_thread(self._load)
            values[key] = value
            await asyncio.to_thread(self._store, values)
        _logger.debug("Stored credential %s", key)

    async def delete(self, key: str) -> None:
        async with self._lock:
            values = await asyncio.to_thread(self._load)
            if values.pop(key, None) is None:
                return
            await asyncio.to_thread(self._store, values)
        _logger.debug("Deleted credential %s", key)


def open_credential_store(config: PayAwareConfig) -> CredentialStore:
    """Store described by *config*: the encrypted file when a path is set, memory otherwise."""
    if config.credentials_path is None:
        return MemoryCredentialStore()
    if not config.credentials_key:
        raise ConfigError("credentials_key is required when credentials_path is set")
    _logger.debug("Using encrypted credential file %s", config.credentials_path)
    return EncryptedFileCredentialStore(config.credentials_path, config.credentials_key)
