"""
Per-user record store with an in-memory coherency cache.

Responsibilities:
- load(): cache first; on miss read the durable payload, rebuild derived
  fields (signing keypair) and synthesize + persist a default record for
  new users.
- save(): serialize, persist, and only then replace the cached copy.
- Hand out working copies so callers can mutate without touching the cache
  until a save succeeds.

FileRecordStore keeps one vault-sealed file per user; MemoryRecordStore keeps
plaintext JSON in a dict for tests and embedding.
"""

from __future__ import annotations

import json
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from tradebot_agent.core.exceptions import (
    DecryptionError,
    PersistenceError,
    ValidationError,
    WalletReconstructionError,
)
from tradebot_agent.conversation.states import decode_state
from tradebot_agent.store.models import TradeEvent, TradeSettings, UserRecord, Wallet
from tradebot_agent.tradebot_logging import get_logger
from tradebot_agent.vault.codec import VaultCodec

logger = get_logger(__name__)

USER_FILE_TEMPLATE = "user_{user_id}.vault"
_USER_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def normalize_user_id(user_id: Any) -> str:
    """User ids are opaque; they become part of a filename, so restrict the alphabet."""
    value = str(user_id).strip()
    if not _USER_ID_RE.match(value):
        raise ValueError(f"Invalid user id: {value!r}")
    return value


def record_from_payload(user_id: str, data: Any) -> UserRecord:
    """
    Build a UserRecord from its durable dict.

    A wallet whose private key cannot be turned into a keypair is dropped
    (user must re-import); the rest of the record is kept. A payload that is
    not a dict, or whose ledger entries are unreadable, is a DecryptionError:
    the blob opened but does not hold a valid record.
    """
    if not isinstance(data, dict):
        raise DecryptionError("Decrypted record is not a JSON object.")

    wallet: Wallet | None = None
    raw_wallet = data.get("wallet")
    if isinstance(raw_wallet, dict) and raw_wallet.get("privateKey"):
        try:
            wallet = Wallet.from_stored(
                str(raw_wallet.get("publicKey") or ""),
                str(raw_wallet["privateKey"]),
            )
        except WalletReconstructionError as e:
            logger.error("wallet_reconstruction_failed", user_id=user_id, error=str(e))
            wallet = None

    try:
        transactions = [TradeEvent.from_dict(tx) for tx in (data.get("transactions") or [])]
    except (KeyError, TypeError, ValueError, ValidationError) as e:
        raise DecryptionError(f"Record ledger is unreadable: {e}") from e

    return UserRecord(
        wallet=wallet,
        settings=TradeSettings.from_dict(data.get("settings")),
        transactions=transactions,
        conversation=decode_state(data.get("state"), data.get("context")),
    )


class RecordStore(ABC):
    """
    Cache + load/save protocol shared by all backends.

    Backends implement _read_payload/_write_payload; everything about cache
    coherency lives here.
    """

    def __init__(self) -> None:
        self._cache: dict[str, UserRecord] = {}

    @abstractmethod
    def _read_payload(self, user_id: str) -> dict[str, Any] | None:
        """Return the durable dict, None if nothing persisted. May raise DecryptionError/PersistenceError."""

    @abstractmethod
    def _write_payload(self, user_id: str, payload: dict[str, Any]) -> None:
        """Persist the durable dict. Raises PersistenceError (or any OSError) on failure."""

    def load(self, user_id: Any, *, bypass_cache: bool = False) -> UserRecord:
        """
        Return a working copy of the user's record.

        Raises DecryptionError for a corrupted vault (distinct from a new
        user) and PersistenceError when the file cannot be read. A new user's
        default record is persisted before being returned; if that write
        fails the default is still returned but not cached.
        """
        uid = normalize_user_id(user_id)
        if not bypass_cache and uid in self._cache:
            return self._cache[uid].clone()

        record = self.load_persisted(uid)
        if record is None:
            logger.info("record_created_default", user_id=uid)
            record = UserRecord()
            if not self.save(uid, record):
                return record
            return record.clone()

        self._cache[uid] = record
        logger.debug("record_loaded", user_id=uid, wallet=record.wallet is not None)
        return record.clone()

    def load_persisted(self, user_id: Any) -> UserRecord | None:
        """Read the durable copy only (no cache). None means no record was ever saved."""
        uid = normalize_user_id(user_id)
        payload = self._read_payload(uid)
        if payload is None:
            return None
        return record_from_payload(uid, payload)

    def save(self, user_id: Any, record: UserRecord) -> bool:
        """
        Persist record and refresh the cache. Never raises.

        Returns False on any serialization, encryption or I/O failure; the
        cached copy then still holds the last successfully saved record.
        """
        uid = normalize_user_id(user_id)
        try:
            self._write_payload(uid, record.to_dict())
        except Exception as e:
            logger.error("record_save_failed", user_id=uid, error=str(e), error_type=type(e).__name__)
            return False
        self._cache[uid] = record.clone()
        logger.debug("record_saved", user_id=uid, transactions=len(record.transactions))
        return True

    def evict(self, user_id: Any) -> None:
        """Drop the cached copy; next load re-reads the durable one."""
        self._cache.pop(normalize_user_id(user_id), None)

    def is_cached(self, user_id: Any) -> bool:
        return normalize_user_id(user_id) in self._cache


class FileRecordStore(RecordStore):
    """One "<ivHex>:<cipherHex>" file per user under data_dir."""

    def __init__(self, data_dir: str | Path, codec: VaultCodec) -> None:
        super().__init__()
        self._data_dir = Path(data_dir)
        self._codec = codec

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_for(self, user_id: Any) -> Path:
        return self._data_dir / USER_FILE_TEMPLATE.format(user_id=normalize_user_id(user_id))

    def _read_payload(self, user_id: str) -> dict[str, Any] | None:
        path = self.path_for(user_id)
        if not path.exists():
            return None
        try:
            blob = path.read_text(encoding="utf-8")
        except OSError as e:
            raise PersistenceError(f"Could not read record file for user {user_id}: {e}") from e
        plaintext = self._codec.open(blob)
        try:
            return json.loads(plaintext.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecryptionError("Decrypted record is not valid JSON.") from e

    def _write_payload(self, user_id: str, payload: dict[str, Any]) -> None:
        blob = self._codec.seal(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
        self._write_blob(self.path_for(user_id), blob)

    def _write_blob(self, path: Path, blob: str) -> None:
        """Temp file + os.replace so a reader never sees a half-written vault."""
        try:
            self._data_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".tmp")
            tmp.write_text(blob, encoding="utf-8")
            if os.name != "nt":
                os.chmod(tmp, 0o600)
            os.replace(tmp, path)
        except OSError as e:
            raise PersistenceError(f"Could not write record file {path.name}: {e}") from e


class MemoryRecordStore(RecordStore):
    """Plaintext JSON kept in a dict. Same cache semantics as FileRecordStore."""

    def __init__(self) -> None:
        super().__init__()
        self._payloads: dict[str, str] = {}
        self.fail_writes = False

    def _read_payload(self, user_id: str) -> dict[str, Any] | None:
        raw = self._payloads.get(user_id)
        return json.loads(raw) if raw is not None else None

    def _write_payload(self, user_id: str, payload: dict[str, Any]) -> None:
        if self.fail_writes:
            raise PersistenceError("Writes are disabled for this store.")
        self._payloads[user_id] = json.dumps(payload)
