"""
Vault Key Rotation — Multi-key decryption and batch re-encryption.

Old ciphertexts stay readable while the previous keys remain configured;
``rotate_master_key`` then re-encrypts every stored value under the
active key, one cursor-paginated batch at a time.

Operational precondition:
    Run rotation only with a new active key, and keep the old key listed in
    ENVAULT_PREVIOUS_MASTER_KEYS until the run completes. A failed run can
    be re-triggered: unprocessed rows still decrypt with the old key and
    processed rows with the active one.

Security Note:
    Plaintext exists in memory only during re-encryption of each row.
    Never log plaintext or ciphertext values.
"""
import logging
from collections.abc import Sequence
from typing import NamedTuple, Optional, Protocol

from pydantic import BaseModel, Field

from ..exceptions import DecryptionError
from .config import VaultConfig
from .crypto import decrypt, encrypt

logger = logging.getLogger("envault.vault")


class CiphertextRecord(NamedTuple):
    """A stored ciphertext and its stable ordering id."""

    id: str
    value: str


class RecordStore(Protocol):
    """Storage collaborator exposing cursor-paginated ciphertext tables."""

    tables: Sequence[str]

    async def fetch_batch(
        self, table: str, after_id: Optional[str], limit: int,
    ) -> list[CiphertextRecord]:
        """Return up to ``limit`` records with id > ``after_id``, ascending."""
        ...

    async def update(self, table: str, record_id: str, value: str) -> None:
        """Overwrite the ciphertext of one record."""
        ...


class RotationStats(BaseModel):
    """Outcome of a rotation run."""

    dry_run: bool = False
    tables: dict[str, int] = Field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.tables.values())


# ---------------------------------------------------------------------------
# Multi-key helpers
# ---------------------------------------------------------------------------

def decrypt_value(ciphertext: str, keys: Sequence[str]) -> str:
    """Decrypt with the first candidate key that authenticates.

    Args:
        ciphertext: Stored blob.
        keys: Candidate keys, active key first then previous keys in
            configured order.

    Returns:
        Decrypted plaintext.

    Raises:
        DecryptionError: The last error when no candidate key matches.
        ValueError: If ``keys`` is empty.
    """
    if not keys:
        raise ValueError("At least one master key is required")
    last_error: Optional[DecryptionError] = None
    for key in keys:
        try:
            return decrypt(ciphertext, key)
        except DecryptionError as err:
            last_error = err
    raise last_error


def encrypt_value(plaintext: str, config: VaultConfig) -> str:
    """Encrypt with the active key only."""
    return encrypt(plaintext, config.master_key)


# ---------------------------------------------------------------------------
# Rotation
# ---------------------------------------------------------------------------

async def _rotate_table(store: RecordStore, table: str, config: VaultConfig) -> int:
    keys = config.candidate_keys
    cursor: Optional[str] = None
    rotated = 0
    batch_num = 0

    while True:
        batch = await store.fetch_batch(table, cursor, config.batch_size)
        if not batch:
            break

        batch_num += 1
        logger.info(
            "Processing %s batch %d (%d rows)", table, batch_num, len(batch),
        )

        for record in batch:
            try:
                plaintext = decrypt_value(record.value, keys)
            except DecryptionError:
                logger.error(
                    "No configured master key decrypts %s id=%s", table, record.id,
                )
                raise
            new_ct = encrypt(plaintext, config.master_key)
            if not config.dry_run:
                await store.update(table, record.id, new_ct)
            rotated += 1

        cursor = batch[-1].id
        if len(batch) < config.batch_size:
            break

    return rotated


async def rotate_master_key(store: RecordStore, config: VaultConfig) -> RotationStats:
    """Re-encrypt every stored ciphertext under the active master key.

    Tables are processed one after another in a single pass. Stopping
    between batches is the only supported form of cancellation.

    Args:
        store: Storage collaborator with cursor-paginated reads.
        config: Active key, previous keys and rotation tuning.

    Returns:
        RotationStats with the number of records processed per table.

    Raises:
        DecryptionError: If a record matches none of the configured keys.
    """
    mode = "DRY_RUN" if config.dry_run else "EXECUTE"
    stats = RotationStats(dry_run=config.dry_run)

    logger.info(
        "Starting key rotation in mode=%s (batch_size=%d, previous_keys=%d)",
        mode, config.batch_size, len(config.previous_keys),
    )

    for table in store.tables:
        stats.tables[table] = await _rotate_table(store, table, config)
        logger.info("%s rows processed: %d", table, stats.tables[table])

    logger.info("Key rotation complete: %s", stats.tables)
    return stats
