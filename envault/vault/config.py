"""
Vault Configuration — Master key loading and validated settings.

Reads keys and rotation tuning from environment variables:
    ENVAULT_MASTER_KEY = <hex, base64 or passphrase>
    ENVAULT_PREVIOUS_MASTER_KEYS = <key>,<key>,...
    KEY_ROTATION_BATCH_SIZE = <integer, default 200>
    KEY_ROTATION_DRY_RUN = 1

Security Note:
    Never log key material. Only log key counts and positions.
"""
import os
import logging

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..exceptions import InvalidMasterKeyError
from .crypto import validate_master_key

logger = logging.getLogger("envault.vault")

MASTER_KEY_ENV = "ENVAULT_MASTER_KEY"
PREVIOUS_KEYS_ENV = "ENVAULT_PREVIOUS_MASTER_KEYS"
BATCH_SIZE_ENV = "KEY_ROTATION_BATCH_SIZE"
DRY_RUN_ENV = "KEY_ROTATION_DRY_RUN"

DEFAULT_BATCH_SIZE = 200

_TRUTHY = frozenset({"1", "true", "yes", "on"})


def _split_keys(raw: str) -> list[str]:
    return [part.strip() for part in raw.split(",") if part.strip()]


def load_master_keys() -> tuple[str, list[str]]:
    """Load the active and previous master keys from the environment.

    Returns:
        Tuple of (active_key, previous_keys) in configured order.

    Raises:
        RuntimeError: If ENVAULT_MASTER_KEY is not set.
    """
    active = os.environ.get(MASTER_KEY_ENV, "").strip()
    if not active:
        raise RuntimeError(
            f"{MASTER_KEY_ENV} is required. "
            "Generate one with envault.vault.generate_master_key()"
        )
    previous = _split_keys(os.environ.get(PREVIOUS_KEYS_ENV, ""))
    logger.debug("Loaded active master key and %d previous key(s)", len(previous))
    return active, previous


class VaultConfig(BaseModel):
    """Validated vault configuration.

    Loaded once at process start and immutable thereafter.
    """

    model_config = ConfigDict(frozen=True)

    master_key: str
    previous_keys: list[str] = Field(default_factory=list)
    batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1, le=10000)
    dry_run: bool = False

    @field_validator("master_key")
    @classmethod
    def validate_active_key(cls, v: str) -> str:
        """Fail fast on an unusable active key."""
        result = validate_master_key(v)
        if not result.valid:
            raise InvalidMasterKeyError(f"Invalid {MASTER_KEY_ENV}: {result.error}")
        return v

    @field_validator("previous_keys")
    @classmethod
    def validate_previous_keys(cls, v: list[str]) -> list[str]:
        """Validate every previous key and drop duplicates, keeping order."""
        unique: list[str] = []
        for position, key in enumerate(v, start=1):
            result = validate_master_key(key)
            if not result.valid:
                raise InvalidMasterKeyError(
                    f"Invalid previous master key #{position}: {result.error}"
                )
            if key not in unique:
                unique.append(key)
        return unique

    @model_validator(mode="after")
    def validate_active_not_previous(self) -> "VaultConfig":
        """The active key must not also be listed as a previous key."""
        if self.master_key in self.previous_keys:
            raise ValueError(
                f"{PREVIOUS_KEYS_ENV} must not contain the active master key"
            )
        return self

    @property
    def candidate_keys(self) -> list[str]:
        """Keys to try at decrypt time, active key first."""
        return [self.master_key, *self.previous_keys]

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        master_key, previous_keys = load_master_keys()
        batch_size = int(os.environ.get(BATCH_SIZE_ENV, DEFAULT_BATCH_SIZE))
        dry_run = os.environ.get(DRY_RUN_ENV, "").strip().lower() in _TRUTHY
        return cls(
            master_key=master_key,
            previous_keys=previous_keys,
            batch_size=batch_size,
            dry_run=dry_run,
        )
