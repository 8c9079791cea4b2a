from dataclasses import dataclass

from src.config.settings import Settings


@dataclass(frozen=True)
class StorageKeys:
    """
    Store keys used by the ledger.
    `checkpoints` is reserved for replay snapshots and is only ever cleared.
    """
    transactions: str = "brewbalance.transactions"
    checkpoints: str = "brewbalance.checkpoints"
    legacy_settings: str = "brewbalance.settings"
    legacy_entries: str = "brewbalance.entries"

    @classmethod
    def from_settings(cls, config: Settings) -> "StorageKeys":
        return cls(
            transactions=config.TRANSACTIONS_KEY,
            checkpoints=config.CHECKPOINTS_KEY,
            legacy_settings=config.LEGACY_SETTINGS_KEY,
            legacy_entries=config.LEGACY_ENTRIES_KEY,
        )
