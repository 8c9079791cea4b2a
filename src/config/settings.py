import os
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    LEDGER_STORE_BACKEND: str = os.getenv("LEDGER_STORE_BACKEND", "file")  # memory | file | sql
    LEDGER_FILE_PATH: str = "data/ledger_store.json"
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///data/ledger.db")

    # Zone that defines "today" and local midnight for replay cutoffs
    LEDGER_TIMEZONE: str = "UTC"

    # Storage keys
    TRANSACTIONS_KEY: str = "brewbalance.transactions"
    CHECKPOINTS_KEY: str = "brewbalance.checkpoints"
    LEGACY_SETTINGS_KEY: str = "brewbalance.settings"
    LEGACY_ENTRIES_KEY: str = "brewbalance.entries"

    LOG_LEVEL: str = "INFO"


settings = Settings()
