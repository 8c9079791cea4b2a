from src.config.settings import Settings
from src.core.persistence.file_store import FileStore
from src.core.persistence.sql_store import SqlStore
from src.core.persistence.store import InMemoryStore, Store


def build_store(config: Settings) -> Store:
    backend = config.LEDGER_STORE_BACKEND.lower()
    if backend == "memory":
        return InMemoryStore()
    if backend == "file":
        return FileStore(config.LEDGER_FILE_PATH)
    if backend == "sql":
        return SqlStore.from_dsn(config.DATABASE_URL)
    raise ValueError(f"Unknown LEDGER_STORE_BACKEND: {config.LEDGER_STORE_BACKEND}")
