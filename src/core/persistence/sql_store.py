from typing import Optional

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from src.core.persistence.store import Store


class SqlStore(Store):
    """
    Key/value store over a single SQL table.
    Works against SQLite and PostgreSQL.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self.ensure_schema()

    @classmethod
    def from_dsn(cls, dsn: str) -> "SqlStore":
        engine = create_engine(dsn, pool_pre_ping=True, future=True)
        return cls(engine)

    def ensure_schema(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(
                text(
                    """
                    CREATE TABLE IF NOT EXISTS ledger_kv (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                    """
                )
            )

    def get_item(self, key: str) -> Optional[str]:
        with self.engine.begin() as conn:
            row = conn.execute(
                text("SELECT value FROM ledger_kv WHERE key = :key"),
                {"key": key},
            ).first()
        if not row:
            return None
        return row.value

    def set_item(self, key: str, value: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(text("DELETE FROM ledger_kv WHERE key = :key"), {"key": key})
            conn.execute(
                text("INSERT INTO ledger_kv (key, value) VALUES (:key, :value)"),
                {"key": key, "value": value},
            )

    def remove_item(self, key: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(text("DELETE FROM ledger_kv WHERE key = :key"), {"key": key})
