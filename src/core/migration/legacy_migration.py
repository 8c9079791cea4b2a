import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from src.core.domain.budget_settings import DEFAULT_SETTINGS
from src.core.domain.entry import Entry
from src.core.ledger.event_factory import make_entry_added, make_initial_settings
from src.core.ledger.event_log import EventLog
from src.core.ledger.ledger_event import EPOCH_ORDERING_KEY, LedgerEvent
from src.core.observability.ledger_logger import LedgerLogger
from src.core.persistence.storage_keys import StorageKeys
from src.core.persistence.store import Store
from src.core.replay.replay_engine import ReplayEngine
from src.core.time.calendar_dates import add_days, parse_iso

logger = logging.getLogger(__name__)


@dataclass
class MigrationReport:
    already_migrated: bool
    entries_created: int = 0
    budgets_created: int = 0
    settings_created: int = 0
    total_events: int = 0
    materialized_dates: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


class LegacyMigrator:
    """
    One-time conversion of the flat pre-ledger state (a settings object and an
    entry list, each under its own Store key) into an initial event log.

    NotMigrated -> Migrated is one-way: the log being non-empty is the marker.
    Every step degrades to a warning on failure; partial progress is kept.
    """

    def __init__(
            self,
            store: Store,
            event_log: EventLog,
            engine: ReplayEngine,
            keys: Optional[StorageKeys] = None,
            ledger_logger: Optional[LedgerLogger] = None,
    ):
        self.store = store
        self.event_log = event_log
        self.engine = engine
        self.keys = keys or event_log.keys
        self.ledger_logger = ledger_logger

    def is_migrated(self) -> bool:
        return len(self.event_log.load()) > 0

    def migrate_from_legacy_model(self) -> MigrationReport:
        existing = self.event_log.load()
        if existing:
            return MigrationReport(
                already_migrated=True,
                total_events=len(existing),
                warnings=["Migration already completed."],
            )

        report = MigrationReport(already_migrated=False)

        legacy_settings = self._load_legacy_settings(report.warnings)
        legacy_entries = self._load_legacy_entries(report.warnings)

        events: List[LedgerEvent] = [make_initial_settings(legacy_settings)]
        report.settings_created = 1

        seen_ids = set()
        for entry in sorted(legacy_entries, key=lambda e: e.timestamp):
            if entry.id in seen_ids:
                report.warnings.append(f"Duplicate legacy entry {entry.id} skipped")
                continue
            try:
                events.append(make_entry_added(entry))
            except ValueError as e:
                report.warnings.append(f"Legacy entry {entry.id} skipped: {e}")
                continue
            seen_ids.add(entry.id)
            report.entries_created += 1

        self.event_log.save(events)
        if not self.event_log.load():
            report.warnings.append("Migrated events could not be persisted")

        yesterday = add_days(self.engine.clock.today().isoformat(), -1)
        try:
            report.materialized_dates = self.engine.materialize_up_to(yesterday)
        except Exception as e:
            logger.exception("Materialization during migration failed")
            report.warnings.append(f"Materialization failed: {e}")

        report.budgets_created = len(report.materialized_dates)
        report.total_events = len(events) + report.budgets_created

        for warning in report.warnings:
            logger.warning(f"Migration: {warning}")
        if self.ledger_logger:
            self.ledger_logger.emit(
                "MIGRATION_COMPLETED",
                entries_created=report.entries_created,
                budgets_created=report.budgets_created,
                warnings=len(report.warnings),
            )
        return report

    def _read_legacy(self, key: str, warnings: List[str]) -> Any:
        try:
            raw = self.store.get_item(key)
        except Exception as e:
            warnings.append(f"Failed to read {key}: {e}")
            return None
        if not raw:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            warnings.append(f"Failed to parse {key}: {e}")
            return None

    def _load_legacy_settings(self, warnings: List[str]) -> Dict[str, Any]:
        data = self._read_legacy(self.keys.legacy_settings, warnings)
        if data is None:
            return {}
        if not isinstance(data, dict):
            warnings.append("Legacy settings are not an object; using defaults")
            return {}

        # Keys are replaced wholesale on merge, so each can be checked on its own
        patch: Dict[str, Any] = {}
        for key, value in data.items():
            try:
                DEFAULT_SETTINGS.merge({key: value})
            except (KeyError, TypeError, ValueError) as e:
                warnings.append(f"Legacy setting {key} dropped: {e!r}")
                continue
            patch[key] = value
        return patch

    def _load_legacy_entries(self, warnings: List[str]) -> List[Entry]:
        data = self._read_legacy(self.keys.legacy_entries, warnings)
        if data is None:
            return []
        if not isinstance(data, list):
            warnings.append("Legacy entries are not a list; none migrated")
            return []

        entries: List[Entry] = []
        for raw_entry in data:
            try:
                entries.append(self._legacy_entry(raw_entry, warnings))
            except (KeyError, TypeError, ValueError) as e:
                warnings.append(f"Malformed legacy entry skipped: {e!r}")
        return entries

    def _legacy_entry(self, raw_entry: Dict[str, Any], warnings: List[str]) -> Entry:
        """
        Entries without a usable timestamp are restamped to local midnight of
        their date, kept clear of the epoch ordering key.
        """
        try:
            timestamp = int(raw_entry["timestamp"])
        except (KeyError, TypeError, ValueError):
            timestamp = None

        if timestamp is None or timestamp <= EPOCH_ORDERING_KEY:
            day_start = self.engine.clock.start_of_day_ms(parse_iso(raw_entry["date"]))
            restamped = max(EPOCH_ORDERING_KEY + 1, day_start)
            warnings.append(
                f"Legacy entry {raw_entry.get('id')} had timestamp {raw_entry.get('timestamp')!r}; "
                f"restamped to {restamped}"
            )
            raw_entry = {**raw_entry, "timestamp": restamped}
        return Entry.from_dict(raw_entry)
