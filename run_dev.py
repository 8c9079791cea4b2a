import logging

from src.config.settings import settings
from src.core.ledger.event_log import EventLog
from src.core.migration.legacy_migration import LegacyMigrator
from src.core.observability.ledger_logger import LedgerLogger
from src.core.persistence.storage_keys import StorageKeys
from src.core.persistence.store_factory import build_store
from src.core.replay.replay_engine import ReplayEngine
from src.core.services.ledger_service import LedgerService
from src.core.stats.stats_calculator import DefaultStatsCalculator
from src.core.time.clock import resolve_timezone
from src.core.time.system_clock import SystemClock


def main():
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    print(f"Initializing DEV ledger ({settings.LEDGER_STORE_BACKEND} backend)...")

    # 1. Infrastructure
    clock = SystemClock(resolve_timezone(settings.LEDGER_TIMEZONE))
    store = build_store(settings)
    keys = StorageKeys.from_settings(settings)
    ledger_logger = LedgerLogger(clock)

    # 2. Ledger
    event_log = EventLog(store, keys, ledger_logger)
    engine = ReplayEngine(event_log, clock, DefaultStatsCalculator(), ledger_logger)
    service = LedgerService(event_log, engine, clock, ledger_logger)

    # 3. One-time migration of pre-ledger data
    migrator = LegacyMigrator(store, event_log, engine, keys, ledger_logger)
    if not migrator.is_migrated():
        report = migrator.migrate_from_legacy_model()
        print(f"Migrated: {report.entries_created} entries, {report.budgets_created} frozen days")
        for warning in report.warnings:
            print(f"  warning: {warning}")

    # 4. Lock history and summarize
    newly_frozen = service.lock_history()
    print(f"Frozen {len(newly_frozen)} new past days")

    state = service.current_state()
    today = clock.today().isoformat()
    figures = engine.calculator.compute_daily_figures(
        state.settings, state.entries, today, state.daily_budgets
    )
    print(f"Events: {len(state.events)}, entries: {len(state.entries)}, frozen days: {len(state.daily_budgets)}")
    print(f"Today {today}: base {figures.base_budget}, rollover {figures.rollover}, remaining {figures.remaining}")
    print("Dev run complete.")


if __name__ == "__main__":
    main()
