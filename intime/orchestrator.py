"""
Main Orchestrator for Intime

This module ties the components together into one session:

    start     load -> reconcile -> save -> countdown
    register  sanitize -> convert -> replace same-day entry -> restart countdown -> save
    delete    remove a historical entry (never the active one) -> save
    teardown  stop countdown -> flush live value into active entry -> save

DESIGN DECISION: The session owns all mutable state (the snapshot collection
and the countdown) and is the only thing that mutates it. There is no global
singleton; a UI keeps one session per user session. The only module state is
the exit-hook registry, which holds the newest session per storage location.

ORDERING GUARANTEES:
- Reconciliation finishes before the countdown starts and before state is
  observable. Reading state before start() raises SessionNotStartedError.
- teardown() flushes and saves exactly once; later calls do nothing.
- A flush writes the countdown as the wall clock has it, even when ticks
  lagged, and refuses to overwrite entries another session saved since.
"""

import asyncio
import atexit
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from intime.audit import AuditLogger
from intime.config import Settings, get_settings
from intime.conversion import ConversionEngine
from intime.models.snapshot import (
    DayKeyPolicy,
    LedgerEntry,
    SchedulerState,
    SessionState,
    Snapshot,
)
from intime.reconciliation import ReconciliationService
from intime.scheduler import AsyncioTickSource, CountdownScheduler, TickSource
from intime.services.storage import (
    JsonFileKeyValueStore,
    KeyValueAuditStorage,
    KeyValueStore,
    PersistenceGateway,
    StorageError,
)
from intime.snapshots import SnapshotCollection
from intime.timekeeping import elapsed_seconds, normalize, now_in


class SessionError(Exception):
    """Base exception for session lifecycle misuse."""
    pass


class SessionNotStartedError(SessionError):
    """The session was used before start() reconciled it."""
    pass


class SessionClosedError(SessionError):
    """The session was used after teardown()."""
    pass


# Sessions torn down at interpreter exit, at most one per storage location
_exit_sessions: dict[str, "IntimeSession"] = {}
_exit_hook_installed = False


def _teardown_at_exit() -> None:
    for session in list(_exit_sessions.values()):
        session._teardown_quietly()


class IntimeSession:
    """
    One user's lifetime ledger with its live countdown.

    Flow:
    1. start() loads, reconciles and persists the ledger
    2. The countdown ticks the active entry's lifetime down
    3. register() / delete() change the ledger
    4. teardown() writes the live value back and persists
    """

    def __init__(
        self,
        engine: ConversionEngine,
        gateway: PersistenceGateway,
        tz: timezone,
        policy: DayKeyPolicy = DayKeyPolicy.FULL_DATE,
        tick_source: Optional[TickSource] = None,
        tick_interval: float = 1.0,
        autosave_interval_ticks: int = 60,
        audit_logger: Optional[AuditLogger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._engine = engine
        self._gateway = gateway
        self._tz = tz
        self._policy = policy
        self._reconciler = ReconciliationService(engine)
        if tick_source is None:
            try:
                tick_source = AsyncioTickSource(asyncio.get_running_loop())
            except RuntimeError:
                raise SessionError(
                    "No running event loop to tick on; pass a tick_source "
                    "(ManualTickSource when the host drives ticks itself)"
                ) from None
        self._scheduler = CountdownScheduler(
            tick_source=tick_source,
            interval=tick_interval,
            on_tick=self._on_tick,
            on_idle=self._on_idle,
        )
        self._autosave_interval_ticks = autosave_interval_ticks
        self._ticks_since_save = 0
        # Countdown value and the wall-clock moment it was true
        self._bound_seconds = 0
        self._bound_at: Optional[datetime] = None
        self._audit_logger = audit_logger or AuditLogger()
        self._clock = clock or (lambda: now_in(tz))

        self._collection = SnapshotCollection(policy=policy, tz=tz)
        self._started = False
        self._closed = False

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    @property
    def engine(self) -> ConversionEngine:
        return self._engine

    @property
    def is_started(self) -> bool:
        return self._started

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def live_seconds(self) -> int:
        self._ensure_started()
        return self._scheduler.remaining_seconds

    @property
    def live_amount(self) -> float:
        return self._engine.seconds_to_amount(self.live_seconds)

    @property
    def display_text(self) -> str:
        return self._engine.format_duration(self.live_seconds)

    @property
    def scheduler_state(self) -> SchedulerState:
        return self._scheduler.state

    @property
    def state(self) -> SessionState:
        """Snapshot of everything the session owns. Read-only."""
        self._ensure_started()
        return SessionState(
            snapshots=self._collection.snapshots,
            live_seconds=self._scheduler.remaining_seconds,
            live_amount=self.live_amount,
            scheduler_state=self._scheduler.state,
            active_key=self._collection.active_key(),
        )

    def entries(self) -> list[LedgerEntry]:
        """
        History rows in storage order.

        The active row shows the live countdown; the others show what they
        held when they were frozen.
        """
        self._ensure_started()
        active_idx = self._collection.active_index()
        rows = []
        for idx, snapshot in enumerate(self._collection.snapshots):
            is_active = idx == active_idx
            seconds = self._scheduler.remaining_seconds if is_active else snapshot.remaining_seconds
            amount = self._engine.seconds_to_amount(seconds) if is_active else snapshot.amount
            rows.append(LedgerEntry(
                key=self._collection.key_of(snapshot),
                timestamp=snapshot.timestamp,
                remaining_seconds=seconds,
                amount=amount,
                text=self._engine.format_list_text(seconds),
                is_active=is_active,
            ))
        return rows

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self, now: Optional[datetime] = None) -> SessionState:
        """
        Load the ledger, charge the time that passed since it was last seen,
        persist the result and start the countdown.

        Raises:
            SessionError: If the session was already started
        """
        if self._started or self._closed:
            raise SessionError("Session already started")
        now = self._now(now)

        snapshots, error = self._gateway.load()
        if error:
            self._audit_logger.log_storage_read_failed(
                key=self._gateway.key,
                error_message=error,
                fallback_count=len(snapshots),
            )

        result = self._reconciler.reconcile(snapshots, now)
        self._collection = SnapshotCollection(result.snapshots, self._policy, self._tz)
        self._started = True

        if result.active is not None:
            self._audit_logger.log_snapshot_reconciled(
                day_key=self._collection.key_of(result.active),
                elapsed_seconds=result.elapsed_seconds,
                remaining_seconds=result.active.remaining_seconds,
                amount=result.active.amount,
            )

        self._save(raise_errors=False)
        self._audit_logger.log_session_started(snapshot_count=len(self._collection))

        seconds = result.active.remaining_seconds if result.active is not None else 0
        self._start_countdown(seconds, now)
        return self.state

    def flush(self, now: Optional[datetime] = None) -> bool:
        """
        Write the live countdown into the active entry and persist.

        Returns:
            True if the collection was saved
        """
        self._ensure_started()
        if self._closed:
            return False
        return self._flush(self._now(now))

    def teardown(self, now: Optional[datetime] = None) -> bool:
        """
        End the session: stop the tick, flush, persist. Runs once.

        Returns:
            True if the final save succeeded; False if it failed, or if the
            session was never started or is already closed
        """
        if self._closed:
            return False
        self._closed = True
        location = self._gateway.location
        if _exit_sessions.get(location) is self:
            del _exit_sessions[location]

        if not self._started:
            return False

        self._scheduler.cancel()
        return self._flush(self._now(now))

    def install_exit_hook(self) -> None:
        """
        Tear down on interpreter exit (best effort, not crash-proof).

        One hook serves the whole process. Only the newest session per
        storage location is kept; an older one it displaces is dropped
        without being torn down.
        """
        global _exit_hook_installed
        if not _exit_hook_installed:
            atexit.register(_teardown_at_exit)
            _exit_hook_installed = True
        _exit_sessions[self._gateway.location] = self

    def _teardown_quietly(self) -> None:
        try:
            self.teardown()
        except Exception as e:
            self._audit_logger.log_error(
                error_type=type(e).__name__,
                error_message=str(e),
                details={"location": self._gateway.location},
            )

    # -------------------------------------------------------------------------
    # User operations
    # -------------------------------------------------------------------------

    def register(
        self,
        raw_amount: Union[str, int, float, None],
        now: Optional[datetime] = None,
    ) -> Snapshot:
        """
        Register a balance as today's entry and restart the countdown on it.

        An earlier entry with the same day key is replaced.

        Raises:
            StorageWriteError: If the updated ledger cannot be saved
        """
        self._ensure_open()
        now = self._now(now)

        amount = self._engine.sanitize_amount_input(raw_amount)
        seconds = self._engine.amount_to_seconds(amount)

        # A clock behind the active entry must not leave the new one historical
        current = self._collection.active()
        if current is not None and current.timestamp > now:
            now = current.timestamp

        snapshot = Snapshot(
            timestamp=now,
            remaining_seconds=seconds,
            amount=float(amount),
        )
        replaced = self._collection.register(snapshot)
        self._start_countdown(seconds, now)

        self._audit_logger.log_snapshot_registered(
            day_key=self._collection.key_of(snapshot),
            amount=snapshot.amount,
            remaining_seconds=seconds,
            replaced_count=len(replaced),
        )
        self._save(raise_errors=True)
        return snapshot

    def delete(self, key: str) -> bool:
        """
        Delete the entry with this day key.

        Deleting the active entry is refused: it returns False and changes
        nothing.

        Raises:
            StorageWriteError: If the updated ledger cannot be saved
        """
        self._ensure_open()

        if self._collection.is_active_key(key):
            self._audit_logger.log_delete_rejected(day_key=key)
            return False

        removed = self._collection.remove(key)
        if not removed:
            return False

        self._audit_logger.log_snapshot_deleted(day_key=key, removed_count=removed)
        self._save(raise_errors=True)
        return True

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _now(self, now: Optional[datetime]) -> datetime:
        return normalize(now if now is not None else self._clock(), self._tz)

    def _ensure_started(self) -> None:
        if not self._started:
            raise SessionNotStartedError("Call start() before using the session")

    def _ensure_open(self) -> None:
        self._ensure_started()
        if self._closed:
            raise SessionClosedError("Session has been torn down")

    def _start_countdown(self, seconds: int, now: datetime) -> None:
        self._ticks_since_save = 0
        self._bound_seconds = max(int(seconds), 0)
        self._bound_at = now
        state = self._scheduler.start(seconds)
        if state == SchedulerState.RUNNING:
            self._audit_logger.log_countdown_started(remaining_seconds=seconds)

    def _live_seconds_at(self, now: datetime) -> int:
        """Countdown value at ``now``: the ticked value, capped by the time that really passed."""
        live = self._scheduler.remaining_seconds
        if self._bound_at is None:
            return live
        by_clock = max(self._bound_seconds - elapsed_seconds(self._bound_at, now), 0)
        return min(live, by_clock)

    def _save(self, raise_errors: bool) -> bool:
        try:
            count = self._gateway.save(self._collection)
        except StorageError as e:
            self._audit_logger.log_save_failed(key=self._gateway.key, error_message=str(e))
            if raise_errors:
                raise
            return False
        self._audit_logger.log_snapshots_saved(key=self._gateway.key, snapshot_count=count)
        return True

    def _flush(self, now: datetime) -> bool:
        live_seconds = self._live_seconds_at(now)
        try:
            updated = self._gateway.flush(self._collection, live_seconds, now)
        except StorageError as e:
            self._audit_logger.log_save_failed(key=self._gateway.key, error_message=str(e))
            return False

        self._bound_seconds, self._bound_at = live_seconds, now
        if self._scheduler.is_running and live_seconds < self._scheduler.remaining_seconds:
            # Catch the ticking countdown up with the clock
            self._scheduler.start(live_seconds)

        self._ticks_since_save = 0
        self._audit_logger.log_session_flushed(
            day_key=self._collection.key_of(updated) if updated else None,
            remaining_seconds=live_seconds,
            amount=updated.amount if updated else 0.0,
        )
        return True

    def _on_tick(self, remaining: int) -> None:
        self._ticks_since_save += 1
        if (
            remaining > 0
            and self._autosave_interval_ticks
            and self._ticks_since_save >= self._autosave_interval_ticks
        ):
            self._flush(self._now(None))

    def _on_idle(self) -> None:
        self._audit_logger.log_countdown_finished()
        if not self._closed:
            self._flush(self._now(None))


def create_session(
    settings: Optional[Settings] = None,
    store: Optional[KeyValueStore] = None,
    tick_source: Optional[TickSource] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> IntimeSession:
    """
    Factory function to wire a session from settings.

    Args:
        settings: Application settings (cached defaults if None)
        store: Key-value backend. Defaults to the configured JSON file.
        tick_source: Countdown timer. Defaults to the running asyncio loop;
            without one, pass a ManualTickSource and drive it from the host
        clock: Source of "now", for tests

    Returns:
        An unstarted IntimeSession

    Raises:
        SessionError: If no tick_source is given and no event loop is running
    """
    settings = settings or get_settings()
    conversion = settings.conversion
    storage = settings.storage
    app = settings.app

    store = store or JsonFileKeyValueStore(storage.path)
    engine = ConversionEngine.from_settings(conversion)
    gateway = PersistenceGateway(
        store=store,
        engine=engine,
        tz=app.tzinfo,
        key=storage.entries_key,
        seed_defaults=storage.seed_defaults,
    )
    audit_logger = AuditLogger(
        KeyValueAuditStorage(store, key=storage.audit_key, max_events=storage.max_audit_events)
    )

    return IntimeSession(
        engine=engine,
        gateway=gateway,
        tz=app.tzinfo,
        policy=app.day_key_policy,
        tick_source=tick_source,
        tick_interval=app.tick_interval_seconds,
        autosave_interval_ticks=app.autosave_interval_ticks,
        audit_logger=audit_logger,
        clock=clock,
    )
