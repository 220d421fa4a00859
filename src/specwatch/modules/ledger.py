"""Snapshot/Version Ledger.

Tracks the observed spec versions of each monitored API and turns genuine
changes into ChangeSets. Per API the ledger moves from "no snapshot" to
"has snapshot(v)"; re-observing the same content is a no-op and a new
checksum moves it to "has snapshot(v')" with a ChangeSet.

Observations for one API are serialized through a ``KeyedLock`` so two
concurrent observations can't both diff against the same previous snapshot.
Different APIs never share a lock.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Any

from specwatch.config import Settings
from specwatch.types import ChangeSet, LedgerEntry, ObservationResult

from .openapi_parser import build_snapshot_metadata
from .pipeline import analyze_specs, document_version
from .spec_normalizer import validate_spec


logger = logging.getLogger("specwatch.ledger")


class TransitionConflictError(Exception):
    """A ChangeSet for the same (api_id, from_version, to_version) already exists."""

    def __init__(self, api_id: str, from_version: str, to_version: str):
        super().__init__(f"Transition {from_version} → {to_version} already recorded for {api_id}")
        self.api_id = api_id
        self.from_version = from_version
        self.to_version = to_version


# ============================================================================
# Locking
# ============================================================================


class KeyedLock:
    """One mutex per key."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, threading.Lock] = {}

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        lock = self._lock_for(key)
        with lock:
            yield


# ============================================================================
# Stores
# ============================================================================


class LedgerStore(ABC):
    """Storage for ledger entries and ChangeSets, keyed by API id."""

    @abstractmethod
    def api_ids(self) -> list[str]: ...

    @abstractmethod
    def latest_entry(self, api_id: str) -> LedgerEntry | None: ...

    @abstractmethod
    def append_entry(self, entry: LedgerEntry) -> None: ...

    @abstractmethod
    def entries(self, api_id: str) -> list[LedgerEntry]:
        """Entries oldest first."""

    @abstractmethod
    def remove_entries_before(self, api_id: str, cutoff: datetime) -> int:
        """Remove entries observed before ``cutoff``, never the latest one."""

    @abstractmethod
    def insert_change_set(self, change_set: ChangeSet) -> None:
        """Store a new ChangeSet.

        Raises:
            TransitionConflictError: If the transition is already stored.
        """

    @abstractmethod
    def save_change_set(self, change_set: ChangeSet) -> None:
        """Replace a stored ChangeSet (same transition)."""

    @abstractmethod
    def get_change_set(self, api_id: str, from_version: str, to_version: str) -> ChangeSet | None: ...

    @abstractmethod
    def change_sets(self, api_id: str) -> list[ChangeSet]: ...

    @abstractmethod
    def increment_change_count(self, api_id: str) -> int: ...

    @abstractmethod
    def change_count(self, api_id: str) -> int: ...


class InMemoryLedgerStore(LedgerStore):
    """Dict-backed store."""

    def __init__(self) -> None:
        self._mutex = threading.Lock()
        self._entries: dict[str, list[LedgerEntry]] = {}
        self._change_sets: dict[tuple[str, str, str], ChangeSet] = {}
        self._change_counts: dict[str, int] = {}

    def api_ids(self) -> list[str]:
        with self._mutex:
            return list(self._entries)

    def latest_entry(self, api_id: str) -> LedgerEntry | None:
        with self._mutex:
            entries = self._entries.get(api_id)
            return entries[-1] if entries else None

    def append_entry(self, entry: LedgerEntry) -> None:
        with self._mutex:
            self._entries.setdefault(entry.api_id, []).append(entry)

    def entries(self, api_id: str) -> list[LedgerEntry]:
        with self._mutex:
            return list(self._entries.get(api_id, []))

    def remove_entries_before(self, api_id: str, cutoff: datetime) -> int:
        with self._mutex:
            entries = self._entries.get(api_id, [])
            if len(entries) <= 1:
                return 0
            kept = [entry for entry in entries[:-1] if entry.observed_at >= cutoff]
            kept.append(entries[-1])
            removed = len(entries) - len(kept)
            self._entries[api_id] = kept
            return removed

    def insert_change_set(self, change_set: ChangeSet) -> None:
        with self._mutex:
            if change_set.transition in self._change_sets:
                raise TransitionConflictError(*change_set.transition)
            self._change_sets[change_set.transition] = change_set

    def save_change_set(self, change_set: ChangeSet) -> None:
        with self._mutex:
            self._change_sets[change_set.transition] = change_set

    def get_change_set(self, api_id: str, from_version: str, to_version: str) -> ChangeSet | None:
        with self._mutex:
            return self._change_sets.get((api_id, from_version, to_version))

    def change_sets(self, api_id: str) -> list[ChangeSet]:
        with self._mutex:
            return [cs for key, cs in self._change_sets.items() if key[0] == api_id]

    def increment_change_count(self, api_id: str) -> int:
        with self._mutex:
            self._change_counts[api_id] = self._change_counts.get(api_id, 0) + 1
            return self._change_counts[api_id]

    def change_count(self, api_id: str) -> int:
        with self._mutex:
            return self._change_counts.get(api_id, 0)


# ============================================================================
# Ledger
# ============================================================================


def _as_utc(moment: datetime) -> datetime:
    # Naive timestamps are taken to be UTC so they compare with aware ones
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class VersionLedger:
    """Per-API version history with idempotent transition recording."""

    def __init__(
        self,
        store: LedgerStore | None = None,
        locks: KeyedLock | None = None,
        settings: Settings | None = None,
    ):
        self.store = store if store is not None else InMemoryLedgerStore()
        self.locks = locks if locks is not None else KeyedLock()
        self.settings = settings if settings is not None else Settings()

    def record_observation(
        self,
        api_id: str,
        version: str | None,
        spec_document: dict[str, Any],
        observed_at: datetime,
        *,
        api_name: str | None = None,
    ) -> ObservationResult:
        """Record a fetched spec and diff it against the previous snapshot.

        Args:
            api_id: Identifier of the monitored API.
            version: Version string of the document (defaults to ``info.version``).
            spec_document: The fetched OpenAPI document.
            observed_at: When the document was fetched.
            api_name: Display name for the summary (defaults to the spec title).

        Returns:
            ObservationResult. ``change_set`` is set only for a genuine change;
            ``duplicate`` is set when the transition had already been recorded
            and the stored ChangeSet is returned instead.

        Raises:
            InvalidSpecError: If the document isn't an OpenAPI 3.x structure.
                Nothing is recorded in that case.
        """
        validate_spec(spec_document)

        observed_at = _as_utc(observed_at)
        version = version or document_version(spec_document)
        metadata = build_snapshot_metadata(spec_document)
        entry = LedgerEntry(
            api_id=api_id,
            version=version,
            checksum=metadata.checksum,
            spec=spec_document,
            observed_at=observed_at,
            metadata=metadata,
        )

        with self.locks.hold(api_id):
            latest = self.store.latest_entry(api_id)

            if latest is None:
                self.store.append_entry(entry)
                logger.info("First snapshot for %s: v%s", api_id, version)
                return ObservationResult()

            if latest.checksum == entry.checksum:
                logger.debug("No change for %s (checksum %s)", api_id, entry.checksum[:12])
                return ObservationResult()

            if observed_at < latest.observed_at:
                logger.warning(
                    "Ignoring stale observation for %s at %s (latest snapshot is from %s)",
                    api_id,
                    observed_at.isoformat(),
                    latest.observed_at.isoformat(),
                )
                return ObservationResult(stale=True)

            change_set = analyze_specs(
                api_id,
                latest.spec,
                spec_document,
                api_name=api_name,
                from_version=latest.version,
                to_version=version,
                detected_at=observed_at,
                settings=self.settings,
            )
            self.store.append_entry(entry)

            if not change_set.has_changes:
                logger.info(
                    "%s content changed without structural differences (v%s)", api_id, version
                )
                return ObservationResult()

            try:
                self.store.insert_change_set(change_set)
            except TransitionConflictError:
                existing = self.store.get_change_set(api_id, latest.version, version)
                logger.info(
                    "Transition v%s → v%s for %s already recorded, returning stored change set",
                    latest.version,
                    version,
                    api_id,
                )
                return ObservationResult(
                    is_new_version=True,
                    previous=latest.spec,
                    change_set=existing,
                    duplicate=True,
                )

            total = self.store.increment_change_count(api_id)
            logger.info(
                "Recorded %s change for %s: v%s → v%s (%d total)",
                change_set.severity.value,
                api_id,
                latest.version,
                version,
                total,
            )
            return ObservationResult(
                is_new_version=True,
                previous=latest.spec,
                change_set=change_set,
            )

    def latest(self, api_id: str) -> LedgerEntry | None:
        """Most recent snapshot of an API."""
        return self.store.latest_entry(api_id)

    def history(self, api_id: str, limit: int | None = None) -> list[ChangeSet]:
        """ChangeSets of an API, newest first."""
        limit = limit or self.settings.history_limit
        change_sets = sorted(
            self.store.change_sets(api_id), key=lambda cs: cs.detected_at, reverse=True
        )
        return change_sets[:limit]

    def snapshots(self, api_id: str, limit: int | None = None) -> list[LedgerEntry]:
        """Ledger entries of an API, newest first."""
        limit = limit or self.settings.snapshot_limit
        return list(reversed(self.store.entries(api_id)))[:limit]

    def change_count(self, api_id: str) -> int:
        """Number of distinct transitions recorded for an API."""
        return self.store.change_count(api_id)

    def acknowledge(
        self,
        api_id: str,
        from_version: str,
        to_version: str,
        at: datetime | None = None,
    ) -> ChangeSet | None:
        """Mark a ChangeSet as acknowledged. Returns None if it doesn't exist."""
        with self.locks.hold(api_id):
            change_set = self.store.get_change_set(api_id, from_version, to_version)
            if change_set is None:
                return None
            updated = change_set.model_copy(
                update={
                    "acknowledged": True,
                    "acknowledged_at": _as_utc(at or datetime.now(timezone.utc)),
                }
            )
            self.store.save_change_set(updated)
            return updated

    def prune(self, now: datetime | None = None) -> int:
        """Drop snapshots older than the retention window.

        The latest snapshot of each API is always kept so there is something
        to diff the next observation against.

        Returns:
            Number of entries removed.
        """
        now = _as_utc(now or datetime.now(timezone.utc))
        cutoff = now - timedelta(days=self.settings.snapshot_retention_days)

        removed = 0
        for api_id in self.store.api_ids():
            with self.locks.hold(api_id):
                removed += self.store.remove_entries_before(api_id, cutoff)

        if removed:
            logger.info("Pruned %d snapshots older than %s", removed, cutoff.isoformat())
        return removed
