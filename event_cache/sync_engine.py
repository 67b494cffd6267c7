"""One-round-at-a-time reconciliation of the cache against the remote feed."""
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from enum import Enum
from typing import Callable, List, Optional

from event_cache.errors import FeedUnavailableError, MalformedFeedError, PersistenceError
from event_cache.models import Event, FeedUpdate, SyncResult
from event_cache.schedule_cache import ScheduleCache

logger = logging.getLogger(__name__)


class SyncState(Enum):
    IDLE = 'idle'
    SYNCING = 'syncing'


class SyncEngine:
    """
    Applies remote deltas to a ScheduleCache.

    At most one round runs at a time. A request made while a round is in
    flight is ignored and returns None.
    """

    def __init__(
        self,
        cache: ScheduleCache,
        feed,
        notifier=None,
        reminders_enabled: bool = False,
        executor: Optional[ThreadPoolExecutor] = None
    ):
        """
        Args:
            cache: Cache to reconcile
            feed: Object with ``get_updates(since_version) -> FeedUpdate``
            notifier: NotificationScheduler told about affected selections
            reminders_enabled: Whether to cancel/reschedule reminders
            executor: Executor for ``start()``; a single worker is created if omitted
        """
        self.cache = cache
        self.feed = feed
        self.notifier = notifier
        self.reminders_enabled = reminders_enabled
        self._executor = executor
        self._owns_executor = executor is None
        self._state = SyncState.IDLE
        self._state_lock = threading.Lock()

    @property
    def state(self) -> SyncState:
        return self._state

    def sync(self) -> Optional[SyncResult]:
        """Run a round on the calling thread. Returns None if one is already running."""
        if not self._begin():
            return None
        try:
            return self._run_round()
        finally:
            self._finish()

    def start(
        self,
        on_complete: Optional[Callable[[SyncResult], None]] = None
    ) -> Optional[Future]:
        """
        Run a round on the executor.

        Args:
            on_complete: Called with the SyncResult once the round finishes

        Returns:
            Future resolving to the SyncResult, or None if a round is running
        """
        if not self._begin():
            return None
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix='schedule-sync')

        def run() -> SyncResult:
            try:
                result = self._run_round()
            finally:
                self._finish()
            if on_complete is not None:
                on_complete(result)
            return result

        return self._executor.submit(run)

    def shutdown(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def apply(self, update: FeedUpdate) -> SyncResult:
        """
        Apply a feed update to the cache and commit its version.

        Order: category upserts, category deletions, event upserts, event
        deletions, selection reconciliation, change notices, version commit.
        Applying the same update twice leaves the cache as applying it once.

        Args:
            update: Changes reported by the feed

        Returns:
            SyncResult describing the round
        """
        cache = self.cache
        result = SyncResult(completed=True, version=update.new_version)

        with cache.lock:
            events = cache.events
            try:
                persisted_selection = cache.repository.load_selected_ids()
            except PersistenceError as e:
                return self._aborted(cache.version, e)
            pre_round_selected = set(events.selected_identities()) | set(persisted_selection)

            for category in update.changed_categories:
                previous = cache.categories.get(category.pk)
                cache.categories.upsert(
                    category,
                    previous_is_college=previous.is_college if previous else None
                )
            result.categories_changed = len(update.changed_categories)

            for pk in update.deleted_category_ids:
                if cache.categories.remove(pk):
                    result.categories_deleted += 1

            rejected = set()
            for event in update.changed_events:
                if events.upsert(event):
                    result.events_changed += 1
                else:
                    result.events_rejected += 1
                    rejected.add(event.pk)

            for pk in update.deleted_event_ids:
                if events.remove(pk):
                    result.events_deleted += 1

            cache.reselect(persisted_selection)

            result.changed_selected = [
                event for event in update.changed_events
                if event.pk in pre_round_selected
                and event.pk not in rejected
                and events.is_selected(event.pk)
            ]

            try:
                cache.persist()
            except PersistenceError as e:
                return self._failed(result, cache.version, e)

            self._notify(update.deleted_event_ids, result.changed_selected)

            try:
                cache.commit_version(update.new_version)
            except PersistenceError as e:
                return self._failed(result, cache.version, e)

        logger.info(
            f"Sync complete at version {update.new_version}: "
            f"{result.categories_changed} categories changed, "
            f"{result.categories_deleted} deleted; "
            f"{result.events_changed} events changed, {result.events_deleted} deleted, "
            f"{result.events_rejected} rejected; "
            f"{len(result.changed_selected)} selected event(s) affected"
        )
        return result

    def _run_round(self) -> SyncResult:
        try:
            self.cache.initialize()
        except PersistenceError as e:
            return self._aborted(self.cache.version, e)
        since = self.cache.version
        logger.info(f"Requesting updates since version {since}")

        try:
            update = self.feed.get_updates(since)
        except FeedUnavailableError as e:
            logger.error(f"Feed unreachable, keeping version {since}: {e}")
            return SyncResult(
                completed=False, version=since,
                errors=[str(e)], error_type=type(e).__name__
            )
        except MalformedFeedError as e:
            logger.warning(f"Feed sent a malformed response, keeping version {since}: {e}")
            return SyncResult(
                completed=False, version=since,
                errors=[str(e)], error_type=type(e).__name__
            )

        return self.apply(update)

    def _notify(self, deleted_event_ids: List[int], changed_selected: List[Event]) -> None:
        if self.notifier is None:
            return
        try:
            if self.reminders_enabled:
                for pk in deleted_event_ids:
                    self.notifier.cancel(pk)
                for event in changed_selected:
                    self.notifier.cancel(event.pk)
                    self.notifier.schedule(event)
            if changed_selected:
                self.notifier.notify_batch_changed(changed_selected)
        except Exception as e:
            logger.warning(f"Notification delivery failed: {e}", exc_info=True)

    @staticmethod
    def _aborted(version: int, error: Exception) -> SyncResult:
        logger.error(f"Could not read saved schedule, keeping version {version}: {error}")
        return SyncResult(
            completed=False, version=version,
            errors=[str(error)], error_type=type(error).__name__
        )

    @staticmethod
    def _failed(result: SyncResult, version: int, error: Exception) -> SyncResult:
        logger.error(f"Could not persist sync round, keeping version {version}: {error}")
        result.completed = False
        result.version = version
        result.errors.append(str(error))
        result.error_type = type(error).__name__
        return result

    def _begin(self) -> bool:
        with self._state_lock:
            if self._state is SyncState.SYNCING:
                logger.info("Sync already in progress; request ignored")
                return False
            self._state = SyncState.SYNCING
            return True

    def _finish(self) -> None:
        with self._state_lock:
            self._state = SyncState.IDLE
