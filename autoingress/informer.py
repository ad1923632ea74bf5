"""List/watch informer delivering Service change notifications."""

import logging
import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from kubernetes import client, watch
from kubernetes.client.rest import ApiException

from .config import RESYNC_PERIOD_SECONDS, WATCH_RETRY_DELAY_SECONDS, WATCH_TIMEOUT_SECONDS
from .service_cache import ServiceCache
from .utils import object_key

logger = logging.getLogger(__name__)

ADDED = "ADDED"
UPDATED = "UPDATED"
DELETED = "DELETED"


@dataclass(frozen=True)
class DeletedFinalStateUnknown:
    """
    Delete notification for an object whose final state was missed.

    Produced when a relist no longer contains an object that was cached;
    obj is the last state we saw.
    """
    key: str
    obj: Any


@dataclass(frozen=True)
class Notification:
    """A queued change notification."""
    kind: str
    new: Any
    old: Any = None


@dataclass
class EventHandler:
    on_add: Callable[[Any], None]
    on_update: Callable[[Any, Any], None]
    on_delete: Callable[[Any], None]


class ServiceInformer:
    """
    Watches Services and delivers Added/Updated/Deleted notifications.

    A watcher thread lists then watches Services, a resync thread
    periodically redelivers every cached Service as an update, and a
    single dispatch thread feeds all notifications to the handlers in
    the order they were queued.
    """

    def __init__(
        self,
        core_api: Optional[client.CoreV1Api] = None,
        namespace: str = "",
        resync_period: float = RESYNC_PERIOD_SECONDS,
        watch_timeout: int = WATCH_TIMEOUT_SECONDS,
    ):
        """
        Initialize the informer.

        Args:
            core_api: API object to use (defaults to a new CoreV1Api)
            namespace: Namespace to watch ("" for all namespaces)
            resync_period: Seconds between full resyncs (0 disables)
            watch_timeout: Server-side timeout of each watch request
        """
        self.v1 = core_api or client.CoreV1Api()
        self.namespace = namespace
        self.resync_period = resync_period
        self.watch_timeout = watch_timeout

        self.cache = ServiceCache()
        self._handlers: List[EventHandler] = []
        self._queue: "queue.Queue[Notification]" = queue.Queue()
        self._resource_version: Optional[str] = None
        self._watch: Optional[watch.Watch] = None
        self._threads: List[threading.Thread] = []
        self._dispatcher: Optional[threading.Thread] = None

        self._synced = threading.Event()
        self._stop_event = threading.Event()

    def add_event_handler(
        self,
        on_add: Callable[[Any], None],
        on_update: Callable[[Any, Any], None],
        on_delete: Callable[[Any], None],
    ) -> None:
        self._handlers.append(EventHandler(on_add, on_update, on_delete))

    def has_synced(self) -> bool:
        """True once the initial list has been cached and queued."""
        return self._synced.is_set()

    def wait_for_cache_sync(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the initial list has been delivered or the informer stops.

        Returns:
            True if synced, False on stop or timeout
        """
        waited = 0.0
        while not self._synced.is_set() and not self._stop_event.is_set():
            if timeout is not None and waited >= timeout:
                break
            self._synced.wait(0.5)
            waited += 0.5
        return self._synced.is_set()

    def _list_call(self) -> Tuple[Callable, dict]:
        """
        List function and its arguments for the watched scope.

        The bound API method is passed as is so that watch.Watch can read
        the returned type from it.
        """
        if self.namespace:
            return self.v1.list_namespaced_service, {"namespace": self.namespace}
        return self.v1.list_service_for_all_namespaces, {}

    def relist(self) -> None:
        """
        List all Services and reconcile the cache against the result.

        Cached Services missing from the list are delivered as deletes
        wrapped in DeletedFinalStateUnknown.
        """
        list_func, list_kwargs = self._list_call()
        service_list = list_func(**list_kwargs)
        items = service_list.items or []

        previous = self.cache.replace(items)
        fresh_keys = set()

        for service in items:
            key = object_key(service)
            fresh_keys.add(key)
            old = previous.get(key)
            if old is None:
                self._enqueue(Notification(ADDED, service))
            else:
                self._enqueue(Notification(UPDATED, service, old))

        for key, last_known in previous.items():
            if key not in fresh_keys:
                logger.info(f"Service {key} disappeared while not watching")
                self._enqueue(Notification(DELETED, DeletedFinalStateUnknown(key, last_known)))

        self._resource_version = service_list.metadata.resource_version
        logger.info(f"Listed {len(items)} service(s) at resourceVersion {self._resource_version}")

    def handle_watch_event(self, event: dict) -> None:
        """
        Apply a watch event to the cache and queue the notification.

        ERROR events never get here: watch.Watch raises them as ApiException.
        """
        event_type = event["type"]
        obj = event["object"]

        resource_version = getattr(getattr(obj, "metadata", None), "resource_version", None)
        if resource_version:
            self._resource_version = resource_version

        if event_type == "BOOKMARK":
            return

        if event_type in ("ADDED", "MODIFIED"):
            old = self.cache.add_or_update(obj)
            if old is None:
                self._enqueue(Notification(ADDED, obj))
            else:
                self._enqueue(Notification(UPDATED, obj, old))
        elif event_type == "DELETED":
            self.cache.remove(obj.metadata.namespace or "", obj.metadata.name)
            self._enqueue(Notification(DELETED, obj))
        else:
            logger.warning(f"Ignoring unknown watch event type: {event_type}")

    def resync(self) -> int:
        """
        Queue an update for every cached Service with old == new.

        Returns:
            Number of Services redelivered
        """
        services = self.cache.get_all()
        for service in services:
            self._enqueue(Notification(UPDATED, service, service))
        logger.debug(f"Resync queued {len(services)} service(s)")
        return len(services)

    def _enqueue(self, notification: Notification) -> None:
        self._queue.put(notification)

    def process_next(self, timeout: Optional[float] = None) -> bool:
        """
        Dispatch the next queued notification to the handlers.

        Returns:
            True if a notification was dispatched
        """
        try:
            notification = self._queue.get(timeout=timeout) if timeout else self._queue.get_nowait()
        except queue.Empty:
            return False

        if self._stop_event.is_set():
            return False

        for handler in self._handlers:
            try:
                if notification.kind == ADDED:
                    handler.on_add(notification.new)
                elif notification.kind == UPDATED:
                    handler.on_update(notification.old, notification.new)
                else:
                    handler.on_delete(notification.new)
            except Exception:
                logger.exception(f"Handler failed on {notification.kind} notification")
        return True

    def watch_services(self) -> None:
        """List then watch Services until stopped."""
        logger.info("Starting service watcher...")
        need_relist = True

        while not self._stop_event.is_set():
            try:
                if need_relist:
                    self.relist()
                    self._synced.set()
                    need_relist = False

                list_func, list_kwargs = self._list_call()
                self._watch = watch.Watch()
                for event in self._watch.stream(
                    list_func,
                    **list_kwargs,
                    resource_version=self._resource_version,
                    timeout_seconds=self.watch_timeout,
                    allow_watch_bookmarks=True
                ):
                    if self._stop_event.is_set():
                        break
                    self.handle_watch_event(event)

            except ApiException as e:
                need_relist = True
                if e.status == 410:
                    logger.info("Service watch expired, relisting")
                    continue
                logger.error(f"Service watch error: {e.status} {e.reason}")
                self._stop_event.wait(WATCH_RETRY_DELAY_SECONDS)
            except Exception as e:
                need_relist = True
                logger.error(f"Unexpected error in service watcher: {e}")
                self._stop_event.wait(WATCH_RETRY_DELAY_SECONDS)

    def periodic_resync(self) -> None:
        """Redeliver all cached Services every resync period."""
        logger.info(f"Starting periodic resync (interval: {self.resync_period}s)")

        while not self._stop_event.wait(self.resync_period):
            if self.has_synced():
                self.resync()

    def dispatch(self) -> None:
        """Feed queued notifications to the handlers, one at a time."""
        while not self._stop_event.is_set():
            self.process_next(timeout=0.5)

    def start(self) -> None:
        """Start the watcher, resync and dispatch threads."""
        targets = [("service-watcher", self.watch_services), ("notification-dispatcher", self.dispatch)]
        if self.resync_period:
            targets.append(("periodic-resync", self.periodic_resync))

        for name, target in targets:
            thread = threading.Thread(target=target, name=name, daemon=True)
            thread.start()
            if target == self.dispatch:
                self._dispatcher = thread
            else:
                self._threads.append(thread)

    def stop(self, timeout: Optional[float] = None, wait: bool = True) -> None:
        """
        Stop all threads.

        A notification already being handled runs to completion; queued
        ones are dropped and will be listed again on the next start.

        Args:
            timeout: Seconds to wait for the watcher and resync threads,
                which may be blocked on a long-poll
            wait: If False, only signal the threads and return
        """
        self._stop_event.set()
        if self._watch is not None:
            self._watch.stop()

        if not wait:
            return

        # The dispatcher may be inside a store call; let it finish.
        if self._dispatcher is not None:
            self._dispatcher.join()
            self._dispatcher = None

        for thread in self._threads:
            thread.join(timeout)
        self._threads = [thread for thread in self._threads if thread.is_alive()]
