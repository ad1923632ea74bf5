"""Main controller logic for the Tailscale Auto-Ingress Controller."""

import logging
import threading
from typing import Optional

from kubernetes import client

from .annotations import derive_desired_state, get_auto_ingress_annotation
from .config import AUTO_INGRESS_ANNOTATION, RESYNC_PERIOD_SECONDS
from .errors import AutoIngressError
from .informer import DeletedFinalStateUnknown, ServiceInformer
from .reconciler import IngressReconciler

logger = logging.getLogger(__name__)


class AutoIngressController:
    """
    Controller that keeps a Tailscale Ingress in place for every Service
    carrying the auto-ingress annotation.

    Decisions are made only from the Service snapshots in each
    notification; the controller keeps no state of its own.
    """

    def __init__(
        self,
        namespace: str = "",
        dry_run: bool = False,
        resync_period: float = RESYNC_PERIOD_SECONDS,
        informer: Optional[ServiceInformer] = None,
        reconciler: Optional[IngressReconciler] = None,
    ):
        """
        Initialize the controller.

        Args:
            namespace: Namespace to watch ("" for all namespaces)
            dry_run: If True, don't make actual changes
            resync_period: Seconds between full resyncs of the Service cache
            informer: Notification source (built from the arguments above if omitted)
            reconciler: Ingress reconciler (built from dry_run if omitted)
        """
        self.namespace = namespace
        self.dry_run = dry_run
        self.reconciler = reconciler or IngressReconciler(dry_run=dry_run)
        self.informer = informer or ServiceInformer(namespace=namespace, resync_period=resync_period)
        self.informer.add_event_handler(
            on_add=self.on_add,
            on_update=self.on_update,
            on_delete=self.on_delete,
        )

        self._stop_event = threading.Event()

    def on_add(self, service) -> None:
        """Handle a Service seen for the first time."""
        if not isinstance(service, client.V1Service):
            logger.warning(f"Could not parse Service object: {type(service).__name__}")
            return

        value = get_auto_ingress_annotation(service)
        if value is None:
            return

        logger.info(
            f"New service with {AUTO_INGRESS_ANNOTATION} annotation: "
            f"{service.metadata.namespace}/{service.metadata.name} (value: {value})"
        )
        self._reconcile_service(service)

    def on_update(self, old_service, new_service) -> None:
        """
        Handle a Service update, including resync redeliveries.

        Only changes in presence or value of the annotation trigger work.
        """
        if not isinstance(old_service, client.V1Service):
            logger.warning(f"Could not parse old Service object: {type(old_service).__name__}")
            return
        if not isinstance(new_service, client.V1Service):
            logger.warning(f"Could not parse new Service object: {type(new_service).__name__}")
            return

        old_value = get_auto_ingress_annotation(old_service)
        new_value = get_auto_ingress_annotation(new_service)
        key = f"{new_service.metadata.namespace}/{new_service.metadata.name}"

        if old_value is None and new_value is not None:
            logger.info(f"Annotation {AUTO_INGRESS_ANNOTATION} added to service {key} (value: {new_value})")
            self._reconcile_service(new_service)
        elif old_value is not None and new_value is None:
            logger.info(f"Annotation {AUTO_INGRESS_ANNOTATION} removed from service {key}")
            self._delete_ingress(new_service.metadata.namespace, new_service.metadata.name)
        elif old_value is not None and old_value != new_value:
            logger.info(
                f"Annotation {AUTO_INGRESS_ANNOTATION} value changed from {old_value} "
                f"to {new_value} for service {key}"
            )
            self._reconcile_service(new_service)

    def on_delete(self, obj) -> None:
        """Handle a deleted Service, unwrapping tombstones."""
        service = obj
        if isinstance(obj, DeletedFinalStateUnknown):
            service = obj.obj
            if not isinstance(service, client.V1Service):
                logger.warning(f"Could not parse Service from tombstone {obj.key}")
                return
        elif not isinstance(obj, client.V1Service):
            logger.warning(f"Could not parse deleted Service object: {type(obj).__name__}")
            return

        if get_auto_ingress_annotation(service) is None:
            return

        logger.info(
            f"Service with {AUTO_INGRESS_ANNOTATION} annotation deleted: "
            f"{service.metadata.namespace}/{service.metadata.name}"
        )
        self._delete_ingress(service.metadata.namespace, service.metadata.name)

    def _reconcile_service(self, service) -> None:
        namespace = service.metadata.namespace
        name = service.metadata.name
        desired = derive_desired_state(service)

        try:
            self.reconciler.reconcile(namespace, name, desired)
        except AutoIngressError as e:
            logger.error(
                f"Failed to reconcile ingress for service {namespace}/{name} "
                f"(hostname: {desired.hostname or '-'}): {type(e).__name__}: {e}"
            )

    def _delete_ingress(self, namespace: str, name: str) -> None:
        try:
            self.reconciler.delete(namespace, name)
        except AutoIngressError as e:
            logger.error(f"Failed to delete ingress for service {namespace}/{name}: {type(e).__name__}: {e}")

    def run(self) -> None:
        """Run the controller until stop() is called."""
        logger.info("=" * 60)
        logger.info("Starting Tailscale Auto-Ingress Controller")
        logger.info("=" * 60)
        logger.info(f"Namespace: {self.namespace or 'all namespaces'}")
        logger.info(f"Dry run: {self.dry_run}")
        logger.info(f"Watching for services with '{AUTO_INGRESS_ANNOTATION}' annotation")

        self.informer.start()

        try:
            if self.informer.wait_for_cache_sync():
                logger.info(f"Service cache synced ({len(self.informer.cache)} services)")

            while not self._stop_event.wait(1):
                pass
        except KeyboardInterrupt:
            logger.info("Shutdown requested...")
        finally:
            self.informer.stop(timeout=5)

    def stop(self) -> None:
        """Stop the controller."""
        logger.info("Stopping controller...")
        self._stop_event.set()
        self.informer.stop(wait=False)
