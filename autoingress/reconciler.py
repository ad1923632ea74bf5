"""Reconciliation logic for Service-derived Ingresses."""

import logging
from typing import Optional

from kubernetes import client

from .annotations import DesiredIngressState
from .config import (
    INGRESS_CLASS_ANNOTATION,
    INGRESS_CLASS_NAME,
    INGRESS_PATH,
    INGRESS_PATH_TYPE,
    MANAGED_BY_LABEL,
    MANAGED_BY_VALUE,
)
from .ingress_client import IngressClient
from .utils import get_tls_host, ingress_name_for

logger = logging.getLogger(__name__)


class IngressReconciler:
    """Converges the Ingress of a Service to its desired state."""

    def __init__(self, ingress_client: Optional[IngressClient] = None, dry_run: bool = False):
        """
        Initialize the reconciler.

        Args:
            ingress_client: Client used for all reads and writes
            dry_run: If True, don't make actual changes
        """
        self.ingress_client = ingress_client or IngressClient()
        self.dry_run = dry_run

    def reconcile(
        self,
        namespace: str,
        service_name: str,
        desired: DesiredIngressState
    ) -> Optional[client.V1Ingress]:
        """
        Create, recreate or delete the Ingress of a Service.

        An existing Ingress whose TLS host already matches is left alone.
        One whose TLS host differs is deleted and created again. One with
        no TLS host at all is not ours to judge and is skipped.

        Args:
            namespace: Service namespace
            service_name: Service name
            desired: Output of derive_desired_state()

        Returns:
            The Ingress now in place, or None if there is none

        Raises:
            AutoIngressError: if any API call fails for a reason other than not found
        """
        if not desired.exists:
            self.delete(namespace, service_name)
            return None

        ingress_name = ingress_name_for(service_name)
        ingress_key = f"{namespace}/{ingress_name}"

        existing = self.ingress_client.get_ingress(namespace, ingress_name)
        if existing is None:
            return self._create(namespace, ingress_name, desired)

        current_hostname = get_tls_host(existing)
        if current_hostname is None:
            logger.warning(
                f"Ingress {ingress_key} exists without a TLS host, skipping"
            )
            return existing

        if current_hostname == desired.hostname:
            logger.debug(f"Ingress {ingress_key} already has hostname {current_hostname}, no action needed")
            return existing

        logger.info(
            f"Hostname changed from {current_hostname} to {desired.hostname}, "
            f"recreating ingress {ingress_key}"
        )
        self.delete(namespace, service_name)
        return self._create(namespace, ingress_name, desired)

    def delete(self, namespace: str, service_name: str) -> bool:
        """
        Delete the Ingress of a Service if it exists.

        Returns:
            True if an Ingress was deleted, False if there was nothing to delete
        """
        ingress_name = ingress_name_for(service_name)
        ingress_key = f"{namespace}/{ingress_name}"

        if self.ingress_client.get_ingress(namespace, ingress_name) is None:
            logger.debug(f"Ingress {ingress_key} does not exist, nothing to delete")
            return False

        if self.dry_run:
            logger.info(f"[DRY-RUN] Would delete ingress {ingress_key}")
            return True

        deleted = self.ingress_client.delete_ingress(namespace, ingress_name)
        if deleted:
            logger.info(f"Ingress deleted: {ingress_key}")
        return deleted

    def _create(
        self,
        namespace: str,
        ingress_name: str,
        desired: DesiredIngressState
    ) -> Optional[client.V1Ingress]:
        body = build_ingress(namespace, ingress_name, desired)

        if self.dry_run:
            logger.info(
                f"[DRY-RUN] Would create ingress {namespace}/{ingress_name} "
                f"-> {desired.hostname} ({desired.backend_service_name}:{desired.backend_port})"
            )
            return body

        created = self.ingress_client.create_ingress(namespace, body)
        logger.info(f"Ingress created: {namespace}/{desired.backend_service_name} -> {desired.hostname}")
        return created


def build_ingress(namespace: str, ingress_name: str, desired: DesiredIngressState) -> client.V1Ingress:
    """
    Build the Ingress object for a desired state.

    The Service's port is used both as default backend and behind a
    single prefix rule for the hostname.
    """
    backend = client.V1IngressBackend(
        service=client.V1IngressServiceBackend(
            name=desired.backend_service_name,
            port=client.V1ServiceBackendPort(number=desired.backend_port),
        )
    )

    return client.V1Ingress(
        api_version="networking.k8s.io/v1",
        kind="Ingress",
        metadata=client.V1ObjectMeta(
            name=ingress_name,
            namespace=namespace,
            labels={MANAGED_BY_LABEL: MANAGED_BY_VALUE},
            annotations={INGRESS_CLASS_ANNOTATION: INGRESS_CLASS_NAME},
        ),
        spec=client.V1IngressSpec(
            ingress_class_name=INGRESS_CLASS_NAME,
            default_backend=backend,
            tls=[client.V1IngressTLS(hosts=[desired.hostname])],
            rules=[
                client.V1IngressRule(
                    host=desired.hostname,
                    http=client.V1HTTPIngressRuleValue(
                        paths=[
                            client.V1HTTPIngressPath(
                                path=INGRESS_PATH,
                                path_type=INGRESS_PATH_TYPE,
                                backend=backend,
                            )
                        ]
                    ),
                )
            ],
        ),
    )
