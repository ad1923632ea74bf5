"""Derivation of the desired Ingress state from a Service's annotations."""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import AUTO_INGRESS_ANNOTATION, HOSTNAME_FROM_SERVICE_VALUE
from .utils import get_annotations

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DesiredIngressState:
    """Ingress a Service asks for. Recomputed on every event, never stored."""
    exists: bool
    hostname: str = ""
    backend_service_name: str = ""
    backend_port: int = 0

    @classmethod
    def absent(cls) -> "DesiredIngressState":
        return cls(exists=False)


def get_auto_ingress_annotation(service) -> Optional[str]:
    """Value of the opt-in annotation, or None if the Service lacks it."""
    return get_annotations(service).get(AUTO_INGRESS_ANNOTATION)


def derive_hostname(service_name: str, annotation_value: str) -> str:
    """
    Hostname for an annotation value.

    Examples:
        ("s1", "true") -> "s1"
        ("s1", "custom.host") -> "custom.host"
    """
    if annotation_value == HOSTNAME_FROM_SERVICE_VALUE:
        return service_name
    return annotation_value


def derive_desired_state(service) -> DesiredIngressState:
    """
    Compute the Ingress a Service should have.

    The hostname is not validated; a malformed value is only rejected
    when the API server refuses the Ingress. Only the first declared
    port is used as backend.

    Args:
        service: V1Service snapshot

    Returns:
        DesiredIngressState with exists=False when the annotation is
        missing or the Service has no ports
    """
    annotation_value = get_auto_ingress_annotation(service)
    if annotation_value is None:
        return DesiredIngressState.absent()

    name = service.metadata.name
    ports = (service.spec.ports if service.spec else None) or []
    if not ports:
        logger.info(f"Skipping service {service.metadata.namespace}/{name}: no ports defined")
        return DesiredIngressState.absent()

    return DesiredIngressState(
        exists=True,
        hostname=derive_hostname(name, annotation_value),
        backend_service_name=name,
        backend_port=ports[0].port,
    )
