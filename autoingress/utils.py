"""Helpers for naming and inspecting Services and Ingresses."""

from typing import Optional

from .config import INGRESS_NAME_SUFFIX


def ingress_name_for(service_name: str) -> str:
    """
    Deterministic name of the Ingress owned by a Service.

    Examples:
        "s1" -> "s1-ingress"
    """
    return f"{service_name}{INGRESS_NAME_SUFFIX}"


def make_key(namespace: str, name: str) -> str:
    """Create a cache key from namespace and name."""
    return f"{namespace}/{name}" if namespace else name


def object_key(obj) -> str:
    """Cache key for a Kubernetes object with metadata."""
    return make_key(obj.metadata.namespace or "", obj.metadata.name)


def get_tls_host(ingress) -> Optional[str]:
    """
    Return the first host of the first TLS entry of an Ingress.

    Returns None when the Ingress has no TLS entries or an empty host list.
    """
    try:
        tls = ingress.spec.tls
        if tls and tls[0].hosts:
            return tls[0].hosts[0]
    except AttributeError:
        pass
    return None


def get_annotations(obj) -> dict:
    """Annotations of an object, never None."""
    metadata = getattr(obj, "metadata", None)
    if metadata is None:
        return {}
    return metadata.annotations or {}
