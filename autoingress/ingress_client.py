"""Client for the Ingress resources managed by the controller."""

import logging
from typing import Optional

from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from .errors import UnavailableError, is_not_found, translate_api_exception

logger = logging.getLogger(__name__)


class IngressClient:
    """Typed get/create/delete for networking.k8s.io/v1 Ingresses."""

    def __init__(self, networking_api: Optional[client.NetworkingV1Api] = None):
        """
        Initialize the Ingress client.

        Args:
            networking_api: API object to use (defaults to a new NetworkingV1Api)
        """
        self.networking_v1 = networking_api or client.NetworkingV1Api()

    def get_ingress(self, namespace: str, name: str) -> Optional[client.V1Ingress]:
        """
        Get an Ingress.

        Returns:
            The Ingress, or None if it does not exist
        """
        try:
            return self.networking_v1.read_namespaced_ingress(name=name, namespace=namespace)
        except ApiException as e:
            if is_not_found(e):
                return None
            raise translate_api_exception(e, f"get ingress {namespace}/{name}") from e
        except HTTPError as e:
            raise UnavailableError(f"get ingress {namespace}/{name} failed: {e}") from e

    def create_ingress(self, namespace: str, body: client.V1Ingress) -> client.V1Ingress:
        """Create an Ingress and return the stored object."""
        name = body.metadata.name
        try:
            return self.networking_v1.create_namespaced_ingress(namespace=namespace, body=body)
        except ApiException as e:
            raise translate_api_exception(e, f"create ingress {namespace}/{name}") from e
        except HTTPError as e:
            raise UnavailableError(f"create ingress {namespace}/{name} failed: {e}") from e

    def delete_ingress(self, namespace: str, name: str) -> bool:
        """
        Delete an Ingress.

        Returns:
            True if deleted, False if it was already gone
        """
        try:
            self.networking_v1.delete_namespaced_ingress(name=name, namespace=namespace)
            return True
        except ApiException as e:
            if is_not_found(e):
                logger.debug(f"Ingress {namespace}/{name} already deleted")
                return False
            raise translate_api_exception(e, f"delete ingress {namespace}/{name}") from e
        except HTTPError as e:
            raise UnavailableError(f"delete ingress {namespace}/{name} failed: {e}") from e
