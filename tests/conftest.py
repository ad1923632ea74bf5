"""Shared pytest fixtures and fake Kubernetes APIs."""

from typing import Dict, List, Optional, Tuple

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from autoingress.config import AUTO_INGRESS_ANNOTATION
from autoingress.ingress_client import IngressClient
from autoingress.reconciler import IngressReconciler


def make_service(
    name: str = "s1",
    namespace: str = "default",
    annotation: Optional[str] = None,
    ports: Optional[List[int]] = None,
    resource_version: str = "1",
    extra_annotations: Optional[Dict[str, str]] = None,
) -> client.V1Service:
    """Build a V1Service; annotation=None means the opt-in annotation is absent."""
    annotations = dict(extra_annotations or {})
    if annotation is not None:
        annotations[AUTO_INGRESS_ANNOTATION] = annotation
    if ports is None:
        ports = [80]

    return client.V1Service(
        api_version="v1",
        kind="Service",
        metadata=client.V1ObjectMeta(
            name=name,
            namespace=namespace,
            annotations=annotations or None,
            resource_version=resource_version,
        ),
        spec=client.V1ServiceSpec(
            ports=[client.V1ServicePort(port=port, protocol="TCP") for port in ports]
        ),
    )


def make_ingress(
    name: str = "s1-ingress",
    namespace: str = "default",
    tls_hosts: Optional[List[str]] = None,
    with_tls: bool = True,
) -> client.V1Ingress:
    """Build a pre-existing Ingress with the given TLS hosts."""
    tls = [client.V1IngressTLS(hosts=tls_hosts)] if with_tls else None
    return client.V1Ingress(
        metadata=client.V1ObjectMeta(name=name, namespace=namespace),
        spec=client.V1IngressSpec(ingress_class_name="tailscale", tls=tls),
    )


class FakeNetworkingApi:
    """In-memory stand-in for NetworkingV1Api Ingress calls."""

    def __init__(self):
        self.ingresses: Dict[Tuple[str, str], client.V1Ingress] = {}
        self.calls: List[Tuple[str, str, str]] = []
        self.failures: Dict[str, Exception] = {}
        self._resource_version = 0

    def _check_failure(self, method: str) -> None:
        if method in self.failures:
            raise self.failures[method]

    def seed(self, ingress: client.V1Ingress) -> client.V1Ingress:
        self._resource_version += 1
        ingress.metadata.resource_version = str(self._resource_version)
        self.ingresses[(ingress.metadata.namespace, ingress.metadata.name)] = ingress
        return ingress

    def read_namespaced_ingress(self, name, namespace):
        self.calls.append(("read", namespace, name))
        self._check_failure("read")
        try:
            return self.ingresses[(namespace, name)]
        except KeyError:
            raise ApiException(status=404, reason="Not Found")

    def create_namespaced_ingress(self, namespace, body):
        self.calls.append(("create", namespace, body.metadata.name))
        self._check_failure("create")
        if (namespace, body.metadata.name) in self.ingresses:
            raise ApiException(status=409, reason="AlreadyExists")
        body.metadata.namespace = namespace
        return self.seed(body)

    def delete_namespaced_ingress(self, name, namespace):
        self.calls.append(("delete", namespace, name))
        self._check_failure("delete")
        if self.ingresses.pop((namespace, name), None) is None:
            raise ApiException(status=404, reason="Not Found")
        return client.V1Status(status="Success")

    @property
    def writes(self) -> List[Tuple[str, str, str]]:
        return [call for call in self.calls if call[0] != "read"]


class FakeCoreApi:
    """In-memory stand-in for CoreV1Api Service list calls."""

    def __init__(self, services: Optional[List[client.V1Service]] = None, resource_version: str = "100"):
        self.services = list(services or [])
        self.resource_version = resource_version
        self.list_calls: List[Optional[str]] = []

    def _service_list(self, services):
        return client.V1ServiceList(
            items=services,
            metadata=client.V1ListMeta(resource_version=self.resource_version),
        )

    def list_service_for_all_namespaces(self, **kwargs):
        self.list_calls.append(None)
        return self._service_list(list(self.services))

    def list_namespaced_service(self, namespace, **kwargs):
        self.list_calls.append(namespace)
        return self._service_list([s for s in self.services if s.metadata.namespace == namespace])


@pytest.fixture
def networking_api():
    return FakeNetworkingApi()


@pytest.fixture
def ingress_client(networking_api):
    return IngressClient(networking_api=networking_api)


@pytest.fixture
def reconciler(ingress_client):
    return IngressReconciler(ingress_client=ingress_client)
