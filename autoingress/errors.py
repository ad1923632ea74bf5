"""Error taxonomy for reconciliation against the Kubernetes API."""

from typing import Optional

from kubernetes.client.rest import ApiException


class AutoIngressError(Exception):
    """Base class for errors surfaced by a reconcile attempt."""

    def __init__(self, message: str, status: Optional[int] = None, reason: str = ""):
        super().__init__(message)
        self.status = status
        self.reason = reason


class ConflictError(AutoIngressError):
    """The API server rejected a write because of a concurrent modification."""


class InvalidError(AutoIngressError):
    """The API server rejected the object we built (e.g. a bad hostname)."""


class UnavailableError(AutoIngressError):
    """The API server could not be reached or failed transiently."""


def is_not_found(exc: ApiException) -> bool:
    return exc.status == 404


def translate_api_exception(exc: ApiException, action: str) -> AutoIngressError:
    """
    Map an ApiException to the error taxonomy.

    404 is not mapped here: callers absorb it before translating.

    Args:
        exc: The exception raised by the Kubernetes client
        action: Short description of the failed call, used in the message

    Returns:
        The typed error to raise
    """
    message = f"{action} failed: {exc.status} {exc.reason}"
    if exc.status == 409:
        return ConflictError(message, exc.status, exc.reason)
    if exc.status in (400, 422):
        return InvalidError(message, exc.status, exc.reason)
    return UnavailableError(message, exc.status, exc.reason)
