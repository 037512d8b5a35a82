"""
Error taxonomy for the greeting operator
"""

import json
import logging
from collections.abc import Iterator
from contextlib import contextmanager

from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

logger = logging.getLogger(__name__)


class GreetingOperatorError(Exception):
    """Base exception for greeting operator failures"""

    def __init__(self, message: str, operation: str, resource: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.resource = resource


class KubernetesOperationError(GreetingOperatorError):
    """Exception for Kubernetes API operation failures"""

    def __init__(
        self,
        message: str,
        operation: str,
        resource: str,
        api_exception: ApiException | None = None,
    ):
        super().__init__(message, operation, resource)
        self.api_exception = api_exception
        self.status_code = api_exception.status if api_exception else None


class AlreadyExistsError(KubernetesOperationError):
    """The resource to create is already present in the cluster"""


class UpdateConflictError(KubernetesOperationError):
    """The resource was modified concurrently while it was being replaced"""


class ResourceValidationError(KubernetesOperationError):
    """The cluster rejected the desired resource"""


class ClusterConnectionError(GreetingOperatorError):
    """The cluster API is unreachable or refused our credentials"""


class ProvisioningError(GreetingOperatorError):
    """A provisioning stage failed; the remaining stages were not attempted"""

    def __init__(self, stage: str, cause: GreetingOperatorError) -> None:
        super().__init__(f"{stage}: {cause.message}", stage, cause.resource)
        self.stage = stage
        self.cause = cause


def api_exception_reason(exc: ApiException) -> str | None:
    """Return the machine-readable reason from a Kubernetes Status body"""
    if not exc.body:
        return None
    try:
        status = json.loads(exc.body)
    except (TypeError, ValueError):
        return None
    if not isinstance(status, dict):
        return None
    reason = status.get("reason")
    return str(reason) if reason else None


def is_already_exists(exc: ApiException) -> bool:
    """Check whether a create call failed because the object exists.

    Kubernetes answers 409 for both AlreadyExists and Conflict; when the body
    carries no reason a 409 on create can only mean the former.
    """
    if exc.status != 409:
        return False
    return api_exception_reason(exc) in (None, "AlreadyExists")


def classify_api_exception(
    exc: ApiException, operation: str, resource: str
) -> KubernetesOperationError | ClusterConnectionError:
    """Convert an ApiException into the matching domain exception."""
    reason = api_exception_reason(exc) or exc.reason
    message = f"Failed to {operation} {resource}: ({exc.status}) {reason}"

    if operation == "create" and is_already_exists(exc):
        # Expected on every re-run, not worth a warning
        return AlreadyExistsError(message, operation, resource, exc)

    if exc.status == 404:
        # The object vanished between the create and the update
        logger.info(
            "Kubernetes API error while trying to %s %s: Resource not found (404)",
            operation,
            resource,
        )
    elif exc.status in (400, 401, 403, 409, 422):
        logger.warning(
            "Kubernetes API error while trying to %s %s: Client error (%s): %s",
            operation,
            resource,
            exc.status,
            exc.reason,
        )
    else:
        logger.error(
            "Kubernetes API error while trying to %s %s: Server error (%s): %s",
            operation,
            resource,
            exc.status,
            exc.reason,
        )
        if exc.body:
            logger.error("Error details: %s", exc.body)

    if not exc.status or exc.status in (401, 403):
        return ClusterConnectionError(message, operation, resource)
    if exc.status == 409:
        return UpdateConflictError(message, operation, resource, exc)
    if exc.status in (400, 422):
        return ResourceValidationError(message, operation, resource, exc)
    return KubernetesOperationError(message, operation, resource, exc)


@contextmanager
def handle_kubernetes_errors(operation: str, resource: str) -> Iterator[None]:
    """
    Translate Kubernetes client failures raised in the block into domain exceptions.

    Args:
        operation: Verb of the API call (e.g., "create", "update")
        resource: Identifier of the targeted object (e.g., "deployment default/greeting")
    """
    try:
        yield
    except ApiException as e:
        raise classify_api_exception(e, operation, resource) from e
    except (HTTPError, OSError) as e:
        logger.error("Kubernetes API unreachable while trying to %s %s: %s", operation, resource, e)
        raise ClusterConnectionError(
            f"Failed to {operation} {resource}: cluster API unreachable: {e}",
            operation,
            resource,
        ) from e
