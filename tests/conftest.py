"""Test configuration and fixtures."""

import copy
import json
from typing import Any
from unittest.mock import MagicMock

import pytest
from kubernetes import client
from kubernetes.client.models import V1Deployment, V1Service
from kubernetes.client.rest import ApiException

from greeting_operator.config import OperatorConfig
from greeting_operator.resources import build_deployment, build_service


def make_api_exception(status: int, reason: str, status_reason: str | None = None) -> ApiException:
    """Build an ApiException carrying a Kubernetes Status body."""
    exc = ApiException(status=status, reason=reason)
    if status_reason is not None:
        exc.body = json.dumps(
            {"kind": "Status", "status": "Failure", "reason": status_reason, "code": status}
        )
    return exc


def already_exists() -> ApiException:
    return make_api_exception(409, "Conflict", "AlreadyExists")


class FakeCluster:
    """In-memory stand-in for the CoreV1Api and AppsV1Api calls the provisioner makes."""

    def __init__(self) -> None:
        self.namespaces: dict[str, Any] = {}
        self.deployments: dict[tuple[str, str], V1Deployment] = {}
        self.services: dict[tuple[str, str], V1Service] = {}
        self.calls: list[str] = []
        self._version = 0

    def _stamp(self, obj: Any) -> Any:
        self._version += 1
        stored = copy.deepcopy(obj)
        stored.metadata.resource_version = str(self._version)
        return stored

    def _require_namespace(self, namespace: str) -> None:
        if namespace not in self.namespaces:
            raise make_api_exception(404, "Not Found", "NotFound")

    def _create(self, store: dict, key: Any, body: Any) -> Any:
        if key in store:
            raise already_exists()
        store[key] = self._stamp(body)
        return store[key]

    def _read(self, store: dict, key: Any) -> Any:
        if key not in store:
            raise make_api_exception(404, "Not Found", "NotFound")
        return copy.deepcopy(store[key])

    def _replace(self, store: dict, key: Any, body: Any) -> Any:
        if key not in store:
            raise make_api_exception(404, "Not Found", "NotFound")
        if body.metadata.resource_version != store[key].metadata.resource_version:
            raise make_api_exception(409, "Conflict", "Conflict")
        store[key] = self._stamp(body)
        return store[key]

    def create_namespace(self, body: Any, **_kwargs: Any) -> Any:
        self.calls.append("create_namespace")
        return self._create(self.namespaces, body.metadata.name, body)

    def create_namespaced_deployment(self, namespace: str, body: Any, **_kwargs: Any) -> Any:
        self.calls.append("create_namespaced_deployment")
        self._require_namespace(namespace)
        return self._create(self.deployments, (namespace, body.metadata.name), body)

    def read_namespaced_deployment(self, name: str, namespace: str, **_kwargs: Any) -> Any:
        self.calls.append("read_namespaced_deployment")
        return self._read(self.deployments, (namespace, name))

    def replace_namespaced_deployment(
        self, name: str, namespace: str, body: Any, **_kwargs: Any
    ) -> Any:
        self.calls.append("replace_namespaced_deployment")
        return self._replace(self.deployments, (namespace, name), body)

    def create_namespaced_service(self, namespace: str, body: Any, **_kwargs: Any) -> Any:
        self.calls.append("create_namespaced_service")
        self._require_namespace(namespace)
        return self._create(self.services, (namespace, body.metadata.name), body)

    def read_namespaced_service(self, name: str, namespace: str, **_kwargs: Any) -> Any:
        self.calls.append("read_namespaced_service")
        return self._read(self.services, (namespace, name))

    def replace_namespaced_service(
        self, name: str, namespace: str, body: Any, **_kwargs: Any
    ) -> Any:
        self.calls.append("replace_namespaced_service")
        return self._replace(self.services, (namespace, name), body)


@pytest.fixture
def operator_config() -> OperatorConfig:
    """Configuration of the reference scenario."""
    return OperatorConfig(
        image="greeting:latest", port=80, namespace="default", replicas=1, name="Foo Bar"
    )


@pytest.fixture
def fake_cluster() -> FakeCluster:
    """Create an empty in-memory cluster."""
    return FakeCluster()


@pytest.fixture
def mock_k8s_clients() -> dict[str, MagicMock]:
    """Mock Kubernetes API clients."""
    core_v1 = MagicMock(spec=client.CoreV1Api)
    apps_v1 = MagicMock(spec=client.AppsV1Api)

    # Live objects as the API server returns them, with a resourceVersion set
    existing_deployment = build_deployment(OperatorConfig())
    existing_deployment.metadata.resource_version = "42"
    existing_service = build_service(OperatorConfig())
    existing_service.metadata.resource_version = "42"
    apps_v1.read_namespaced_deployment.return_value = existing_deployment
    core_v1.read_namespaced_service.return_value = existing_service

    return {"core_v1": core_v1, "apps_v1": apps_v1}
