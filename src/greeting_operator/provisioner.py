"""
Provisioning of the greeting server resources
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from kubernetes import client

from greeting_operator.config import OperatorConfig
from greeting_operator.exceptions import (
    AlreadyExistsError,
    GreetingOperatorError,
    ProvisioningError,
    handle_kubernetes_errors,
)
from greeting_operator.resources import APP_NAME, build_deployment, build_namespace, build_service

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    """What an ensure-operation did to its resource"""

    CREATED = "created"
    EXISTS = "exists"
    UPDATED = "updated"


@dataclass(frozen=True)
class EnsureResult:
    kind: str
    name: str
    outcome: Outcome


class ResourceProvisioner:
    """Exposes a greeting server on Kubernetes.

    Every step is idempotent: a failed run leaves whatever was already created
    in the cluster and is recovered by running again.
    """

    def __init__(
        self,
        config: OperatorConfig,
        core_v1: client.CoreV1Api,
        apps_v1: client.AppsV1Api,
    ) -> None:
        self.config = config
        self.core_v1 = core_v1
        self.apps_v1 = apps_v1

    @property
    def _request_options(self) -> dict[str, Any]:
        if self.config.request_timeout is None:
            return {}
        return {"_request_timeout": self.config.request_timeout}

    def start(self) -> list[EnsureResult]:
        """Create the namespace, deployment and service, stopping at the first failure"""
        return [
            self.ensure_namespace(),
            self.ensure_deployment(),
            self.ensure_service(),
        ]

    def ensure_namespace(self) -> EnsureResult:
        """Create the namespace unless it already exists"""
        namespace = self.config.namespace
        logger.info("Creating namespace %s", namespace)

        try:
            with handle_kubernetes_errors("create", f"namespace {namespace}"):
                self.core_v1.create_namespace(
                    body=build_namespace(self.config), **self._request_options
                )
        except AlreadyExistsError:
            logger.info("Namespace %s already exists", namespace)
            return EnsureResult("Namespace", namespace, Outcome.EXISTS)
        except GreetingOperatorError as e:
            raise ProvisioningError("create namespace", e) from e

        logger.info("Namespace %s created", namespace)
        return EnsureResult("Namespace", namespace, Outcome.CREATED)

    def ensure_deployment(self) -> EnsureResult:
        """Create the greeting deployment, replacing the existing one on conflict"""
        namespace = self.config.namespace
        resource = f"deployment {namespace}/{APP_NAME}"
        deployment = build_deployment(self.config)
        logger.info("Creating deployment %s in namespace %s", APP_NAME, namespace)

        try:
            with handle_kubernetes_errors("create", resource):
                self.apps_v1.create_namespaced_deployment(
                    namespace=namespace, body=deployment, **self._request_options
                )
        except AlreadyExistsError:
            logger.info("Deployment already exists, updating current")
            try:
                with handle_kubernetes_errors("update", resource):
                    current = self.apps_v1.read_namespaced_deployment(
                        name=APP_NAME, namespace=namespace, **self._request_options
                    )
                    # Full replace guarded by the observed resourceVersion
                    deployment.metadata.resource_version = current.metadata.resource_version
                    self.apps_v1.replace_namespaced_deployment(
                        name=APP_NAME,
                        namespace=namespace,
                        body=deployment,
                        **self._request_options,
                    )
            except GreetingOperatorError as e:
                raise ProvisioningError("update deployment", e) from e
            logger.info(
                "Deployment updated (replicas=%s, image=%s)",
                self.config.replicas,
                self.config.image,
            )
            return EnsureResult("Deployment", APP_NAME, Outcome.UPDATED)
        except GreetingOperatorError as e:
            raise ProvisioningError("create deployment", e) from e

        logger.info("Deployment created")
        return EnsureResult("Deployment", APP_NAME, Outcome.CREATED)

    def ensure_service(self) -> EnsureResult:
        """Create the greeting service, replacing the existing one on conflict"""
        namespace = self.config.namespace
        resource = f"service {namespace}/{APP_NAME}"
        service = build_service(self.config)
        logger.info("Creating service %s in namespace %s", APP_NAME, namespace)

        try:
            with handle_kubernetes_errors("create", resource):
                self.core_v1.create_namespaced_service(
                    namespace=namespace, body=service, **self._request_options
                )
        except AlreadyExistsError:
            logger.info("Service already exists, updating current")
            try:
                with handle_kubernetes_errors("update", resource):
                    current = self.core_v1.read_namespaced_service(
                        name=APP_NAME, namespace=namespace, **self._request_options
                    )
                    service.metadata.resource_version = current.metadata.resource_version
                    self.core_v1.replace_namespaced_service(
                        name=APP_NAME,
                        namespace=namespace,
                        body=service,
                        **self._request_options,
                    )
            except GreetingOperatorError as e:
                raise ProvisioningError("update service", e) from e
            logger.info("Service updated (port 80 -> %s)", self.config.port)
            return EnsureResult("Service", APP_NAME, Outcome.UPDATED)
        except GreetingOperatorError as e:
            raise ProvisioningError("create service", e) from e

        logger.info("Service created")
        return EnsureResult("Service", APP_NAME, Outcome.CREATED)
