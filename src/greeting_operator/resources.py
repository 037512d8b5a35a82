"""
Desired Kubernetes resources for the greeting server
"""

from kubernetes.client.models import (
    V1Container,
    V1ContainerPort,
    V1Deployment,
    V1DeploymentSpec,
    V1EnvVar,
    V1HTTPGetAction,
    V1LabelSelector,
    V1Namespace,
    V1ObjectMeta,
    V1PodSpec,
    V1PodTemplateSpec,
    V1Probe,
    V1Service,
    V1ServicePort,
    V1ServiceSpec,
)

from greeting_operator.config import OperatorConfig

APP_NAME = "greeting"
APP_LABELS = {"app": APP_NAME}
CONTAINER_PORT = 80
SERVICE_PORT = 80
HEALTH_PATH = "/health"
LIVENESS_TIMEOUT_SECONDS = 3


def build_namespace(config: OperatorConfig) -> V1Namespace:
    """Create the namespace holding the greeting resources"""
    return V1Namespace(
        api_version="v1",
        kind="Namespace",
        metadata=V1ObjectMeta(name=config.namespace),
    )


def build_deployment(config: OperatorConfig) -> V1Deployment:
    """Create the greeting server deployment.

    The selector and the pod template share ``APP_LABELS``; the API server
    rejects a deployment whose selector does not match its template.
    """
    return V1Deployment(
        api_version="apps/v1",
        kind="Deployment",
        metadata=V1ObjectMeta(
            name=APP_NAME,
            namespace=config.namespace,
            labels=dict(APP_LABELS),
        ),
        spec=V1DeploymentSpec(
            replicas=config.replicas,
            selector=V1LabelSelector(match_labels=dict(APP_LABELS)),
            template=V1PodTemplateSpec(
                metadata=V1ObjectMeta(name=APP_NAME, labels=dict(APP_LABELS)),
                spec=V1PodSpec(
                    containers=[
                        V1Container(
                            name=APP_NAME,
                            image=config.image,
                            # Images are imported into the cluster nodes beforehand
                            image_pull_policy="Never",
                            ports=[
                                V1ContainerPort(
                                    name="http",
                                    protocol="TCP",
                                    container_port=CONTAINER_PORT,
                                )
                            ],
                            env=[V1EnvVar(name="NAME", value=config.name)],
                            liveness_probe=V1Probe(
                                http_get=V1HTTPGetAction(
                                    path=HEALTH_PATH, port=CONTAINER_PORT
                                ),
                                timeout_seconds=LIVENESS_TIMEOUT_SECONDS,
                            ),
                        )
                    ],
                    restart_policy="Always",
                ),
            ),
        ),
    )


def build_service(config: OperatorConfig) -> V1Service:
    """Create the LoadBalancer service exposing the greeting server"""
    return V1Service(
        api_version="v1",
        kind="Service",
        metadata=V1ObjectMeta(name=APP_NAME, namespace=config.namespace),
        spec=V1ServiceSpec(
            selector=dict(APP_LABELS),
            type="LoadBalancer",
            ports=[
                V1ServicePort(
                    name="http",
                    protocol="TCP",
                    port=SERVICE_PORT,
                    target_port=config.port,
                )
            ],
        ),
    )


def build_resources(config: OperatorConfig) -> list[V1Namespace | V1Deployment | V1Service]:
    """All desired resources, in provisioning order"""
    return [build_namespace(config), build_deployment(config), build_service(config)]
