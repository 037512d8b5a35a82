#!/usr/bin/env python3
"""
Greeting Operator - exposes a greeting server on Kubernetes
"""

import logging

import typer
import yaml
from kubernetes import client, config
from pydantic import ValidationError

from greeting_operator._version import __version__
from greeting_operator.config import (
    DEFAULT_IMAGE,
    DEFAULT_NAME,
    DEFAULT_NAMESPACE,
    OperatorConfig,
)
from greeting_operator.exceptions import ClusterConnectionError, GreetingOperatorError
from greeting_operator.provisioner import ResourceProvisioner
from greeting_operator.resources import build_resources

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="greeting-operator",
    help="Automatically expose a greeting server",
    pretty_exceptions_show_locals=False,
)


def configure_logging(level: str) -> None:
    logging.basicConfig(format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    logging.getLogger().setLevel(level.upper())


def load_kubernetes_config() -> None:
    """Load in-cluster credentials, falling back to the local kubeconfig"""
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            config.load_kube_config()
            logger.info("Loaded local Kubernetes configuration")
        except config.ConfigException as e:
            raise ClusterConnectionError(
                f"Could not load Kubernetes configuration: {e}", "load config"
            ) from e


def _build_config(**values: object) -> OperatorConfig:
    try:
        return OperatorConfig(**values)
    except ValidationError as e:
        typer.echo(f"Error: invalid configuration: {e}", err=True)
        raise typer.Exit(code=1)


@app.command("run")
def run(
    image: str = typer.Option(
        DEFAULT_IMAGE, "--image", "-i", envvar="IMAGE", help="Greeting server image"
    ),
    port: int = typer.Option(
        80, "--port", "-p", envvar="PORT", help="Port used by the service"
    ),
    namespace: str = typer.Option(
        DEFAULT_NAMESPACE,
        "--namespace",
        "-n",
        envvar="NAMESPACE",
        help="Kubernetes namespace used to create resources",
    ),
    replicas: int = typer.Option(
        1, "--replicas", "-r", envvar="REPLICAS", help="Number of greeting server replicas"
    ),
    name: str = typer.Option(DEFAULT_NAME, "--name", envvar="NAME", help="Greeting name"),
    request_timeout: float | None = typer.Option(
        None,
        "--request-timeout",
        envvar="REQUEST_TIMEOUT",
        help="Timeout in seconds for each Kubernetes API request",
    ),
    log_level: str = typer.Option("INFO", "--log-level", envvar="LOG_LEVEL"),
) -> None:
    """Create or update the greeting namespace, deployment and service."""
    try:
        configure_logging(log_level)
    except ValueError:
        raise typer.BadParameter(f"Unknown log level: {log_level}", param_hint="--log-level")
    operator_config = _build_config(
        image=image,
        port=port,
        namespace=namespace,
        replicas=replicas,
        name=name,
        request_timeout=request_timeout,
    )

    logger.info("Starting greeting operator %s", __version__)
    try:
        load_kubernetes_config()
        provisioner = ResourceProvisioner(
            operator_config, core_v1=client.CoreV1Api(), apps_v1=client.AppsV1Api()
        )
        results = provisioner.start()
    except GreetingOperatorError as e:
        logger.error("Unable to start greeting operator: %s", e)
        raise typer.Exit(code=1)

    for result in results:
        logger.info("%s %s: %s", result.kind, result.name, result.outcome.value)


@app.command("render")
def render(
    image: str = typer.Option(DEFAULT_IMAGE, "--image", "-i", envvar="IMAGE"),
    port: int = typer.Option(80, "--port", "-p", envvar="PORT"),
    namespace: str = typer.Option(DEFAULT_NAMESPACE, "--namespace", "-n", envvar="NAMESPACE"),
    replicas: int = typer.Option(1, "--replicas", "-r", envvar="REPLICAS"),
    name: str = typer.Option(DEFAULT_NAME, "--name", envvar="NAME"),
) -> None:
    """Print the desired resources as YAML without contacting the cluster."""
    operator_config = _build_config(
        image=image, port=port, namespace=namespace, replicas=replicas, name=name
    )
    api_client = client.ApiClient()
    documents = [
        api_client.sanitize_for_serialization(resource)
        for resource in build_resources(operator_config)
    ]
    typer.echo(yaml.safe_dump_all(documents, sort_keys=False), nl=False)


def main() -> None:
    """Main entry point for the operator."""
    app()


if __name__ == "__main__":
    main()
