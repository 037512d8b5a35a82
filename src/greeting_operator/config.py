"""
Desired configuration for the greeting workload
"""

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_IMAGE = "greeting:latest"
DEFAULT_NAMESPACE = "default"
DEFAULT_NAME = "anonymous"


class OperatorConfig(BaseModel):
    """Configuration required to provision the greeting server"""

    model_config = ConfigDict(frozen=True)

    # Image to use to create the greeting server
    image: str = Field(DEFAULT_IMAGE, min_length=1)
    # Port on which the greeting server is reachable through the service
    port: int = Field(80, ge=1, le=65535)
    # Namespace in which the resources are created
    namespace: str = Field(DEFAULT_NAMESPACE, min_length=1)
    # Number of greeting server replicas
    replicas: int = Field(1, ge=0)
    # Name the greeting server presents itself with
    name: str = DEFAULT_NAME
    # Per-call timeout for Kubernetes API requests, in seconds
    request_timeout: float | None = Field(None, gt=0)
