"""Deployment configuration for the tenant management infrastructure.

Every synthesis input is read from CDK context exactly once, validated by
:class:`DeploymentConfig`, and handed to the stacks as an immutable object.
The defaults below are the only place default values are defined.

Context keys (``cdk synth -c key=value``):
    env: Environment name used in resource names and tags.
    vpcCidr: CIDR block of the VPC.
    desiredCount: Baseline replica count, also the autoscaling minimum.
    cpu: Fargate CPU units for the task.
    memory: Fargate memory (MiB) for the task.
    alarmEmail: Optional address subscribed to the alarm topic.
    containerImage: Image reference for the application container.
    awsProfile: Optional named profile used to resolve account and region.
"""

import ipaddress
from typing import Any

from constructs import Node
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator

from tenant_infra.constants import (
    APP_NAME,
    FARGATE_TASK_SIZES,
    MAX_CAPACITY,
    MAX_VPC_PREFIX,
    MIN_VPC_PREFIX,
    RESOURCE_PREFIX,
)


class DeploymentConfig(BaseModel):
    """Validated inputs for one environment of the tenant management service.

    Attributes:
        env_name: Environment name, e.g. ``dev`` or ``prod``.
        vpc_cidr: IPv4 CIDR block for the isolated VPC.
        desired_count: Replica count kept running; autoscaling minimum.
        cpu: Fargate CPU units.
        memory: Fargate memory in MiB, must pair with ``cpu``.
        alarm_email: Optional e-mail subscription for alarm notifications.
        container_image: Registry reference of the application image.
        aws_profile: Optional named AWS profile for environment resolution.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    env_name: str = Field(default="dev", alias="env", pattern=r"^[a-z0-9][a-z0-9-]*$")
    vpc_cidr: str = Field(default="10.0.0.0/16", alias="vpcCidr")
    desired_count: int = Field(default=2, alias="desiredCount", ge=1, le=MAX_CAPACITY)
    cpu: int = 256
    memory: int = 512
    alarm_email: EmailStr | None = Field(default=None, alias="alarmEmail")
    container_image: str = Field(
        default="public.ecr.aws/docker/library/nginx:stable",
        alias="containerImage",
        min_length=1,
    )
    aws_profile: str | None = Field(default=None, alias="awsProfile")

    @field_validator("vpc_cidr")
    @classmethod
    def _check_vpc_cidr(cls, value: str) -> str:
        network = ipaddress.IPv4Network(value)
        if not MIN_VPC_PREFIX <= network.prefixlen <= MAX_VPC_PREFIX:
            msg = (
                f"vpc_cidr prefix must be between /{MIN_VPC_PREFIX} and "
                f"/{MAX_VPC_PREFIX}, got /{network.prefixlen}"
            )
            raise ValueError(msg)
        return str(network)

    @model_validator(mode="after")
    def _check_task_size(self) -> "DeploymentConfig":
        allowed = FARGATE_TASK_SIZES.get(self.cpu)
        if allowed is None:
            msg = f"cpu must be one of {sorted(FARGATE_TASK_SIZES)}, got {self.cpu}"
            raise ValueError(msg)
        if self.memory not in allowed:
            msg = (
                f"memory {self.memory} MiB is not a valid Fargate size for "
                f"{self.cpu} CPU units (allowed: {', '.join(map(str, allowed))})"
            )
            raise ValueError(msg)
        return self

    @classmethod
    def from_context(cls, node: Node) -> "DeploymentConfig":
        """Build the configuration from CDK context values.

        Unset keys fall back to the model defaults.

        Args:
            node: Construct node to read context from, usually ``app.node``.

        Returns:
            Validated deployment configuration.

        Raises:
            pydantic.ValidationError: If any context value is invalid.
        """
        values: dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            key = field.alias or name
            value = node.try_get_context(key)
            if value is not None:
                values[key] = value
        return cls.model_validate(values)

    def stack_name(self, unit: str) -> str:
        """Stack name for a unit, e.g. ``TenantMgmtNetworkStack-dev``."""
        return f"{APP_NAME}{unit}Stack-{self.env_name}"

    def resource_name(self, resource: str) -> str:
        """Physical resource name, e.g. ``tenant-mgmt-alarms-dev``."""
        return f"{RESOURCE_PREFIX}-{resource}-{self.env_name}"

    @property
    def log_group_name(self) -> str:
        return f"/aws/ecs/{RESOURCE_PREFIX}-{self.env_name}"

    @property
    def tags(self) -> dict[str, str]:
        """Tags applied to every stack of the environment."""
        return {
            "Environment": self.env_name,
            "Application": APP_NAME,
            "ManagedBy": "AWS-CDK",
        }
