"""Workload unit: Fargate service behind an internal load balancer."""

from .container_config import ContainerConfiguration, EnvironmentVariable
from .service_stack import ServiceStack

__all__ = ["ContainerConfiguration", "EnvironmentVariable", "ServiceStack"]
