"""Network unit: isolated VPC with private endpoints to AWS services."""

from .network_stack import (
    ENDPOINT_SUBNET_GROUP,
    WORKLOAD_SUBNET_GROUP,
    NetworkStack,
)

__all__ = ["ENDPOINT_SUBNET_GROUP", "WORKLOAD_SUBNET_GROUP", "NetworkStack"]
