"""Identity unit: execution and task roles for the tenant management task."""

from .workload_identity import IdentityGrants, WorkloadIdentity

__all__ = ["IdentityGrants", "WorkloadIdentity"]
