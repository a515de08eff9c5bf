"""IAM identities for the tenant management Fargate task.

The construct is declared inside the workload stack. Keeping the roles in
the same stack as the task definition and log group lets CDK attach the
log-driver grants to the execution role without a cross-stack cycle.
"""

from dataclasses import dataclass
from typing import cast

from aws_cdk import Stack
from aws_cdk import aws_iam as iam
from constructs import Construct

from tenant_infra.common import ScopedPolicyStatements
from tenant_infra.constants import RESOURCE_PREFIX

ECS_TASKS_PRINCIPAL = "ecs-tasks.amazonaws.com"
EXECUTION_ROLE_MANAGED_POLICY = "service-role/AmazonECSTaskExecutionRolePolicy"


@dataclass(frozen=True)
class IdentityGrants:
    """Resource scopes granted to the task role.

    Attributes:
        secret_prefixes: Secrets Manager secret name prefixes.
        parameter_paths: Parameter Store paths, without the leading slash.
        log_group_pattern: CloudWatch Logs log group name pattern.
    """

    secret_prefixes: tuple[str, ...] = ("tenant-", "app-")
    parameter_paths: tuple[str, ...] = ("tenant/", "app/")
    log_group_pattern: str = f"/aws/ecs/{RESOURCE_PREFIX}-*"


class WorkloadIdentity(Construct):
    """Execution role and least-privilege task role for the workload.

    Attributes:
        execution_role: Role the ECS agent uses to pull images and ship logs.
        task_role: Role assumed by the application code.
        statements: Statements attached to the task role, keyed by purpose.
    """

    execution_role: iam.Role
    task_role: iam.Role
    statements: dict[str, iam.PolicyStatement]

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        grants: IdentityGrants | None = None,
    ) -> None:
        super().__init__(scope, construct_id)

        self._grants = grants or IdentityGrants()
        stack = Stack.of(self)

        self.execution_role = iam.Role(
            self,
            "ExecutionRole",
            assumed_by=cast("iam.IPrincipal", iam.ServicePrincipal(ECS_TASKS_PRINCIPAL)),
            description="Execution role for tenant management service",
            managed_policies=[
                iam.ManagedPolicy.from_aws_managed_policy_name(
                    EXECUTION_ROLE_MANAGED_POLICY,
                ),
            ],
        )

        self.task_role = iam.Role(
            self,
            "TaskRole",
            assumed_by=cast("iam.IPrincipal", iam.ServicePrincipal(ECS_TASKS_PRINCIPAL)),
            description="Task role for tenant management service",
        )

        self.statements = {
            "secrets": ScopedPolicyStatements.secrets_access(
                stack.region,
                stack.account,
                self._grants.secret_prefixes,
            ),
            "parameters": ScopedPolicyStatements.parameters_access(
                stack.region,
                stack.account,
                self._grants.parameter_paths,
            ),
            "logs": ScopedPolicyStatements.log_delivery(
                stack.region,
                stack.account,
                self._grants.log_group_pattern,
            ),
        }
        for statement in self.statements.values():
            self.task_role.add_to_policy(statement)
