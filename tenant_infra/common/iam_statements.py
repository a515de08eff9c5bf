"""Region-scoped IAM policy statements for the tenant management workload.

Every statement produced here is an allow statement limited to explicit
resource name prefixes and gated on ``aws:RequestedRegion``.
"""

from collections.abc import Sequence

from aws_cdk import aws_iam as iam


def region_scoped_statement(
    actions: Sequence[str],
    resources: Sequence[str],
    region: str,
) -> iam.PolicyStatement:
    """Build an allow statement that only applies to requests in ``region``.

    Args:
        actions: IAM actions granted by the statement.
        resources: Resource ARN patterns; a bare ``*`` is rejected.
        region: Region the requests must target, usually ``Stack.region``.

    Returns:
        The policy statement.

    Raises:
        ValueError: If no resources are given or one of them is ``*``.
    """
    if not resources:
        raise ValueError("At least one resource pattern is required")
    if "*" in resources:
        raise ValueError("Wildcard resource grants are not allowed")

    return iam.PolicyStatement(
        effect=iam.Effect.ALLOW,
        actions=list(actions),
        resources=list(resources),
        conditions={
            "StringEquals": {
                "aws:RequestedRegion": region,
            },
        },
    )


class ScopedPolicyStatements:
    """Statements granted to the workload's task role."""

    @staticmethod
    def secrets_access(
        region: str,
        account: str,
        name_prefixes: Sequence[str],
    ) -> iam.PolicyStatement:
        """Secrets Manager create/read/write/describe/tag on prefixed secrets.

        Args:
            region: Stack region.
            account: Stack account.
            name_prefixes: Secret name prefixes, e.g. ``("tenant-", "app-")``.
        """
        return region_scoped_statement(
            actions=[
                "secretsmanager:CreateSecret",
                "secretsmanager:GetSecretValue",
                "secretsmanager:PutSecretValue",
                "secretsmanager:UpdateSecret",
                "secretsmanager:DescribeSecret",
                "secretsmanager:TagResource",
            ],
            resources=[
                f"arn:aws:secretsmanager:{region}:{account}:secret:{prefix}*"
                for prefix in name_prefixes
            ],
            region=region,
        )

    @staticmethod
    def parameters_access(
        region: str,
        account: str,
        path_prefixes: Sequence[str],
    ) -> iam.PolicyStatement:
        """SSM Parameter Store put/get/list/describe/tag under path prefixes.

        Args:
            region: Stack region.
            account: Stack account.
            path_prefixes: Parameter paths without leading slash, e.g.
                ``("tenant/", "app/")``.
        """
        return region_scoped_statement(
            actions=[
                "ssm:PutParameter",
                "ssm:GetParameter",
                "ssm:GetParameters",
                "ssm:GetParametersByPath",
                "ssm:DescribeParameters",
                "ssm:AddTagsToResource",
            ],
            resources=[
                f"arn:aws:ssm:{region}:{account}:parameter/{prefix}*"
                for prefix in path_prefixes
            ],
            region=region,
        )

    @staticmethod
    def log_delivery(
        region: str,
        account: str,
        log_group_pattern: str,
    ) -> iam.PolicyStatement:
        """CloudWatch Logs group/stream creation and event delivery.

        Args:
            region: Stack region.
            account: Stack account.
            log_group_pattern: Log group name pattern, e.g.
                ``/aws/ecs/tenant-mgmt-*``.
        """
        return region_scoped_statement(
            actions=[
                "logs:CreateLogGroup",
                "logs:CreateLogStream",
                "logs:PutLogEvents",
            ],
            resources=[
                f"arn:aws:logs:{region}:{account}:log-group:{log_group_pattern}",
                f"arn:aws:logs:{region}:{account}:log-group:{log_group_pattern}:*",
            ],
            region=region,
        )
