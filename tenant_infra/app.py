"""Entry point for the tenant management service infrastructure.

Three stacks are composed per environment: an isolated network, the
load-balanced Fargate workload (with its IAM identities inline) and the
monitoring stack watching that workload.

Environment Configuration Options:
    1. AWS Named Profile:
       ``-c awsProfile=<name>``: profile resolved through boto3 and STS

    2. Direct Environment Variables:
       CDK_DEFAULT_ACCOUNT: Target AWS account for deployment
       CDK_DEFAULT_REGION: Target AWS region for deployment
"""

import logging
import os
import sys

import boto3
from aws_cdk import App, Environment
from pydantic import ValidationError

from tenant_infra.config import DeploymentConfig
from tenant_infra.monitoring import MonitoringStack
from tenant_infra.network import NetworkStack
from tenant_infra.service import ServiceStack

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"


def create_deployment_environment(config: DeploymentConfig) -> Environment:
    """Creates CDK Environment from configuration.

    Handles both AWS profile and direct environment variable configurations.

    Args:
        config: Deployment configuration, possibly naming an AWS profile.

    Returns:
        CDK Environment with account and region resolved.
    """
    if config.aws_profile:
        session = boto3.Session(profile_name=config.aws_profile)
        sts = session.client("sts")
        account = sts.get_caller_identity()["Account"]
        return Environment(
            account=account,
            region=session.region_name or DEFAULT_REGION,
        )

    return Environment(
        account=os.environ.get("CDK_DEFAULT_ACCOUNT"),
        region=os.environ.get("CDK_DEFAULT_REGION", DEFAULT_REGION),
    )


def initialize_app(app: App | None = None) -> App:
    """Initializes and configures the CDK application.

    Reads the deployment configuration from context, then creates the
    network, service and monitoring stacks with explicit dependencies.

    Args:
        app: Application to populate. A new one is created when omitted.

    Returns:
        Configured CDK App instance ready for synthesis.

    Raises:
        pydantic.ValidationError: If the context holds invalid settings.
    """
    app = app or App()
    config = DeploymentConfig.from_context(app.node)
    env = create_deployment_environment(config)
    logger.info(
        "Synthesizing environment %s (vpc %s, %d x %d CPU / %d MiB tasks)",
        config.env_name,
        config.vpc_cidr,
        config.desired_count,
        config.cpu,
        config.memory,
    )

    network = NetworkStack(
        app,
        config.stack_name("Network"),
        config=config,
        env=env,
        description="Isolated VPC with endpoints for the tenant management service",
        tags=config.tags,
    )

    service = ServiceStack(
        app,
        config.stack_name("Service"),
        config=config,
        vpc=network.vpc,
        workload_subnets=network.workload_subnets,
        env=env,
        description="Internal load-balanced Fargate service for tenant management",
        tags=config.tags,
    )
    service.add_dependency(network)

    monitoring = MonitoringStack(
        app,
        config.stack_name("Monitoring"),
        config=config,
        cluster=service.cluster,
        service=service.service,
        load_balancer=service.load_balancer,
        env=env,
        description="Alarms and dashboard for the tenant management service",
        tags=config.tags,
    )
    monitoring.add_dependency(service)

    return app


def main() -> None:
    """Main execution entry point."""
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        app = initialize_app()
    except ValidationError as exc:
        logger.error("Invalid deployment configuration:\n%s", exc)
        sys.exit(1)
    app.synth()


if __name__ == "__main__":
    main()
