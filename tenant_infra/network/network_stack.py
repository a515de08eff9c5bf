"""Isolated network infrastructure for the tenant management service.

The VPC has no route to the internet: no public subnets, no internet
gateway and no NAT. Everything the workload needs from AWS is reached
through VPC endpoints.

Architecture:
    - Two isolated subnet groups across two availability zones:
      * ``Isolated-1`` (/24): Fargate tasks and the internal load balancer
      * ``Isolated-2`` (/28): interface endpoint network interfaces
    - S3 gateway endpoint routed into every isolated subnet
    - Interface endpoints for Secrets Manager, SSM, ECR API, ECR Docker and
      CloudWatch Logs behind one shared security group (HTTPS from the VPC)
    - VPC Flow Logs to CloudWatch Logs
"""

import logging
from typing import Any, cast

import cdk_nag
from aws_cdk import Aspects, RemovalPolicy, Stack
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_iam as iam
from aws_cdk import aws_logs as logs
from cdk_nag import NagSuppressions
from constructs import Construct

from tenant_infra.common import OutputManager, apply_tags
from tenant_infra.config import DeploymentConfig

logger = logging.getLogger(__name__)

WORKLOAD_SUBNET_GROUP = "Isolated-1"
ENDPOINT_SUBNET_GROUP = "Isolated-2"
MAX_AZS = 2


class NetworkStack(Stack):
    """Isolated VPC for the tenant management workload.

    Attributes:
        config: Deployment configuration the stack was built from.
        endpoints_security_group: Security group shared by interface endpoints.
        gateway_endpoints: Gateway endpoints keyed by service name.
        interface_endpoints: Interface endpoints keyed by service name.
        flow_logs_role: IAM role delivering VPC Flow Logs.
        flow_logs: VPC Flow Logs configuration.
        output_manager: Manager for consistent output creation.
    """

    endpoints_security_group: ec2.SecurityGroup
    gateway_endpoints: dict[str, ec2.GatewayVpcEndpoint]
    interface_endpoints: dict[str, ec2.InterfaceVpcEndpoint]
    flow_logs_role: iam.Role
    flow_logs: ec2.FlowLog
    output_manager: OutputManager

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: DeploymentConfig,
        **kwargs: Any,
    ) -> None:
        """Initialize the network stack.

        Args:
            scope: CDK construct scope for resource creation.
            construct_id: Unique identifier for this stack.
            config: Deployment configuration (environment name, VPC CIDR).
            **kwargs: Additional arguments passed to parent Stack.
        """
        super().__init__(scope, construct_id, **kwargs)

        self.config = config
        self.output_manager = OutputManager(self, config.env_name)

        self._create_vpc()
        self._create_flow_logs()
        self._create_endpoints_security_group()
        self._create_gateway_endpoints()
        self._create_interface_endpoints()
        self._create_outputs()
        self._configure_security_checks()

        apply_tags(self, {"Stack": "Network"})

    def _configure_security_checks(self) -> None:
        """Run the AWS Solutions rule pack against this stack."""
        Aspects.of(self).add(cdk_nag.AwsSolutionsChecks())
        NagSuppressions.add_resource_suppressions(
            self.flow_logs_role,
            [
                {
                    "id": "AwsSolutions-IAM5",
                    "reason": "Flow log delivery writes to streams created at runtime inside its own log group.",
                },
            ],
            apply_to_children=True,
        )
        NagSuppressions.add_resource_suppressions(
            self.endpoints_security_group,
            [
                {
                    "id": "AwsSolutions-EC23",
                    "reason": "Ingress is limited to the VPC CIDR, which is an intrinsic reference.",
                },
                {
                    "id": "CdkNagValidationFailure",
                    "reason": "VPC CIDR is resolved by CloudFormation and cannot be evaluated at synthesis.",
                },
            ],
            apply_to_children=True,
        )

    def _create_vpc(self) -> None:
        """Create the VPC with two isolated subnet groups and no NAT."""
        self._vpc = ec2.Vpc(
            self,
            "Vpc",
            ip_addresses=ec2.IpAddresses.cidr(self.config.vpc_cidr),
            max_azs=MAX_AZS,
            nat_gateways=0,
            enable_dns_hostnames=True,
            enable_dns_support=True,
            subnet_configuration=[
                ec2.SubnetConfiguration(
                    name=WORKLOAD_SUBNET_GROUP,
                    subnet_type=ec2.SubnetType.PRIVATE_ISOLATED,
                    cidr_mask=24,
                ),
                ec2.SubnetConfiguration(
                    name=ENDPOINT_SUBNET_GROUP,
                    subnet_type=ec2.SubnetType.PRIVATE_ISOLATED,
                    cidr_mask=28,
                ),
            ],
        )
        apply_tags(self._vpc, {"Name": self.config.resource_name("vpc")})

    def _create_flow_logs(self) -> None:
        """Send all VPC traffic records to a CloudWatch log group."""
        flow_logs_log_group = logs.LogGroup(
            self,
            "VpcFlowLogsGroup",
            log_group_name=f"/aws/vpc/flowlogs/{self.config.resource_name('vpc')}",
            retention=logs.RetentionDays.ONE_MONTH,
            removal_policy=RemovalPolicy.DESTROY,
        )

        self.flow_logs_role = iam.Role(
            self,
            "VpcFlowLogsRole",
            assumed_by=cast(
                "iam.IPrincipal",
                iam.ServicePrincipal("vpc-flow-logs.amazonaws.com"),
            ),
            inline_policies={
                "FlowLogsDeliveryRolePolicy": iam.PolicyDocument(
                    statements=[
                        iam.PolicyStatement(
                            effect=iam.Effect.ALLOW,
                            actions=[
                                "logs:CreateLogStream",
                                "logs:PutLogEvents",
                                "logs:DescribeLogGroups",
                                "logs:DescribeLogStreams",
                            ],
                            resources=[
                                flow_logs_log_group.log_group_arn,
                                f"{flow_logs_log_group.log_group_arn}:*",
                            ],
                        ),
                    ],
                ),
            },
        )

        self.flow_logs = ec2.FlowLog(
            self,
            "VpcFlowLogs",
            resource_type=ec2.FlowLogResourceType.from_vpc(self._vpc),
            destination=ec2.FlowLogDestination.to_cloud_watch_logs(
                flow_logs_log_group,
                self.flow_logs_role,
            ),
            traffic_type=ec2.FlowLogTrafficType.ALL,
        )

    def _create_endpoints_security_group(self) -> None:
        """Security group for interface endpoints: HTTPS from the VPC only."""
        self.endpoints_security_group = ec2.SecurityGroup(
            self,
            "VpcEndpointsSecurityGroup",
            vpc=self._vpc,
            description="Security group for VPC endpoints - tenant management",
            allow_all_outbound=False,
        )
        self.endpoints_security_group.add_ingress_rule(
            peer=ec2.Peer.ipv4(self._vpc.vpc_cidr_block),
            connection=ec2.Port.tcp(443),
            description="HTTPS from VPC CIDR to AWS service endpoints",
        )

    def _create_gateway_endpoints(self) -> None:
        """Create the S3 gateway endpoint for every isolated route table.

        ECR stores image layers in S3, so image pulls depend on this route.
        """
        s3_endpoint = self._vpc.add_gateway_endpoint(
            "S3Endpoint",
            service=ec2.GatewayVpcEndpointAwsService.S3,
            subnets=[ec2.SubnetSelection(subnet_type=ec2.SubnetType.PRIVATE_ISOLATED)],
        )
        apply_tags(
            s3_endpoint,
            {
                "Name": self.config.resource_name("s3-endpoint"),
                "Service": "S3",
                "Type": "Gateway",
            },
        )
        self.gateway_endpoints = {"s3": s3_endpoint}

    def _create_interface_endpoints(self) -> None:
        """Create the interface endpoints in the endpoint subnet group."""
        self.interface_endpoints = {}

        for endpoint_id, service_config in self._get_interface_services_config().items():
            endpoint = self._vpc.add_interface_endpoint(
                endpoint_id,
                service=service_config["service"],
                subnets=ec2.SubnetSelection(subnet_group_name=ENDPOINT_SUBNET_GROUP),
                security_groups=[self.endpoints_security_group],
                private_dns_enabled=True,
                open=False,
            )
            apply_tags(
                endpoint,
                {
                    "Name": f"{service_config['display_name']} VPC Endpoint",
                    "Service": service_config["display_name"],
                    "Type": "Interface",
                },
            )
            self.interface_endpoints[service_config["key"]] = endpoint

        logger.info(
            "Declared interface endpoints %s in %s",
            sorted(self.interface_endpoints),
            self.stack_name,
        )

    @staticmethod
    def _get_interface_services_config() -> dict[str, dict[str, Any]]:
        """Interface endpoints required by a Fargate task without internet access.

        Returns:
            Mapping of construct id to endpoint service configuration.
        """
        return {
            "SecretsManagerEndpoint": {
                "key": "secretsmanager",
                "service": ec2.InterfaceVpcEndpointAwsService.SECRETS_MANAGER,
                "display_name": "Secrets Manager",
            },
            "SSMEndpoint": {
                "key": "ssm",
                "service": ec2.InterfaceVpcEndpointAwsService.SSM,
                "display_name": "Systems Manager",
            },
            "ECREndpoint": {
                "key": "ecr-api",
                "service": ec2.InterfaceVpcEndpointAwsService.ECR,
                "display_name": "ECR API",
            },
            "ECRDockerEndpoint": {
                "key": "ecr-dkr",
                "service": ec2.InterfaceVpcEndpointAwsService.ECR_DOCKER,
                "display_name": "ECR Docker",
            },
            "CloudWatchLogsEndpoint": {
                "key": "logs",
                "service": ec2.InterfaceVpcEndpointAwsService.CLOUDWATCH_LOGS,
                "display_name": "CloudWatch Logs",
            },
        }

    def _create_outputs(self) -> None:
        """Export the VPC identifier."""
        self.output_manager.add_output(
            "VpcId",
            self._vpc.vpc_id,
            "VPC ID for the tenant management service",
            "VpcId",
        )

    @property
    def vpc(self) -> ec2.Vpc:
        """The isolated VPC."""
        return self._vpc

    @property
    def workload_subnets(self) -> ec2.SubnetSelection:
        """Subnets for Fargate tasks and the internal load balancer."""
        return ec2.SubnetSelection(subnet_group_name=WORKLOAD_SUBNET_GROUP)

    @property
    def endpoint_subnets(self) -> ec2.SubnetSelection:
        """Subnets holding the interface endpoint network interfaces."""
        return ec2.SubnetSelection(subnet_group_name=ENDPOINT_SUBNET_GROUP)
