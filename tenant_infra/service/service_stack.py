"""ECS cluster and Fargate service for the tenant management workload.

This module creates the workload infrastructure: security group, cluster,
log group, task identities, task definition, the internal load-balanced
Fargate service and its autoscaling policy. The service is reachable only
from inside the VPC.
"""

import logging
from typing import Any

import cdk_nag
from aws_cdk import Aspects, RemovalPolicy, Stack
from aws_cdk import aws_ec2 as ec2
from aws_cdk import aws_ecs as ecs
from aws_cdk import aws_ecs_patterns as ecs_patterns
from aws_cdk import aws_elasticloadbalancingv2 as elbv2
from aws_cdk import aws_logs as logs
from cdk_nag import NagSuppressions
from constructs import Construct

from tenant_infra.common import OutputManager, apply_tags
from tenant_infra.config import DeploymentConfig
from tenant_infra.constants import MAX_CAPACITY, SERVICE_TAG_VALUE
from tenant_infra.identity import WorkloadIdentity
from tenant_infra.network import WORKLOAD_SUBNET_GROUP

from .constants import (
    CONTAINER_PORT,
    HEALTH_CHECK_GRACE_PERIOD,
    HEALTH_CHECK_INTERVAL,
    HEALTH_CHECK_PATH,
    HEALTH_CHECK_TIMEOUT,
    HEALTHY_THRESHOLD_COUNT,
    LISTENER_PORT,
    LOG_RETENTION_DAYS,
    LOG_STREAM_PREFIX,
    SCALING_COOLDOWN,
    SCALING_TARGET_UTILIZATION_PERCENT,
    UNHEALTHY_THRESHOLD_COUNT,
)
from .container_config import ContainerConfiguration

logger = logging.getLogger(__name__)


class ServiceStack(Stack):
    """Fargate service for the tenant management workload.

    Attributes:
        config: Deployment configuration the stack was built from.
        vpc: VPC the service is placed in.
        service_security_group: Security group attached to the tasks.
        cluster: ECS cluster.
        log_group: CloudWatch log group for container logs.
        identity: Execution and task roles.
        task_definition: Fargate task definition.
        container: Application container definition.
        load_balancer: Internal application load balancer.
        fargate_service: Load-balanced service pattern.
        service: The ECS service.
        target_group: Target group the service is registered with.
        scaling: Scalable task count of the service.
        output_manager: Manager for consistent output creation.
    """

    vpc: ec2.IVpc
    service_security_group: ec2.SecurityGroup
    cluster: ecs.Cluster
    log_group: logs.LogGroup
    identity: WorkloadIdentity
    task_definition: ecs.FargateTaskDefinition
    container: ecs.ContainerDefinition
    load_balancer: elbv2.ApplicationLoadBalancer
    fargate_service: ecs_patterns.ApplicationLoadBalancedFargateService
    service: ecs.FargateService
    target_group: elbv2.ApplicationTargetGroup
    scaling: ecs.ScalableTaskCount
    output_manager: OutputManager

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: DeploymentConfig,
        vpc: ec2.IVpc,
        workload_subnets: ec2.SubnetSelection | None = None,
        **kwargs: Any,
    ) -> None:
        """Initialize the service stack.

        Args:
            scope: CDK construct scope for resource creation.
            construct_id: Unique identifier for this stack.
            config: Deployment configuration (replica count, CPU, memory).
            vpc: VPC produced by the network unit.
            workload_subnets: Subnets for tasks and the load balancer.
                Defaults to the ``Isolated-1`` subnet group.
            **kwargs: Additional arguments passed to parent Stack.
        """
        super().__init__(scope, construct_id, **kwargs)

        self.config = config
        self.vpc = vpc
        self.workload_subnets = workload_subnets or ec2.SubnetSelection(
            subnet_group_name=WORKLOAD_SUBNET_GROUP,
        )
        self.container_config = ContainerConfiguration(
            image=config.container_image,
            env_name=config.env_name,
        )
        self.output_manager = OutputManager(self, config.env_name)

        self._create_security_group()
        self._create_cluster()
        self._create_log_group()
        self._create_identity()
        self._create_task_definition()
        self._create_load_balancer()
        self._create_load_balanced_service()
        self._configure_target_health_check()
        self._configure_auto_scaling()
        self._create_outputs()
        self._configure_security_checks()

        apply_tags(self, {"Stack": "Service"})
        apply_tags(self.service, {"Service": SERVICE_TAG_VALUE})

    def _configure_security_checks(self) -> None:
        """Run the AWS Solutions rule pack and record accepted findings."""
        Aspects.of(self).add(cdk_nag.AwsSolutionsChecks())
        NagSuppressions.add_stack_suppressions(
            stack=self,
            suppressions=[
                {
                    "id": "AwsSolutions-IAM4",
                    "reason": "The execution role uses the AWS managed ECS task execution policy.",
                },
                {
                    "id": "AwsSolutions-IAM5",
                    "reason": "Task role grants are limited to secret, parameter and log group name prefixes.",
                },
                {
                    "id": "AwsSolutions-ECS2",
                    "reason": "Only the environment name and region are passed as plain environment variables.",
                },
                {
                    "id": "AwsSolutions-ELB2",
                    "reason": "Internal load balancer; access logs are not collected for this service.",
                },
                {
                    "id": "AwsSolutions-EC23",
                    "reason": "Ingress is limited to the VPC CIDR, which is imported from the network stack.",
                },
                {
                    "id": "CdkNagValidationFailure",
                    "reason": "Security group rules reference the VPC CIDR through an intrinsic function.",
                },
            ],
        )

    def _create_security_group(self) -> None:
        """Security group for tasks: HTTP from inside the VPC only."""
        self.service_security_group = ec2.SecurityGroup(
            self,
            "ServiceSecurityGroup",
            vpc=self.vpc,
            description="Security group for tenant management service",
            allow_all_outbound=True,
        )
        self.service_security_group.add_ingress_rule(
            peer=ec2.Peer.ipv4(self.vpc.vpc_cidr_block),
            connection=ec2.Port.tcp(CONTAINER_PORT),
            description="Allow HTTP from within VPC",
        )

    def _create_cluster(self) -> None:
        self.cluster = ecs.Cluster(
            self,
            "Cluster",
            cluster_name=self.config.resource_name("cluster"),
            vpc=self.vpc,
            container_insights_v2=ecs.ContainerInsights.ENABLED,
        )

    def _create_log_group(self) -> None:
        """Log group whose name falls under the task role's log statement."""
        self.log_group = logs.LogGroup(
            self,
            "AppLogs",
            log_group_name=self.config.log_group_name,
            retention=LOG_RETENTION_DAYS,
            removal_policy=RemovalPolicy.DESTROY,
        )

    def _create_identity(self) -> None:
        self.identity = WorkloadIdentity(self, "Identity")

    def _create_task_definition(self) -> None:
        """Create the task definition and the application container.

        CPU and memory come from the validated configuration, so the pair is
        always one Fargate accepts.
        """
        self.task_definition = ecs.FargateTaskDefinition(
            self,
            "TaskDef",
            family=self.config.resource_name("service"),
            cpu=self.config.cpu,
            memory_limit_mib=self.config.memory,
            task_role=self.identity.task_role,
            execution_role=self.identity.execution_role,
            runtime_platform=ecs.RuntimePlatform(
                cpu_architecture=ecs.CpuArchitecture.X86_64,
                operating_system_family=ecs.OperatingSystemFamily.LINUX,
            ),
        )

        environment_variables = self.container_config.get_environment_variables(
            self.region,
        )

        self.container = self.task_definition.add_container(
            "App",
            image=ecs.ContainerImage.from_registry(self.container_config.image),
            port_mappings=self.container_config.get_port_mappings(),
            logging=ecs.LogDrivers.aws_logs(
                stream_prefix=LOG_STREAM_PREFIX,
                log_group=self.log_group,
            ),
            environment={env.name: env.value for env in environment_variables},
            health_check=self.container_config.get_health_check_config(),
        )

    def _create_load_balancer(self) -> None:
        """Internal ALB in the workload subnets, reachable from the VPC only.

        The endpoint subnet group is /28, too small for a load balancer, so
        the subnets are selected explicitly.
        """
        self.load_balancer = elbv2.ApplicationLoadBalancer(
            self,
            "LoadBalancer",
            vpc=self.vpc,
            internet_facing=False,
            vpc_subnets=self.workload_subnets,
        )
        self.load_balancer.connections.allow_from(
            ec2.Peer.ipv4(self.vpc.vpc_cidr_block),
            ec2.Port.tcp(LISTENER_PORT),
            "HTTP to the internal load balancer from within VPC",
        )

    def _create_load_balanced_service(self) -> None:
        self.fargate_service = ecs_patterns.ApplicationLoadBalancedFargateService(
            self,
            "Service",
            cluster=self.cluster,
            task_definition=self.task_definition,
            load_balancer=self.load_balancer,
            public_load_balancer=False,
            open_listener=False,
            listener_port=LISTENER_PORT,
            desired_count=self.config.desired_count,
            assign_public_ip=False,
            task_subnets=self.workload_subnets,
            security_groups=[self.service_security_group],
            health_check_grace_period=HEALTH_CHECK_GRACE_PERIOD,
            circuit_breaker=ecs.DeploymentCircuitBreaker(enable=True, rollback=True),
            min_healthy_percent=100,
            max_healthy_percent=200,
        )
        self.service = self.fargate_service.service
        self.target_group = self.fargate_service.target_group

    def _configure_target_health_check(self) -> None:
        self.target_group.configure_health_check(
            path=HEALTH_CHECK_PATH,
            interval=HEALTH_CHECK_INTERVAL,
            timeout=HEALTH_CHECK_TIMEOUT,
            healthy_threshold_count=HEALTHY_THRESHOLD_COUNT,
            unhealthy_threshold_count=UNHEALTHY_THRESHOLD_COUNT,
        )

    def _configure_auto_scaling(self) -> None:
        """Target tracking on CPU and memory between desired count and the cap."""
        self.scaling = self.service.auto_scale_task_count(
            min_capacity=self.config.desired_count,
            max_capacity=MAX_CAPACITY,
        )
        self.scaling.scale_on_cpu_utilization(
            "CpuScaling",
            target_utilization_percent=SCALING_TARGET_UTILIZATION_PERCENT,
            scale_in_cooldown=SCALING_COOLDOWN,
            scale_out_cooldown=SCALING_COOLDOWN,
        )
        self.scaling.scale_on_memory_utilization(
            "MemoryScaling",
            target_utilization_percent=SCALING_TARGET_UTILIZATION_PERCENT,
            scale_in_cooldown=SCALING_COOLDOWN,
            scale_out_cooldown=SCALING_COOLDOWN,
        )
        logger.info(
            "Service %s scales between %d and %d tasks",
            self.config.resource_name("service"),
            self.config.desired_count,
            MAX_CAPACITY,
        )

    def _create_outputs(self) -> None:
        self.output_manager.add_output(
            "LoadBalancerDNS",
            self.load_balancer.load_balancer_dns_name,
            "Internal ALB DNS",
            "LoadBalancerDNS",
        )
        self.output_manager.add_output(
            "ClusterName",
            self.cluster.cluster_name,
            "ECS Cluster name",
            "ClusterName",
        )

    def get_cluster_name(self) -> str:
        return self.cluster.cluster_name

    def get_load_balancer_dns_name(self) -> str:
        return self.load_balancer.load_balancer_dns_name
