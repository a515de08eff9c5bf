"""
Test suite for the tenant management ServiceStack.

Covers the cluster, task definition, internal load balancer, service
deployment settings, target health checks, autoscaling bounds, tags and
outputs.
"""

import pytest
from aws_cdk import App
from aws_cdk.assertions import Match, Template

from tenant_infra.config import DeploymentConfig
from tenant_infra.constants import MAX_CAPACITY
from tenant_infra.network import NetworkStack
from tenant_infra.service import ServiceStack
from tenant_infra.service.constants import LOG_STREAM_PREFIX


def _build_service_stack(aws_environment, **config_values) -> ServiceStack:
    app = App()
    config = DeploymentConfig(**config_values)
    network = NetworkStack(app, "TestNetwork", config=config, env=aws_environment)
    return ServiceStack(
        app,
        "TestService",
        config=config,
        vpc=network.vpc,
        workload_subnets=network.workload_subnets,
        env=aws_environment,
    )


@pytest.fixture
def service_stack(aws_environment):
    return _build_service_stack(aws_environment)


@pytest.fixture
def service_template(service_stack):
    return Template.from_stack(service_stack)


class TestServiceStackCluster:
    def test_cluster_created(self, service_template):
        service_template.resource_count_is("AWS::ECS::Cluster", 1)
        service_template.has_resource_properties(
            "AWS::ECS::Cluster",
            {"ClusterName": "tenant-mgmt-cluster-dev"},
        )

    def test_container_insights_enabled(self, service_template):
        service_template.has_resource_properties(
            "AWS::ECS::Cluster",
            {
                "ClusterSettings": Match.array_with(
                    [
                        Match.object_like(
                            {"Name": "containerInsights", "Value": "enabled"},
                        ),
                    ],
                ),
            },
        )


class TestServiceStackSecurityGroup:
    def test_http_only_from_vpc(self, service_template):
        service_template.has_resource_properties(
            "AWS::EC2::SecurityGroup",
            {
                "GroupDescription": "Security group for tenant management service",
                "SecurityGroupIngress": [
                    Match.object_like(
                        {
                            "IpProtocol": "tcp",
                            "FromPort": 80,
                            "ToPort": 80,
                            "CidrIp": {"Fn::ImportValue": Match.any_value()},
                        },
                    ),
                ],
            },
        )

    def test_no_world_open_ingress(self, service_template):
        for group in service_template.find_resources("AWS::EC2::SecurityGroup").values():
            for rule in group["Properties"].get("SecurityGroupIngress", []):
                assert rule.get("CidrIp") != "0.0.0.0/0"


class TestServiceStackTaskDefinition:
    def test_task_size(self, service_template):
        service_template.has_resource_properties(
            "AWS::ECS::TaskDefinition",
            {
                "Cpu": "256",
                "Memory": "512",
                "NetworkMode": "awsvpc",
                "RequiresCompatibilities": ["FARGATE"],
                "Family": "tenant-mgmt-service-dev",
            },
        )

    def test_custom_task_size(self, aws_environment):
        template = Template.from_stack(
            _build_service_stack(aws_environment, cpu=1024, memory=4096),
        )
        template.has_resource_properties(
            "AWS::ECS::TaskDefinition",
            {"Cpu": "1024", "Memory": "4096"},
        )

    def test_container_definition(self, service_template):
        service_template.has_resource_properties(
            "AWS::ECS::TaskDefinition",
            {
                "ContainerDefinitions": [
                    Match.object_like(
                        {
                            "Image": "public.ecr.aws/docker/library/nginx:stable",
                            "PortMappings": [
                                Match.object_like({"ContainerPort": 80, "Protocol": "tcp"}),
                            ],
                            "Environment": Match.array_with(
                                [
                                    {"Name": "ENVIRONMENT", "Value": "dev"},
                                    {"Name": "AWS_REGION", "Value": "us-east-1"},
                                ],
                            ),
                            "LogConfiguration": {
                                "LogDriver": "awslogs",
                                "Options": Match.object_like(
                                    {"awslogs-stream-prefix": LOG_STREAM_PREFIX},
                                ),
                            },
                        },
                    ),
                ],
            },
        )

    def test_container_health_check(self, service_template):
        service_template.has_resource_properties(
            "AWS::ECS::TaskDefinition",
            {
                "ContainerDefinitions": [
                    Match.object_like(
                        {
                            "HealthCheck": {
                                "Command": [
                                    "CMD-SHELL",
                                    "curl -f http://localhost:80/ || exit 1",
                                ],
                                "Interval": 30,
                                "Timeout": 5,
                                "Retries": 3,
                                "StartPeriod": 60,
                            },
                        },
                    ),
                ],
            },
        )

    def test_log_group(self, service_template):
        service_template.has_resource_properties(
            "AWS::Logs::LogGroup",
            {"LogGroupName": "/aws/ecs/tenant-mgmt-dev", "RetentionInDays": 30},
        )

    def test_execution_and_task_roles_only(self, service_template):
        service_template.resource_count_is("AWS::IAM::Role", 2)


class TestServiceStackLoadBalancer:
    def test_load_balancer_is_internal(self, service_template):
        service_template.resource_count_is("AWS::ElasticLoadBalancingV2::LoadBalancer", 1)
        service_template.has_resource_properties(
            "AWS::ElasticLoadBalancingV2::LoadBalancer",
            {"Scheme": "internal", "Type": "application"},
        )

    def test_listener_on_http(self, service_template):
        service_template.has_resource_properties(
            "AWS::ElasticLoadBalancingV2::Listener",
            {"Port": 80, "Protocol": "HTTP"},
        )

    def test_target_group_health_check(self, service_template):
        service_template.has_resource_properties(
            "AWS::ElasticLoadBalancingV2::TargetGroup",
            {
                "HealthCheckPath": "/",
                "HealthCheckIntervalSeconds": 30,
                "HealthCheckTimeoutSeconds": 5,
                "HealthyThresholdCount": 2,
                "UnhealthyThresholdCount": 3,
                "TargetType": "ip",
            },
        )


class TestServiceStackService:
    def test_single_service(self, service_template):
        service_template.resource_count_is("AWS::ECS::Service", 1)

    def test_service_deployment(self, service_template):
        service_template.has_resource_properties(
            "AWS::ECS::Service",
            {
                "DesiredCount": 2,
                "HealthCheckGracePeriodSeconds": 60,
                "DeploymentConfiguration": Match.object_like(
                    {
                        "DeploymentCircuitBreaker": {"Enable": True, "Rollback": True},
                        "MaximumPercent": 200,
                        "MinimumHealthyPercent": 100,
                    },
                ),
                "NetworkConfiguration": {
                    "AwsvpcConfiguration": Match.object_like({"AssignPublicIp": "DISABLED"}),
                },
            },
        )

    def test_service_tag(self, service_template):
        service_template.has_resource_properties(
            "AWS::ECS::Service",
            {
                "Tags": Match.array_with(
                    [{"Key": "Service", "Value": "tenant-management"}],
                ),
            },
        )


class TestServiceStackAutoScaling:
    @pytest.mark.parametrize("desired_count", range(1, MAX_CAPACITY + 1))
    def test_scaling_bounds_follow_desired_count(self, aws_environment, desired_count):
        template = Template.from_stack(
            _build_service_stack(aws_environment, desired_count=desired_count),
        )

        template.has_resource_properties(
            "AWS::ECS::Service",
            {"DesiredCount": desired_count},
        )
        template.has_resource_properties(
            "AWS::ApplicationAutoScaling::ScalableTarget",
            {"MinCapacity": desired_count, "MaxCapacity": MAX_CAPACITY},
        )

    @pytest.mark.parametrize(
        "metric_type",
        ["ECSServiceAverageCPUUtilization", "ECSServiceAverageMemoryUtilization"],
    )
    def test_target_tracking_policies(self, service_template, metric_type):
        service_template.has_resource_properties(
            "AWS::ApplicationAutoScaling::ScalingPolicy",
            {
                "PolicyType": "TargetTrackingScaling",
                "TargetTrackingScalingPolicyConfiguration": {
                    "PredefinedMetricSpecification": {"PredefinedMetricType": metric_type},
                    "TargetValue": 70,
                    "ScaleInCooldown": 60,
                    "ScaleOutCooldown": 60,
                },
            },
        )


class TestServiceStackOutputs:
    def test_load_balancer_dns_exported(self, service_template):
        service_template.has_output(
            "LoadBalancerDNS",
            {
                "Description": "Internal ALB DNS",
                "Export": {"Name": "TenantMgmt-dev-LoadBalancerDNS"},
            },
        )

    def test_cluster_name_exported(self, service_template):
        service_template.has_output(
            "ClusterName",
            {
                "Description": "ECS Cluster name",
                "Export": {"Name": "TenantMgmt-dev-ClusterName"},
            },
        )

    def test_getters(self, service_stack):
        assert service_stack.get_cluster_name() == service_stack.cluster.cluster_name
        assert service_stack.get_load_balancer_dns_name() == (
            service_stack.load_balancer.load_balancer_dns_name
        )
