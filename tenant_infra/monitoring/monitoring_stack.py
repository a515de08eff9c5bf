"""Monitoring and alerting for the tenant management service.

This module provides threshold alarms on the service's CPU and memory and
on the internal load balancer's latency and 5xx count, an SNS topic the
alarms notify, and a CloudWatch dashboard.
"""

import logging
from typing import Any

import cdk_nag
from aws_cdk import Aspects, RemovalPolicy, Stack
from aws_cdk import aws_cloudwatch as cloudwatch
from aws_cdk import aws_cloudwatch_actions as cloudwatch_actions
from aws_cdk import aws_ecs as ecs
from aws_cdk import aws_elasticloadbalancingv2 as elbv2
from aws_cdk import aws_iam as iam
from aws_cdk import aws_kms as kms
from aws_cdk import aws_sns as sns
from aws_cdk import aws_sns_subscriptions as subscriptions
from constructs import Construct

from tenant_infra.common import OutputManager, apply_tags
from tenant_infra.config import DeploymentConfig

logger = logging.getLogger(__name__)

UTILIZATION_THRESHOLD_PERCENT = 80
RESPONSE_TIME_THRESHOLD_SECONDS = 2
HTTP_5XX_THRESHOLD = 10


class MonitoringStack(Stack):
    """Alarms, notification channel and dashboard for the workload.

    Attributes:
        alert_topic: SNS topic every alarm notifies.
        cpu_alarm: Service CPU utilization alarm.
        memory_alarm: Service memory utilization alarm.
        response_time_alarm: Load balancer target response time alarm.
        http_5xx_alarm: Load balancer 5xx count alarm.
        dashboard: CloudWatch dashboard.
        output_manager: Manager for consistent output creation.
    """

    alert_topic: sns.Topic
    cpu_alarm: cloudwatch.Alarm
    memory_alarm: cloudwatch.Alarm
    response_time_alarm: cloudwatch.Alarm
    http_5xx_alarm: cloudwatch.Alarm
    dashboard: cloudwatch.Dashboard
    output_manager: OutputManager

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: DeploymentConfig,
        cluster: ecs.ICluster,
        service: ecs.BaseService,
        load_balancer: elbv2.ApplicationLoadBalancer,
        **kwargs: Any,
    ) -> None:
        """Initialize monitoring stack with alarms and dashboard.

        Args:
            scope: CDK construct scope for resource creation.
            construct_id: Unique identifier for this stack.
            config: Deployment configuration (environment name, alarm email).
            cluster: ECS cluster running the service.
            service: ECS service whose utilization is watched.
            load_balancer: Load balancer in front of the service.
            **kwargs: Additional arguments passed to parent Stack.
        """
        super().__init__(scope, construct_id, **kwargs)

        self.config = config
        self.cluster = cluster
        self.service = service
        self.load_balancer = load_balancer
        self.output_manager = OutputManager(self, config.env_name)

        self._create_alert_topic()
        self._create_alarms()
        self._create_dashboard()
        self._create_outputs()

        Aspects.of(self).add(cdk_nag.AwsSolutionsChecks())
        apply_tags(self, {"Stack": "Monitoring"})

    def _create_alert_topic(self) -> None:
        """Create the encrypted SNS topic and the optional e-mail subscription."""
        alert_key = kms.Key(
            self,
            "AlarmTopicKey",
            enable_key_rotation=True,
            alias=f"alias/{self.config.resource_name('alarms')}",
            description="KMS key for tenant management alarm topic encryption",
        )
        alert_key.apply_removal_policy(RemovalPolicy.RETAIN)
        # CloudWatch publishes to the encrypted topic on alarm state changes.
        alert_key.grant_encrypt_decrypt(iam.ServicePrincipal("cloudwatch.amazonaws.com"))

        self.alert_topic = sns.Topic(
            self,
            "AlarmTopic",
            topic_name=self.config.resource_name("alarms"),
            display_name="Tenant management alarms",
            master_key=alert_key,
            enforce_ssl=True,
        )

        if self.config.alarm_email:
            self.alert_topic.add_subscription(
                subscriptions.EmailSubscription(str(self.config.alarm_email)),
            )
            logger.info("Alarm notifications subscribed for %s", self.config.alarm_email)
        else:
            logger.info("No alarm e-mail configured; topic has no subscriptions")

    def _create_alarm(
        self,
        construct_id: str,
        name: str,
        description: str,
        metric: cloudwatch.IMetric,
        threshold: float,
        evaluation_periods: int,
    ) -> cloudwatch.Alarm:
        """Create one threshold alarm that notifies the alert topic."""
        alarm = cloudwatch.Alarm(
            self,
            construct_id,
            alarm_name=self.config.resource_name(name),
            alarm_description=description,
            metric=metric,
            threshold=threshold,
            comparison_operator=cloudwatch.ComparisonOperator.GREATER_THAN_THRESHOLD,
            evaluation_periods=evaluation_periods,
            datapoints_to_alarm=1,
            actions_enabled=True,
        )
        alarm.add_alarm_action(cloudwatch_actions.SnsAction(self.alert_topic))
        return alarm

    def _create_alarms(self) -> None:
        lb_metrics = self.load_balancer.metrics

        self.cpu_alarm = self._create_alarm(
            "HighCPUAlarm",
            "high-cpu",
            "ECS Service CPU utilization is too high",
            self.service.metric_cpu_utilization(),
            UTILIZATION_THRESHOLD_PERCENT,
            evaluation_periods=2,
        )
        self.memory_alarm = self._create_alarm(
            "HighMemoryAlarm",
            "high-memory",
            "ECS Service memory utilization is too high",
            self.service.metric_memory_utilization(),
            UTILIZATION_THRESHOLD_PERCENT,
            evaluation_periods=2,
        )
        self.response_time_alarm = self._create_alarm(
            "HighALBResponseTime",
            "high-alb-response",
            "ALB target response time is too high",
            lb_metrics.target_response_time(),
            RESPONSE_TIME_THRESHOLD_SECONDS,
            evaluation_periods=2,
        )
        self.http_5xx_alarm = self._create_alarm(
            "HTTP5xxAlarm",
            "http-5xx",
            "High rate of HTTP 5xx errors",
            lb_metrics.http_code_elb(elbv2.HttpCodeElb.ELB_5XX_COUNT),
            HTTP_5XX_THRESHOLD,
            evaluation_periods=1,
        )

    def _create_dashboard(self) -> None:
        """Dashboard with utilization, traffic and status code graphs."""
        lb_metrics = self.load_balancer.metrics

        self.dashboard = cloudwatch.Dashboard(
            self,
            "Dashboard",
            dashboard_name=f"TenantManagement-{self.config.env_name}",
        )
        self.dashboard.add_widgets(
            cloudwatch.GraphWidget(
                title="ECS CPU/Memory Utilization",
                left=[self.service.metric_cpu_utilization()],
                right=[self.service.metric_memory_utilization()],
            ),
            cloudwatch.GraphWidget(
                title="ALB Metrics",
                left=[lb_metrics.request_count()],
                right=[lb_metrics.target_response_time()],
            ),
            cloudwatch.GraphWidget(
                title="HTTP Responses",
                left=[
                    lb_metrics.http_code_target(elbv2.HttpCodeTarget.TARGET_2XX_COUNT),
                    lb_metrics.http_code_target(elbv2.HttpCodeTarget.TARGET_4XX_COUNT),
                    lb_metrics.http_code_target(elbv2.HttpCodeTarget.TARGET_5XX_COUNT),
                ],
            ),
        )

    def _create_outputs(self) -> None:
        self.output_manager.add_output(
            "DashboardName",
            self.dashboard.dashboard_name,
            "CloudWatch dashboard name",
            "DashboardName",
        )
        self.output_manager.add_output(
            "AlertTopicArn",
            self.alert_topic.topic_arn,
            "SNS topic ARN for alarm notifications",
            "AlertTopicArn",
        )

    def get_alert_topic_arn(self) -> str:
        """Get SNS alert topic ARN for notification integration.

        Returns:
            SNS topic ARN for alert delivery.
        """
        return self.alert_topic.topic_arn
