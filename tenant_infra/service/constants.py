"""Configuration constants for the tenant management workload."""

from aws_cdk import Duration
from aws_cdk import aws_logs as logs

CONTAINER_PORT: int = 80
LISTENER_PORT: int = 80
LOG_STREAM_PREFIX: str = "tenant-mgmt-service"
LOG_RETENTION_DAYS: logs.RetentionDays = logs.RetentionDays.ONE_MONTH

# Container health probe
HEALTH_CHECK_PATH: str = "/"
HEALTH_CHECK_INTERVAL: Duration = Duration.seconds(30)
HEALTH_CHECK_TIMEOUT: Duration = Duration.seconds(5)
HEALTH_CHECK_RETRIES: int = 3
HEALTH_CHECK_START_PERIOD: Duration = Duration.seconds(60)

# Load balancer
HEALTH_CHECK_GRACE_PERIOD: Duration = Duration.seconds(60)
HEALTHY_THRESHOLD_COUNT: int = 2
UNHEALTHY_THRESHOLD_COUNT: int = 3

# Autoscaling
SCALING_TARGET_UTILIZATION_PERCENT: int = 70
SCALING_COOLDOWN: Duration = Duration.seconds(60)
