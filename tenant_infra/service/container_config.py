"""Container settings for the tenant management task definition."""

from dataclasses import dataclass

from aws_cdk import aws_ecs as ecs

from .constants import (
    CONTAINER_PORT,
    HEALTH_CHECK_INTERVAL,
    HEALTH_CHECK_PATH,
    HEALTH_CHECK_RETRIES,
    HEALTH_CHECK_START_PERIOD,
    HEALTH_CHECK_TIMEOUT,
)


@dataclass(frozen=True)
class EnvironmentVariable:
    """Environment variable configuration for containers.

    Attributes:
        name: Environment variable name.
        value: Environment variable value.
    """

    name: str
    value: str


@dataclass(frozen=True)
class ContainerConfiguration:
    """Application container settings.

    Attributes:
        image: Registry reference of the application image.
        env_name: Environment name exposed to the application.
        port: Port the application listens on.
        health_check_path: Path probed by the container health check.
    """

    image: str
    env_name: str
    port: int = CONTAINER_PORT
    health_check_path: str = HEALTH_CHECK_PATH

    def get_environment_variables(self, region: str) -> list[EnvironmentVariable]:
        """Environment variables for the application container.

        Args:
            region: Region the stack deploys to.

        Returns:
            List of environment variables.
        """
        return [
            EnvironmentVariable("ENVIRONMENT", self.env_name),
            EnvironmentVariable("AWS_REGION", region),
        ]

    def get_port_mappings(self) -> list[ecs.PortMapping]:
        return [ecs.PortMapping(container_port=self.port)]

    def get_health_check_config(self) -> ecs.HealthCheck:
        """Shell health probe against the application port."""
        return ecs.HealthCheck(
            command=[
                "CMD-SHELL",
                f"curl -f http://localhost:{self.port}{self.health_check_path} || exit 1",
            ],
            interval=HEALTH_CHECK_INTERVAL,
            timeout=HEALTH_CHECK_TIMEOUT,
            retries=HEALTH_CHECK_RETRIES,
            start_period=HEALTH_CHECK_START_PERIOD,
        )
