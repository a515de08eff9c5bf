"""Naming and sizing constants shared by every tenant management stack."""

from typing import Final

APP_NAME: Final[str] = "TenantMgmt"
RESOURCE_PREFIX: Final[str] = "tenant-mgmt"
SERVICE_TAG_VALUE: Final[str] = "tenant-management"
PARAMETER_ROOT: Final[str] = "/tenant-mgmt"

# Upper bound for the autoscaling policy; desired count is the lower bound.
MAX_CAPACITY: Final[int] = 6

MIN_VPC_PREFIX: Final[int] = 16
MAX_VPC_PREFIX: Final[int] = 22

FARGATE_TASK_SIZES: Final[dict[int, tuple[int, ...]]] = {
    256: (512, 1024, 2048),
    512: tuple(range(1024, 4096 + 1, 1024)),
    1024: tuple(range(2048, 8192 + 1, 1024)),
    2048: tuple(range(4096, 16384 + 1, 1024)),
    4096: tuple(range(8192, 30720 + 1, 1024)),
    8192: tuple(range(16384, 61440 + 1, 4096)),
    16384: tuple(range(32768, 122880 + 1, 8192)),
}
