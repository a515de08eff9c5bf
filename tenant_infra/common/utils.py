"""Small helpers used across the tenant management stacks."""

import logging

from aws_cdk import Tags
from constructs import IConstruct

logger = logging.getLogger(__name__)


def apply_tags(scope: IConstruct, tags: dict[str, str]) -> None:
    """Apply every tag in ``tags`` to ``scope`` and its children.

    Args:
        scope: Construct (stack or resource) to tag.
        tags: Mapping of tag key to tag value.
    """
    for key, value in tags.items():
        Tags.of(scope).add(key, value)
    logger.debug("Tagged %s with %s", scope.node.path, sorted(tags))
