"""Builders shared by the tenant management stacks."""

from .iam_statements import ScopedPolicyStatements, region_scoped_statement
from .outputs import OutputManager
from .utils import apply_tags

__all__ = [
    "OutputManager",
    "ScopedPolicyStatements",
    "apply_tags",
    "region_scoped_statement",
]
