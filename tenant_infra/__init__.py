"""AWS CDK infrastructure for the tenant management service.

Four units are composed by the entry point in :mod:`tenant_infra.app`:
network, workload (with its inline identities), and observability.
"""

__version__ = "0.1.0"
