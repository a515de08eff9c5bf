"""Output manager for the tenant management stacks.

This module provides a class that consistently publishes stack outputs both
as CloudFormation exports and as SSM parameters.
"""

from aws_cdk import CfnOutput
from aws_cdk import aws_ssm as ssm
from constructs import Construct

from tenant_infra.constants import PARAMETER_ROOT


class OutputManager:
    """Consistent management of CloudFormation outputs and SSM Parameters.

    Attributes:
        scope: The construct for which outputs are being managed.
        env_name: Environment name used in export and parameter names.
    """

    def __init__(self, scope: Construct, env_name: str) -> None:
        self.scope = scope
        self.env_name = env_name

    def add_output(
        self,
        id_: str,
        value: str,
        description: str,
        export_name: str,
    ) -> CfnOutput:
        """Creates a CloudFormation output and a matching SSM Parameter.

        Args:
            id_: Logical id of the output; the parameter uses ``{id_}Parameter``.
            value: Value returned by ``aws cloudformation describe-stacks``.
            description: Human readable description of the value.
            export_name: Export suffix; prefixed with the environment so two
                environments can share an account.

        Returns:
            The created output.
        """
        output = CfnOutput(
            self.scope,
            id_,
            value=value,
            export_name=f"TenantMgmt-{self.env_name}-{export_name}",
            description=description,
        )
        ssm.StringParameter(
            self.scope,
            f"{id_}Parameter",
            parameter_name=f"{PARAMETER_ROOT}/{self.env_name}/{export_name}".lower(),
            string_value=value,
            description=description,
        )
        return output
