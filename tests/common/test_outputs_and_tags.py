"""Tests for output publishing and tagging helpers."""

import pytest
from aws_cdk import App, Stack
from aws_cdk import aws_s3 as s3
from aws_cdk.assertions import Match, Template

from tenant_infra.common import OutputManager, apply_tags


@pytest.fixture
def output_template(aws_environment):
    stack = Stack(App(), "OutputsStack", env=aws_environment)
    OutputManager(stack, "dev").add_output(
        "QueueUrl",
        "https://example.com/queue",
        "Queue URL",
        "QueueUrl",
    )
    return Template.from_stack(stack)


class TestOutputManager:
    def test_output_is_exported_per_environment(self, output_template):
        output_template.has_output(
            "QueueUrl",
            {
                "Value": "https://example.com/queue",
                "Description": "Queue URL",
                "Export": {"Name": "TenantMgmt-dev-QueueUrl"},
            },
        )

    def test_output_mirrored_to_parameter(self, output_template):
        output_template.has_resource_properties(
            "AWS::SSM::Parameter",
            {
                "Name": "/tenant-mgmt/dev/queueurl",
                "Type": "String",
                "Value": "https://example.com/queue",
            },
        )


class TestApplyTags:
    def test_tags_applied_to_resources(self, aws_environment):
        stack = Stack(App(), "TaggedStack", env=aws_environment)
        s3.Bucket(stack, "Bucket")

        apply_tags(stack, {"Stack": "Test", "Owner": "platform"})

        Template.from_stack(stack).has_resource_properties(
            "AWS::S3::Bucket",
            {
                "Tags": Match.array_with(
                    [
                        {"Key": "Owner", "Value": "platform"},
                        {"Key": "Stack", "Value": "Test"},
                    ],
                ),
            },
        )
