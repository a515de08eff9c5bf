"""Tests for the region-scoped policy statement builders."""

import pytest

from tenant_infra.common import ScopedPolicyStatements, region_scoped_statement

REGION = "us-east-1"
ACCOUNT = "123456789012"


class TestRegionScopedStatement:
    def test_statement_is_region_gated(self):
        statement = region_scoped_statement(
            actions=["ssm:GetParameter"],
            resources=[f"arn:aws:ssm:{REGION}:{ACCOUNT}:parameter/app/*"],
            region=REGION,
        )

        rendered = statement.to_statement_json()
        assert rendered["Effect"] == "Allow"
        assert rendered["Condition"] == {"StringEquals": {"aws:RequestedRegion": REGION}}

    def test_wildcard_resource_rejected(self):
        with pytest.raises(ValueError, match="Wildcard resource"):
            region_scoped_statement(["s3:GetObject"], ["*"], REGION)

    def test_empty_resources_rejected(self):
        with pytest.raises(ValueError, match="At least one resource"):
            region_scoped_statement(["s3:GetObject"], [], REGION)


class TestScopedPolicyStatements:
    def test_secrets_access_prefixes(self):
        rendered = ScopedPolicyStatements.secrets_access(
            REGION,
            ACCOUNT,
            ("tenant-", "app-"),
        ).to_statement_json()

        assert sorted(rendered["Resource"]) == sorted(
            [
                f"arn:aws:secretsmanager:{REGION}:{ACCOUNT}:secret:tenant-*",
                f"arn:aws:secretsmanager:{REGION}:{ACCOUNT}:secret:app-*",
            ],
        )
        assert "secretsmanager:GetSecretValue" in rendered["Action"]
        assert "secretsmanager:TagResource" in rendered["Action"]

    def test_parameters_access_paths(self):
        rendered = ScopedPolicyStatements.parameters_access(
            REGION,
            ACCOUNT,
            ("tenant/", "app/"),
        ).to_statement_json()

        assert sorted(rendered["Resource"]) == sorted(
            [
                f"arn:aws:ssm:{REGION}:{ACCOUNT}:parameter/tenant/*",
                f"arn:aws:ssm:{REGION}:{ACCOUNT}:parameter/app/*",
            ],
        )
        assert "ssm:GetParametersByPath" in rendered["Action"]

    def test_log_delivery_pattern(self):
        rendered = ScopedPolicyStatements.log_delivery(
            REGION,
            ACCOUNT,
            "/aws/ecs/tenant-mgmt-*",
        ).to_statement_json()

        assert sorted(rendered["Resource"]) == sorted(
            [
                f"arn:aws:logs:{REGION}:{ACCOUNT}:log-group:/aws/ecs/tenant-mgmt-*",
                f"arn:aws:logs:{REGION}:{ACCOUNT}:log-group:/aws/ecs/tenant-mgmt-*:*",
            ],
        )
        assert rendered["Condition"] == {"StringEquals": {"aws:RequestedRegion": REGION}}
