import pytest
from aws_cdk import RemovalPolicy
from pydantic import ValidationError

from config.base_config import AwsConfig, ProtectorConfig
from config.enums import RemovalPolicyName
from config.loader import ConfigLoader, substitute_variables


def test_protector_config_defaults():
    """Defaults protect: no destroy override, retained custom resource."""
    config = ProtectorConfig()
    assert config.allow_destroy is False
    assert config.removal_policy is RemovalPolicyName.RETAIN
    assert config.cdk_removal_policy == RemovalPolicy.RETAIN
    assert config.lambda_timeout_seconds == 5
    assert config.monitored_events == [
        "PutBucketAcl",
        "PutObjectAcl",
        "PutBucketPublicAccessBlock",
        "PutAccountPublicAccessBlock",
    ]


def test_protector_config_removal_policy_from_string():
    config = ProtectorConfig(removal_policy="snapshot")
    assert config.cdk_removal_policy == RemovalPolicy.SNAPSHOT


def test_protector_config_validation():
    with pytest.raises(ValidationError) as excinfo:
        ProtectorConfig(lambda_timeout_seconds=0)
    assert "greater than or equal to 1" in str(excinfo.value)

    with pytest.raises(ValidationError) as excinfo:
        ProtectorConfig(monitored_events=["DeleteBucket"])
    assert "Unsupported monitored events: DeleteBucket" in str(excinfo.value)

    with pytest.raises(ValidationError) as excinfo:
        ProtectorConfig(monitored_events=[])
    assert "monitored_events cannot be empty" in str(excinfo.value)

    # no rule, no event names needed
    ProtectorConfig(watch_api_calls=False, monitored_events=[])


def test_aws_config_account_validation():
    with pytest.raises(ValidationError):
        AwsConfig(account="1234", region="eu-west-1")
    assert AwsConfig(account="123456789012", region="eu-west-1").region_str == "eu-west-1"


def test_naming_prefix_logic(mock_infra_context):
    assert mock_infra_context.context.kebab_prefix("bucket") == "tenant-test-prd-bucket"
    assert mock_infra_context.context.pascal_prefix("Bucket") == "TenantTestPrdBucket"
    assert mock_infra_context.context.tags["ManagedBy"] == "CDK"


def test_substitute_variables():
    data = {"aws": {"account": "${account_id}"}, "names": ["${tenant}-logs", 3]}
    result = substitute_variables(data, {"account_id": "123456789012", "tenant": "fr"})
    assert result == {"aws": {"account": "123456789012"}, "names": ["fr-logs", 3]}

    with pytest.raises(ValueError, match="is used but not defined"):
        substitute_variables("${missing}", {})


def test_config_loader_reads_yaml(tmp_path):
    tenant_dir = tmp_path / "acme"
    tenant_dir.mkdir()
    (tenant_dir / "stg.yaml").write_text(
        "variables:\n"
        '  account_id: "210987654321"\n'
        '  region: "${home_region}"\n'
        "  home_region: eu-central-1\n"
        "aws:\n"
        '  account: "${account_id}"\n'
        '  region: "${region}"\n'
        "protector:\n"
        "  allow_destroy: true\n"
        "  removal_policy: destroy\n"
    )

    loader = ConfigLoader("stg", "acme", base_path=str(tmp_path))
    infra_context = loader.create_infra_context()

    assert infra_context.config.aws.account == "210987654321"
    assert infra_context.config.aws.region_str == "eu-central-1"
    assert infra_context.config.protector.allow_destroy is True
    assert infra_context.config.protector.cdk_removal_policy == RemovalPolicy.DESTROY
    assert infra_context.context.tenant_name == "acme"
    assert loader.generate_stack_name() == "Acme-Stg-S3Protector"


def test_config_loader_bundled_environments():
    dev = ConfigLoader("dev").create_infra_context()
    prd = ConfigLoader("prd").create_infra_context()

    assert dev.config.protector.allow_destroy is True
    assert prd.config.protector.allow_destroy is False
    assert prd.config.protector.cdk_removal_policy == RemovalPolicy.RETAIN


def test_config_loader_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigLoader("qa", "nobody", base_path=str(tmp_path)).load_environment_config()
