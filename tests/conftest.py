import os

import aws_cdk as cdk
import pytest

from config.base_config import AwsConfig, InfrastructureConfig, ProtectorConfig
from config.loader import Context, InfrastructureContext
from tests.fakes import TEST_ACCOUNT, TEST_REGION, FakeHandle

# boto3 clients are created when the Lambda module is imported
os.environ.setdefault("AWS_DEFAULT_REGION", "eu-west-1")


@pytest.fixture
def fake_handle():
    return FakeHandle()


@pytest.fixture
def mock_infra_context():
    """Provides a prd-like configuration: destroy is not allowed."""
    return InfrastructureContext(
        config=InfrastructureConfig(
            aws=AwsConfig(account=TEST_ACCOUNT, region=TEST_REGION),
            protector=ProtectorConfig(),
        ),
        context=Context(env_name="prd", tenant_name="tenant-test"),
    )


@pytest.fixture
def app():
    """Provides a CDK App instance."""
    return cdk.App()


@pytest.fixture
def stack(app):
    """A stack with a concrete environment, so names can be generated."""
    return cdk.Stack(
        app,
        "TestStack",
        env=cdk.Environment(account=TEST_ACCOUNT, region=TEST_REGION),
    )


@pytest.fixture
def agnostic_stack(app):
    """A stack without environment: account and region stay tokens."""
    return cdk.Stack(app, "AgnosticStack")
