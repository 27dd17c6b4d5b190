"""
Configuration Management Module

This module defines the configuration structure for the S3 Protector app.
It uses Pydantic for data validation.

Structure:
- AwsConfig: target account and region
- ProtectorConfig: remediation Lambda and removal policy guard settings
- NamingConfig: physical name generation settings

Configurations are loaded from YAML files per tenant and environment.
Example file structure:
```
config/
  └── default/
      ├── dev.yaml
      └── prd.yaml

```
"""

from typing import List

from aws_cdk import RemovalPolicy
from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import AwsRegion, RemovalPolicyName

MAX_BUCKET_NAME_LENGTH = 63

MONITORED_S3_EVENTS = [
    "PutBucketAcl",
    "PutObjectAcl",
    "PutBucketPublicAccessBlock",
    "PutAccountPublicAccessBlock",
]


class AwsConfig(BaseModel):
    """
    Base AWS configuration.

    Attributes:
        account: AWS account ID
        region: AWS deployment region
    """

    account: str = Field(pattern=r"^\d{12}$", description="12-digit AWS account ID")
    region: AwsRegion

    @property
    def region_str(self) -> str:
        """Returns the region as a string."""
        return self.region.value


class ProtectorConfig(BaseModel):
    """
    S3 Protector configuration.

    Attributes:
        allow_destroy: Override flag, lets RemovalPolicy.DESTROY through the guard
        removal_policy: Removal policy applied to the protector custom resource
        lambda_timeout_seconds: Remediation Lambda timeout (default: 5)
        tracing_enabled: Enable X-Ray active tracing on the Lambda
        watch_api_calls: Route CloudTrail S3 API calls to the Lambda
        monitored_events: CloudTrail event names forwarded to the Lambda
    """

    allow_destroy: bool = False
    removal_policy: RemovalPolicyName = RemovalPolicyName.RETAIN
    lambda_timeout_seconds: int = Field(default=5, ge=1, le=900)
    tracing_enabled: bool = True
    watch_api_calls: bool = True
    monitored_events: List[str] = Field(default_factory=lambda: list(MONITORED_S3_EVENTS))

    @property
    def cdk_removal_policy(self) -> RemovalPolicy:
        return self.removal_policy.to_cdk()

    @field_validator("monitored_events")
    @classmethod
    def validate_monitored_events(cls, value: List[str]) -> List[str]:
        unknown = [name for name in value if name not in MONITORED_S3_EVENTS]
        if unknown:
            raise ValueError(
                f"Unsupported monitored events: {', '.join(unknown)}. "
                f"Supported events: {', '.join(MONITORED_S3_EVENTS)}"
            )
        return value

    @model_validator(mode="after")
    def validate_watch_api_calls(self) -> "ProtectorConfig":
        """An EventBridge rule needs at least one event name to match."""
        if self.watch_api_calls and not self.monitored_events:
            raise ValueError("monitored_events cannot be empty when watch_api_calls is enabled")
        return self


class NamingConfig(BaseModel):
    """
    Physical name generation.

    Names are built as <stack prefix><unique id suffix><hash>, lower-cased.

    Attributes:
        stack_part_length: Characters kept from the start of the stack name
        id_part_length: Characters kept from the end of the node unique id
        hash_length: Hex characters of the environment hash
    """

    stack_part_length: int = Field(default=25, ge=1, le=63)
    id_part_length: int = Field(default=24, ge=1, le=63)
    hash_length: int = Field(default=12, ge=4, le=64)

    @model_validator(mode="after")
    def validate_total_length(self) -> "NamingConfig":
        """Generated names are used as S3 bucket names, which allow 63 characters."""
        total = self.stack_part_length + self.id_part_length + self.hash_length
        if total > MAX_BUCKET_NAME_LENGTH:
            raise ValueError(
                f"stack_part_length + id_part_length + hash_length ({total}) "
                f"must be less than or equal to {MAX_BUCKET_NAME_LENGTH}"
            )
        return self


class InfrastructureConfig(BaseModel):
    """
    Complete configuration.

    Example:
        ```yaml
        # config/default/dev.yaml
        aws:
          account: "123456789012"
          region: eu-west-1

        protector:
          allow_destroy: true
          removal_policy: destroy
        ```
    """

    aws: AwsConfig
    protector: ProtectorConfig = ProtectorConfig()
    naming: NamingConfig = NamingConfig()
