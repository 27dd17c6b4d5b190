from enum import Enum

from aws_cdk import RemovalPolicy


class AwsRegion(str, Enum):
    US_EAST_1 = "us-east-1"
    US_EAST_2 = "us-east-2"
    US_WEST_1 = "us-west-1"
    US_WEST_2 = "us-west-2"
    CA_CENTRAL_1 = "ca-central-1"
    EU_WEST_1 = "eu-west-1"
    EU_WEST_2 = "eu-west-2"
    EU_WEST_3 = "eu-west-3"
    EU_CENTRAL_1 = "eu-central-1"
    EU_CENTRAL_2 = "eu-central-2"
    EU_NORTH_1 = "eu-north-1"
    AP_SOUTHEAST_1 = "ap-southeast-1"
    AP_SOUTHEAST_2 = "ap-southeast-2"
    AP_NORTHEAST_1 = "ap-northeast-1"


class RemovalPolicyName(str, Enum):
    """Removal policy as written in YAML configuration files."""

    DESTROY = "destroy"
    RETAIN = "retain"
    SNAPSHOT = "snapshot"
    RETAIN_ON_UPDATE_OR_DELETE = "retain_on_update_or_delete"

    def to_cdk(self) -> RemovalPolicy:
        return {
            RemovalPolicyName.DESTROY: RemovalPolicy.DESTROY,
            RemovalPolicyName.RETAIN: RemovalPolicy.RETAIN,
            RemovalPolicyName.SNAPSHOT: RemovalPolicy.SNAPSHOT,
            RemovalPolicyName.RETAIN_ON_UPDATE_OR_DELETE: RemovalPolicy.RETAIN_ON_UPDATE_OR_DELETE,
        }[self]
